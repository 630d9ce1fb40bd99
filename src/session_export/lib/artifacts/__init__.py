"""Artifact library — public API for export artifact persistence.

Provides local storage of rendered exports and signed download links.
"""

from session_export.lib.artifacts.storage import DEFAULT_TTL_SECONDS, ArtifactStore
from session_export.lib.artifacts.types import Artifact

__all__ = [
    "DEFAULT_TTL_SECONDS",
    "Artifact",
    "ArtifactStore",
]
