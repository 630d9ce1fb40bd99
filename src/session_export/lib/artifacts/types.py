"""Artifact data types for export persistence."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class Artifact:
    """A persisted export file and its signed download link.

    Created once per job; a regenerated export supersedes it rather than
    updating it.
    """

    download_url: str
    artifact_path: str
    created_at: datetime
    completed_at: datetime
    expires_at: datetime
