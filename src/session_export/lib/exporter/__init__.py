"""Exporter library — public API for rendering session records.

Provides format-specific renderers and a unified dispatch function.
"""

from collections.abc import Callable, Iterable
from typing import Any

from session_export.core.errors import ValidationError
from session_export.lib.exporter.csv_writer import EXPORT_FIELDS, render_csv, serialize_skills, to_export_row
from session_export.lib.exporter.json_writer import render_json

# Format registry mapping format names to renderer functions
_RENDERERS: dict[str, Callable[[Iterable[dict[str, Any]]], str]] = {
    "csv": render_csv,
    "json": render_json,
}

SUPPORTED_FORMATS = list(_RENDERERS.keys())

CONTENT_TYPES = {
    "csv": "text/csv",
    "json": "application/json",
}


def render_records(output_format: str, records: object) -> str:
    """Render session records in the requested format.

    Args:
        output_format: Output format (csv, json).
        records: List of normalized session dicts. Anything that is not a
            list renders as an empty export.

    Returns:
        The rendered document text.

    Raises:
        ValidationError: If the format is not supported.
    """
    renderer = _RENDERERS.get(str(output_format))
    if renderer is None:
        msg = f"Unsupported export format: {output_format}. Supported: {SUPPORTED_FORMATS}"
        raise ValidationError(msg, {"format": "unsupported"})
    rows = records if isinstance(records, list) else []
    return renderer(rows)


__all__ = [
    "CONTENT_TYPES",
    "EXPORT_FIELDS",
    "SUPPORTED_FORMATS",
    "render_csv",
    "render_json",
    "render_records",
    "serialize_skills",
    "to_export_row",
]
