"""CSV renderer for gameplay-session exports."""

import csv
import io
from collections.abc import Iterable
from typing import Any

# Characters that trigger formula execution in spreadsheet applications
_FORMULA_PREFIXES = ("=", "+", "-", "@", "\t", "\r")

# Column order for every export format
EXPORT_FIELDS = [
    "session_id",
    "player_id",
    "mode",
    "wave_reached",
    "duration_seconds",
    "total_score",
    "resources_collected",
    "dominant_element_used",
    "skills_usage",
    "defeat_cause",
    "started_at",
    "ended_at",
]


def _sanitize_cell(value: object) -> object:
    """Sanitize a cell value to prevent CSV formula injection.

    Prefixes values starting with formula-triggering characters with
    a single quote to prevent execution in spreadsheet applications.

    Args:
        value: The cell value to sanitize.

    Returns:
        The sanitized value.
    """
    if isinstance(value, str) and value and value[0] in _FORMULA_PREFIXES:
        return f"'{value}"
    return value


def serialize_skills(skills: object) -> str:
    """Flatten skill usage into ``skill_id:casts`` pairs joined by ``|``.

    Entries without a skill ID are dropped; non-numeric casts count as 0.
    """
    if not isinstance(skills, list) or not skills:
        return ""
    parts = []
    for skill in skills:
        if not isinstance(skill, dict):
            continue
        skill_id = skill.get("skill_id") or skill.get("skillId")
        if not skill_id:
            continue
        casts = skill.get("casts")
        if not isinstance(casts, int | float) or isinstance(casts, bool):
            casts = 0
        parts.append(f"{skill_id}:{casts}")
    return "|".join(parts)


def to_export_row(record: dict[str, Any]) -> dict[str, Any]:
    """Project a normalized session record onto EXPORT_FIELDS.

    Missing values become None; skill usage is flattened to a string.
    """
    row = {field: record.get(field) for field in EXPORT_FIELDS}
    row["skills_usage"] = serialize_skills(record.get("skills_usage"))
    return row


def render_csv(records: Iterable[dict[str, Any]]) -> str:
    """Render session records as CSV text with a header row.

    Args:
        records: Iterable of normalized session dicts.

    Returns:
        The CSV document. Rows are separated by ``\\n``.
    """
    buffer = io.StringIO()
    writer = csv.DictWriter(buffer, fieldnames=EXPORT_FIELDS, extrasaction="ignore", lineterminator="\n")
    writer.writeheader()
    for record in records:
        row = to_export_row(record)
        writer.writerow({k: _sanitize_cell(v) for k, v in row.items()})
    return buffer.getvalue()
