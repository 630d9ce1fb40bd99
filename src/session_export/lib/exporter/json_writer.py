"""JSON renderer for gameplay-session exports."""

import json
from collections.abc import Iterable
from datetime import date, datetime
from typing import Any

from session_export.lib.exporter.csv_writer import to_export_row


class _JSONEncoder(json.JSONEncoder):
    """Encoder handling datetimes and dates from analytics sources."""

    def default(self, o: object) -> Any:
        if isinstance(o, datetime | date):
            return o.isoformat()
        return super().default(o)


def render_json(records: Iterable[dict[str, Any]]) -> str:
    """Render session records as an indented JSON array.

    Args:
        records: Iterable of normalized session dicts.

    Returns:
        The JSON document.
    """
    rows = [to_export_row(record) for record in records]
    return json.dumps(rows, cls=_JSONEncoder, indent=2)
