"""
Response formatting for aggregation results.
Produces a structured object, a delimited text block or a raw table.
"""

from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Sequence, Union

from ..api.schemas import OutputFormat, ParticipantRecord, TimeWindow

HEADER_ROW = ["account", "volume", "count"]


def format_timestamp(value: datetime) -> str:
    """Render a timestamp as ISO-8601 with an explicit UTC offset, e.g. 2014-01-01T00:00:00+00:00."""
    return value.astimezone(timezone.utc).isoformat(timespec="seconds")


def _format_field(value: Any) -> str:
    # integral floats print without a trailing .0
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def to_table(rows: Sequence[ParticipantRecord]) -> List[List[Any]]:
    """Header row followed by one [account, volume, count] triple per participant."""
    table: List[List[Any]] = [list(HEADER_ROW)]
    for row in rows:
        table.append([row.account, row.volume, row.count])
    return table


def to_csv(rows: Sequence[ParticipantRecord]) -> str:
    """
    Join the table into comma-space separated lines.

    Fields are written as-is without quoting, so an account containing a
    comma would corrupt the output.
    """
    return "\n".join(
        ", ".join(_format_field(field) for field in line)
        for line in to_table(rows)
    )


def to_json(rows: Sequence[ParticipantRecord], window: TimeWindow) -> Dict[str, Any]:
    return {
        "startTime": format_timestamp(window.start),
        "endTime": format_timestamp(window.end),
        "results": [row.model_dump() for row in rows],
    }


def format_results(
    rows: Sequence[ParticipantRecord],
    window: TimeWindow,
    requested_format: Optional[str] = None,
) -> Union[Dict[str, Any], str, List[List[Any]]]:
    """
    Shape ranked participant records for the caller.

    Args:
        rows: Ranked participant records
        window: Window the records were computed over
        requested_format: "json", "csv", or anything else for the raw table

    Returns:
        A dict for json, a string for csv, otherwise a list of rows
    """
    if requested_format == OutputFormat.JSON.value:
        return to_json(rows, window)
    if requested_format == OutputFormat.CSV.value:
        return to_csv(rows)
    return to_table(rows)
