"""Console output formatting for voice-cal.

Renders candidate events, committed history items and the history list as
plain text for the CLI.  The ``format_*`` functions return strings; the
``print_*`` wrappers write them to stdout.
"""

from __future__ import annotations

import sys
from datetime import datetime

from voice_cal.models.event import EventDetails, HistoryItem

# ---------------------------------------------------------------------------
# Constants
# ---------------------------------------------------------------------------

_BANNER_WIDTH = 60
_SEPARATOR = "=" * _BANNER_WIDTH
_DATETIME_FORMAT = "%A %Y-%m-%d, %I:%M %p"


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def format_event(details: EventDetails, heading: str = "EVENT DETAILS") -> str:
    """Render an event for review.

    Args:
        details: The event to show.
        heading: Banner text.

    Returns:
        A multi-line string ready for console display.
    """
    lines: list[str] = [_SEPARATOR, f"  {heading}", _SEPARATOR]
    lines.append(f"  Title: {details.title}")
    lines.append(f"  When: {format_time_range(details.start_datetime, details.end_datetime)}")
    lines.append(f"  Where: {details.location or 'Not specified'}")
    if details.description:
        lines.append(f"  Details: {details.description}")
    lines.append(_SEPARATOR)
    return "\n".join(lines)


def format_history(items: list[HistoryItem]) -> str:
    """Render the history list, newest first."""
    lines: list[str] = [_SEPARATOR, "  EVENT HISTORY", _SEPARATOR]

    if not items:
        lines.append("  No events created yet.")
    else:
        lines.append(f"  {len(items)} event(s)")
        for item in items:
            lines.append("")
            lines.extend(_history_item_lines(item))

    lines.append(_SEPARATOR)
    return "\n".join(lines)


def format_committed(item: HistoryItem) -> str:
    """Render the confirmation for a newly committed item."""
    lines = ["", "Event created successfully!"]
    lines.extend(_history_item_lines(item))
    return "\n".join(lines)


def print_event(details: EventDetails, heading: str = "EVENT DETAILS") -> None:
    sys.stdout.write(format_event(details, heading) + "\n")


def print_history(items: list[HistoryItem]) -> None:
    sys.stdout.write(format_history(items) + "\n")


def print_committed(item: HistoryItem) -> None:
    sys.stdout.write(format_committed(item) + "\n")


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------


def format_time_range(start: datetime, end: datetime) -> str:
    """Format a start/end pair, showing only the end time on the same day."""
    start_str = start.strftime(_DATETIME_FORMAT)
    if start.date() == end.date():
        end_str = end.strftime("%I:%M %p")
    else:
        end_str = end.strftime(_DATETIME_FORMAT)
    return f"{start_str} - {end_str}"


def _history_item_lines(item: HistoryItem) -> list[str]:
    details = item.event_details
    lines = [
        f"  [{item.id}] {details.title}",
        f"    When: {format_time_range(details.start_datetime, details.end_datetime)}",
    ]
    if details.location:
        lines.append(f"    Where: {details.location}")
    lines.append(f"    Created on {item.created_at.strftime('%B %d, %Y at %I:%M:%S %p')}")
    lines.append(f"    File: {item.download_url}")
    if item.transcription:
        lines.append(f'    From: "{item.transcription}"')
    return lines
