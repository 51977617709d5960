"""Encode events as iCalendar (``.ics``) files.

Converts :class:`~voice_cal.models.event.EventDetails` into RFC 5545 bytes
with the ``icalendar`` library and writes them to the output directory.
The returned ``file://`` URI is the retrievable handle stored in history.

The mapping includes:

- **SUMMARY** from the event title.
- **DESCRIPTION** from the event description.
- **LOCATION** (when provided).
- **DTSTART / DTEND** as floating local times; components carry no
  timezone.
- **UID** and **DTSTAMP** so calendar clients can de-duplicate imports.
"""

from __future__ import annotations

import logging
import re
import uuid
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path

from icalendar import Calendar, Event

from voice_cal.exceptions import EncodingFailed
from voice_cal.models.event import EventDetails

logger = logging.getLogger(__name__)

PRODID = "-//voice-cal//Voice to Calendar//EN"
_SLUG_MAX = 40


@dataclass(frozen=True)
class EncodedCalendar:
    """An encoded calendar file.

    Attributes:
        content: Raw iCalendar bytes.
        path: Where the bytes were written.
        url: ``file://`` URI of *path*.
        uid: The VEVENT ``UID``.
    """

    content: bytes
    path: Path
    url: str
    uid: str


def render_ics(
    details: EventDetails,
    uid: str | None = None,
    stamp: datetime | None = None,
) -> bytes:
    """Render *details* as iCalendar bytes.

    Args:
        details: The event to encode.
        uid: VEVENT ``UID``; a fresh one is generated when omitted.
        stamp: ``DTSTAMP`` value; defaults to the current UTC time.

    Returns:
        The ``VCALENDAR`` document as bytes.

    Raises:
        EncodingFailed: If the title is blank or ``end`` is not after
            ``start``.
    """
    if not details.title.strip():
        raise EncodingFailed("Event title must not be empty")

    start = details.start_datetime
    end = details.end_datetime
    if end <= start:
        raise EncodingFailed(
            f"Event end ({end.isoformat()}) must be after start ({start.isoformat()})"
        )

    cal = Calendar()
    cal.add("prodid", PRODID)
    cal.add("version", "2.0")
    cal.add("calscale", "GREGORIAN")

    event = Event()
    event.add("uid", uid or f"{uuid.uuid4()}@voice-cal")
    event.add("dtstamp", stamp or datetime.now(timezone.utc))
    event.add("dtstart", start)
    event.add("dtend", end)
    event.add("summary", details.title)
    if details.description:
        event.add("description", details.description)
    if details.location:
        event.add("location", details.location)
    cal.add_component(event)

    try:
        return cal.to_ical()
    except (ValueError, TypeError) as exc:
        raise EncodingFailed(f"Could not encode event: {exc}") from exc


class CalendarEncoder:
    """Writes encoded events into *output_dir*.

    Args:
        output_dir: Directory for generated ``.ics`` files.  Created on
            first use.
    """

    def __init__(self, output_dir: Path) -> None:
        self._output_dir = Path(output_dir)

    @property
    def output_dir(self) -> Path:
        return self._output_dir

    def encode(self, details: EventDetails) -> EncodedCalendar:
        """Encode *details* and write the file.

        Returns:
            The :class:`EncodedCalendar` with content and handle.

        Raises:
            EncodingFailed: If the event is invalid or the file cannot be
                written.
        """
        uid_hex = uuid.uuid4().hex
        uid = f"{uid_hex}@voice-cal"
        content = render_ics(details, uid=uid)

        path = self._output_dir / f"{_slugify(details.title)}-{uid_hex[:8]}.ics"
        try:
            self._output_dir.mkdir(parents=True, exist_ok=True)
            path.write_bytes(content)
        except OSError as exc:
            logger.error("Could not write calendar file %s: %s", path, exc)
            raise EncodingFailed(f"Could not write calendar file {path}: {exc}") from exc

        resolved = path.resolve()
        logger.info("Calendar file created for '%s': %s", details.title, resolved)
        return EncodedCalendar(content=content, path=resolved, url=resolved.as_uri(), uid=uid)


def _slugify(title: str) -> str:
    """Turn *title* into a short filesystem-safe name."""
    slug = re.sub(r"[^a-z0-9]+", "-", title.lower()).strip("-")
    return slug[:_SLUG_MAX].rstrip("-") or "event"
