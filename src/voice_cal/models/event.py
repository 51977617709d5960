"""Pydantic models for calendar events and committed history.

Defines the structured data types shared by extraction, confirmation,
encoding and persistence:

- :class:`EventDetails` -- a calendar event with plain calendar-local
  ``(year, month, day, hour, minute)`` components.
- :class:`HistoryItem` -- a committed event plus audit metadata and the
  handle of its encoded calendar file.
- :class:`LLMEventSchema` -- schema for Gemini's ``response_schema``
  parameter.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator
from pydantic.alias_generators import to_camel

DateParts = tuple[int, int, int, int, int]

DEFAULT_DURATION = timedelta(minutes=30)


def to_parts(value: datetime) -> DateParts:
    """Return the ``(year, month, day, hour, minute)`` components of *value*."""
    return (value.year, value.month, value.day, value.hour, value.minute)


def from_parts(parts: DateParts) -> datetime:
    """Build a naive ``datetime`` from date components."""
    return datetime(*parts)


# ---------------------------------------------------------------------------
# EventDetails
# ---------------------------------------------------------------------------


class EventDetails(BaseModel):
    """A single calendar event.

    ``start`` and ``end`` are calendar-local components with no timezone.
    The model checks that each tuple is a real date and time; it does not
    enforce ``start < end`` because users may edit either field freely.
    The calendar encoder rejects inverted ranges.

    Date fields accept a 5-tuple or list, a ``datetime``, or an ISO string
    such as ``"2026-02-19T12:00"`` (the value a date-time input produces).

    Attributes:
        title: Short event title.
        description: Longer free-text description.
        start: Event start components.
        end: Event end components.
        location: Event location, or ``None``.
    """

    model_config = ConfigDict(frozen=True)

    title: str
    description: str = ""
    start: DateParts
    end: DateParts
    location: str | None = None

    @field_validator("start", "end", mode="before")
    @classmethod
    def _coerce_date_parts(cls, value: Any) -> Any:
        """Accept ``datetime`` objects and ISO strings as date components."""
        if isinstance(value, datetime):
            return to_parts(value)
        if isinstance(value, str):
            try:
                return to_parts(datetime.fromisoformat(value.strip()))
            except ValueError as exc:
                raise ValueError(f"Invalid date/time {value!r}") from exc
        return value

    @field_validator("start", "end")
    @classmethod
    def _check_calendar_date(cls, value: DateParts) -> DateParts:
        """Reject components that do not form a real date and time."""
        try:
            from_parts(value)
        except ValueError as exc:
            raise ValueError(f"Invalid date/time components {list(value)}: {exc}") from exc
        return value

    @field_validator("location", mode="before")
    @classmethod
    def _blank_location_is_none(cls, value: Any) -> Any:
        if isinstance(value, str) and not value.strip():
            return None
        return value

    @property
    def start_datetime(self) -> datetime:
        """Event start as a naive ``datetime``."""
        return from_parts(self.start)

    @property
    def end_datetime(self) -> datetime:
        """Event end as a naive ``datetime``."""
        return from_parts(self.end)

    @classmethod
    def from_datetimes(
        cls,
        title: str,
        start: datetime,
        end: datetime | None = None,
        description: str = "",
        location: str | None = None,
    ) -> EventDetails:
        """Build an event from ``datetime`` values.

        A missing *end* defaults to 30 minutes after *start*.
        """
        return cls(
            title=title,
            description=description,
            start=to_parts(start),
            end=to_parts(end if end is not None else start + DEFAULT_DURATION),
            location=location,
        )

    def with_changes(self, **changes: Any) -> EventDetails:
        """Return a re-validated copy with *changes* applied.

        Unlike :meth:`pydantic.BaseModel.model_copy`, the new values go
        through validation, so malformed dates raise
        :class:`pydantic.ValidationError`.
        """
        unknown = set(changes) - set(type(self).model_fields)
        if unknown:
            raise ValueError(f"Unknown event field(s): {', '.join(sorted(unknown))}")
        return type(self).model_validate({**self.model_dump(), **changes})


# ---------------------------------------------------------------------------
# HistoryItem
# ---------------------------------------------------------------------------


class HistoryItem(BaseModel):
    """A committed event as stored in the history.

    Serialised with camelCase aliases (``eventDetails``, ``downloadUrl``)
    so the stored JSON keeps the browser storage layout.

    Attributes:
        id: Unique identifier (uuid4 string).
        transcription: The source text the event was extracted from.
        event_details: The confirmed (possibly edited) event.
        timestamp: Creation instant in epoch milliseconds.
        download_url: Handle of the encoded calendar file.
    """

    model_config = ConfigDict(
        frozen=True,
        alias_generator=to_camel,
        populate_by_name=True,
    )

    id: str
    transcription: str
    event_details: EventDetails
    timestamp: int
    download_url: str

    @property
    def created_at(self) -> datetime:
        """Creation instant as a local naive ``datetime``."""
        return datetime.fromtimestamp(self.timestamp / 1000)


# ---------------------------------------------------------------------------
# LLMEventSchema -- schema for Gemini response_schema
# ---------------------------------------------------------------------------


class LLMEventSchema(BaseModel):
    """Schema passed to Gemini's ``response_schema`` parameter.

    Date components are plain integer lists because the structured-output
    schema has no tuple type; :class:`EventDetails` checks their length.

    Attributes:
        title: Event title.
        description: Event description.
        start: ``[year, month, day, hour, minute]``.
        end: ``[year, month, day, hour, minute]``, or ``None`` if unknown.
        location: Location string, or ``None`` if not mentioned.
    """

    title: str
    description: str = ""
    start: list[int]
    end: list[int] | None = None
    location: str | None = None
