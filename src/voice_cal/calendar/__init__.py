"""Calendar file encoding for voice-cal."""

from __future__ import annotations

from voice_cal.calendar.encoder import CalendarEncoder, EncodedCalendar, render_ics

__all__ = [
    "CalendarEncoder",
    "EncodedCalendar",
    "render_ics",
]
