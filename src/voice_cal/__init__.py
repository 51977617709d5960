"""voice-cal: Voice to Calendar.

Reconciles speech-recognition results into a transcript, extracts a
structured event with Google Gemini, lets the user review it, and writes a
downloadable iCalendar file while keeping a persistent history.
"""

from __future__ import annotations

from voice_cal.calendar.encoder import CalendarEncoder, EncodedCalendar, render_ics
from voice_cal.confirmation import ConfirmationFlow, FlowState
from voice_cal.exceptions import (
    CapabilityUnavailable,
    EncodingFailed,
    ExtractionFailed,
    InvalidStateError,
    ShareError,
    StorageError,
    ValidationError,
    VoiceCalError,
)
from voice_cal.history import HistoryStore
from voice_cal.models.event import EventDetails, HistoryItem
from voice_cal.models.transcript import RecognitionEvent, RecognitionResult, TranscriptState
from voice_cal.session import ExtractionTicket, VoiceCalendarSession, build_session
from voice_cal.speech import RecognitionSource, ReplaySource, SpeechRecorder
from voice_cal.storage import LocalStorage

__version__ = "0.1.0"

__all__ = [
    "CalendarEncoder",
    "CapabilityUnavailable",
    "ConfirmationFlow",
    "EncodedCalendar",
    "EncodingFailed",
    "EventDetails",
    "ExtractionFailed",
    "ExtractionTicket",
    "FlowState",
    "HistoryItem",
    "HistoryStore",
    "InvalidStateError",
    "LocalStorage",
    "RecognitionEvent",
    "RecognitionResult",
    "RecognitionSource",
    "ReplaySource",
    "ShareError",
    "SpeechRecorder",
    "StorageError",
    "TranscriptState",
    "ValidationError",
    "VoiceCalError",
    "VoiceCalendarSession",
    "build_session",
    "render_ics",
]
