"""Data models for voice-cal."""

from __future__ import annotations

from voice_cal.models.event import EventDetails, HistoryItem, LLMEventSchema
from voice_cal.models.transcript import RecognitionEvent, RecognitionResult, TranscriptState

__all__ = [
    "EventDetails",
    "HistoryItem",
    "LLMEventSchema",
    "RecognitionEvent",
    "RecognitionResult",
    "TranscriptState",
]
