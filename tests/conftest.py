"""Shared fixtures for voice-cal tests."""

from __future__ import annotations

import logging
from collections.abc import Generator
from datetime import datetime
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from voice_cal.calendar.encoder import CalendarEncoder
from voice_cal.history import HistoryStore
from voice_cal.llm import GeminiClient
from voice_cal.models.event import EventDetails, HistoryItem
from voice_cal.session import VoiceCalendarSession
from voice_cal.speech import SpeechRecorder
from voice_cal.storage import LocalStorage

FROZEN_NOW = datetime(2026, 2, 18, 10, 0, 0)

_ENV_KEYS = (
    "GEMINI_API_KEY",
    "GEMINI_MODEL",
    "LOG_LEVEL",
    "VOICE_CAL_HOME",
    "EXTRACTION_TIMEOUT",
    "SMTP_HOST",
    "SMTP_PORT",
    "SMTP_USERNAME",
    "SMTP_PASSWORD",
)


@pytest.fixture()
def monkeypatch_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> dict[str, str]:
    """Set the required environment variables and point storage at *tmp_path*.

    Also patches ``load_dotenv`` so that a real ``.env`` file on disk does not
    override the test values.

    Returns the dict of variables so tests can inspect or override values.
    """
    monkeypatch.setattr("voice_cal.config.load_dotenv", lambda *_a, **_kw: None)
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)
    env_vars = {
        "GEMINI_API_KEY": "test-gemini-key-12345",
        "VOICE_CAL_HOME": str(tmp_path / "home"),
    }
    for key, value in env_vars.items():
        monkeypatch.setenv(key, value)
    return env_vars


@pytest.fixture()
def clean_env(monkeypatch: pytest.MonkeyPatch) -> None:
    """Remove all voice-cal environment variables.

    Patches ``load_dotenv`` so a real ``.env`` file cannot re-inject values
    that the test explicitly removed.
    """
    monkeypatch.setattr("voice_cal.config.load_dotenv", lambda *_a, **_kw: None)
    for key in _ENV_KEYS:
        monkeypatch.delenv(key, raising=False)


@pytest.fixture(autouse=True)
def _reset_root_logger() -> Generator[None, None, None]:
    """Reset the root logger after each test to prevent handler leaks."""
    root = logging.getLogger()
    original_handlers = root.handlers[:]
    original_level = root.level
    yield
    root.handlers = original_handlers
    root.setLevel(original_level)


# ---------------------------------------------------------------------------
# Domain fixtures
# ---------------------------------------------------------------------------


@pytest.fixture()
def lunch_event() -> EventDetails:
    """A well-formed 1-hour lunch event."""
    return EventDetails(
        title="Lunch with Sam",
        description="Catch up over lunch.",
        start=(2026, 2, 19, 12, 0),
        end=(2026, 2, 19, 13, 0),
        location="Cafe Roma",
    )


@pytest.fixture()
def make_history_item(lunch_event: EventDetails):
    """Factory for history items with distinct ids."""

    def _make(item_id: str = "item-1", title: str | None = None) -> HistoryItem:
        details = lunch_event if title is None else lunch_event.with_changes(title=title)
        return HistoryItem(
            id=item_id,
            transcription=f"{details.title} tomorrow at noon",
            event_details=details,
            timestamp=1771408800000,
            download_url=f"file:///tmp/{item_id}.ics",
        )

    return _make


@pytest.fixture()
def storage(tmp_path: Path) -> LocalStorage:
    return LocalStorage(tmp_path / "storage.json")


@pytest.fixture()
def history(storage: LocalStorage) -> HistoryStore:
    return HistoryStore(storage)


@pytest.fixture()
def encoder(tmp_path: Path) -> CalendarEncoder:
    return CalendarEncoder(tmp_path / "calendars")


@pytest.fixture()
def mock_extractor(lunch_event: EventDetails) -> MagicMock:
    """A ``GeminiClient`` double returning *lunch_event*."""
    extractor = MagicMock(spec=GeminiClient)
    extractor.extract_event_details.return_value = lunch_event
    return extractor


@pytest.fixture()
def session(
    mock_extractor: MagicMock,
    encoder: CalendarEncoder,
    history: HistoryStore,
) -> VoiceCalendarSession:
    """A session with no recognition source and a mocked extractor."""
    return VoiceCalendarSession(
        recorder=SpeechRecorder(None),
        extractor=mock_extractor,
        encoder=encoder,
        history=history,
        clock=lambda: FROZEN_NOW,
    )
