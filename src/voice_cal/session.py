"""Session orchestrator for the voice-to-calendar workflow.

Wires all components together: the speech recorder and its transcript,
LLM event extraction, the confirmation flow, calendar encoding and the
persistent history.  Every public method is one user action.  Failures are
caught here, logged, and reported through :attr:`VoiceCalendarSession.error`;
committed state is never partially updated.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from datetime import datetime
from typing import Any

from voice_cal.calendar.encoder import CalendarEncoder
from voice_cal.config import Settings
from voice_cal.confirmation import ConfirmationFlow, FlowState
from voice_cal.exceptions import (
    CapabilityUnavailable,
    EncodingFailed,
    ExtractionFailed,
    InvalidStateError,
    ValidationError,
)
from voice_cal.history import HistoryStore
from voice_cal.llm import GeminiClient
from voice_cal.models.event import EventDetails, HistoryItem
from voice_cal.models.transcript import TranscriptState
from voice_cal.speech import RecognitionSource, SpeechRecorder
from voice_cal.storage import LocalStorage

logger = logging.getLogger(__name__)

MSG_START_FAILED = "Error starting recording. Please try again."
MSG_STILL_RECORDING = "Stop recording before creating an event."
MSG_EMPTY_TRANSCRIPT = "Nothing to create an event from. Record or type a description first."
MSG_EXTRACTION_FAILED = "Error creating event. Please check your input and try again."
MSG_ENCODING_FAILED = "Error creating calendar file. Please try again."
MSG_STORAGE_DEGRADED = "History could not be saved. Changes are kept for this session only."


@dataclass(frozen=True)
class ExtractionTicket:
    """Snapshot of the transcript taken when an extraction starts.

    Attributes:
        session_id: Transcript session at request time.
        text: Transcript text sent for extraction.
    """

    session_id: int
    text: str

    @classmethod
    def from_state(cls, state: TranscriptState) -> ExtractionTicket:
        return cls(session_id=state.session_id, text=state.displayed)

    def is_stale(self, state: TranscriptState) -> bool:
        """Whether the transcript changed since this ticket was taken."""
        return state.session_id != self.session_id or state.displayed != self.text


class VoiceCalendarSession:
    """One user's voice-to-calendar session.

    Args:
        recorder: Speech recorder holding the transcript.
        extractor: Gemini client used for event extraction.
        encoder: Calendar file encoder.
        history: Persistent history of committed events.
        clock: Source of "now"; defaults to :meth:`datetime.now`.

    Attributes:
        error: User-visible message for the last failed action, or ``""``.
        notice: User-visible non-fatal notice (e.g. storage degraded), or
            ``""``.
    """

    def __init__(
        self,
        recorder: SpeechRecorder,
        extractor: GeminiClient,
        encoder: CalendarEncoder,
        history: HistoryStore,
        clock: Callable[[], datetime] = datetime.now,
    ) -> None:
        self.recorder = recorder
        self.extractor = extractor
        self.encoder = encoder
        self.history = history
        self.flow = ConfirmationFlow()
        self._clock = clock
        self.error = ""
        self.notice = ""
        if history.last_error:
            self.notice = f"Saved history could not be loaded: {history.last_error}"

    # ------------------------------------------------------------------
    # Transcript
    # ------------------------------------------------------------------

    @property
    def transcript(self) -> str:
        return self.recorder.transcript

    @property
    def recording(self) -> bool:
        return self.recorder.recording

    def start_recording(self) -> bool:
        """Start a new recording session.  Returns ``False`` on failure."""
        try:
            self.recorder.start()
        except CapabilityUnavailable as exc:
            logger.error("Error starting recording: %s", exc)
            self.error = MSG_START_FAILED
            return False
        self.error = ""
        return True

    def stop_recording(self) -> None:
        self.recorder.stop()

    def edit_transcript(self, text: str) -> None:
        self.recorder.edit(text)

    def reset_transcript(self) -> None:
        self.recorder.reset()
        self.error = ""

    # ------------------------------------------------------------------
    # Extraction
    # ------------------------------------------------------------------

    def begin_extraction(self) -> ExtractionTicket:
        """Snapshot the transcript for an extraction request."""
        return ExtractionTicket.from_state(self.recorder.state)

    def create_event(self) -> EventDetails | None:
        """Extract an event from the transcript and put it under review.

        Returns:
            The candidate event, or ``None`` if extraction failed or its
            result was discarded as stale.
        """
        if self.recording:
            self.error = MSG_STILL_RECORDING
            return None

        ticket = self.begin_extraction()
        logger.info("Creating event from text: %r", ticket.text)
        self.error = ""

        try:
            details = self.extractor.extract_event_details(ticket.text, self._clock())
        except ValidationError as exc:
            logger.warning("Extraction rejected: %s", exc)
            return self._fail_extraction(ticket, MSG_EMPTY_TRANSCRIPT)
        except ExtractionFailed as exc:
            logger.error("Error creating event: %s", exc)
            return self._fail_extraction(ticket, MSG_EXTRACTION_FAILED)

        return self.deliver_extraction(ticket, details)

    def deliver_extraction(
        self,
        ticket: ExtractionTicket,
        details: EventDetails,
    ) -> EventDetails | None:
        """Hand a finished extraction to the confirmation flow.

        The result is discarded when the transcript changed after *ticket*
        was taken.
        """
        if ticket.is_stale(self.recorder.state):
            logger.info(
                "Discarding stale extraction for session %d (now %d)",
                ticket.session_id,
                self.recorder.state.session_id,
            )
            return None
        self.flow.propose(details, ticket.text)
        return details

    def _fail_extraction(self, ticket: ExtractionTicket, message: str) -> None:
        if ticket.is_stale(self.recorder.state):
            logger.info("Ignoring failure of stale extraction")
            return None
        self.error = message
        return None

    # ------------------------------------------------------------------
    # Confirmation
    # ------------------------------------------------------------------

    @property
    def pending_event(self) -> EventDetails | None:
        return self.flow.candidate

    def edit_event(self, **changes: Any) -> bool:
        """Edit the pending event.  Returns ``False`` if the edit was rejected."""
        try:
            self.flow.edit(**changes)
        except (ValidationError, InvalidStateError) as exc:
            logger.warning("Edit rejected: %s", exc)
            self.error = str(exc)
            return False
        self.error = ""
        return True

    def cancel_event(self) -> None:
        if self.flow.state is FlowState.PENDING_REVIEW:
            self.flow.cancel()

    def confirm_event(self) -> HistoryItem | None:
        """Commit the pending event.

        Returns:
            The new history item, or ``None`` if nothing was pending or the
            calendar file could not be created (the candidate stays under
            review in that case).
        """
        try:
            item = self.flow.confirm(self.encoder, self.history, now=self._clock())
        except EncodingFailed as exc:
            logger.error("Error creating ICS file: %s", exc)
            self.error = MSG_ENCODING_FAILED
            return None
        except InvalidStateError as exc:
            logger.warning("%s", exc)
            self.error = str(exc)
            return None

        self.error = ""
        self._check_storage()
        return item

    # ------------------------------------------------------------------
    # History
    # ------------------------------------------------------------------

    def remove_history_item(self, item_id: str) -> bool:
        removed = self.history.remove(item_id)
        self._check_storage()
        return removed

    def clear_history(self) -> None:
        self.history.clear()
        self._check_storage()

    def _check_storage(self) -> None:
        if not self.history.persistent:
            self.notice = MSG_STORAGE_DEGRADED


def build_session(
    settings: Settings,
    source: RecognitionSource | None = None,
) -> VoiceCalendarSession:
    """Build a session from application settings.

    Args:
        settings: Application :class:`~voice_cal.config.Settings`.
        source: Speech-recognition source, if the platform has one.

    Returns:
        A ready :class:`VoiceCalendarSession` with history rehydrated from
        local storage.
    """
    return VoiceCalendarSession(
        recorder=SpeechRecorder(source),
        extractor=GeminiClient(
            api_key=settings.gemini_api_key,
            model=settings.gemini_model,
            timeout=settings.extraction_timeout,
        ),
        encoder=CalendarEncoder(settings.output_dir),
        history=HistoryStore(LocalStorage(settings.storage_path)),
    )
