"""Speech recorder that drives a recognition source through the reconciler.

The concrete speech-recognition engine is an external collaborator.  It
only has to satisfy :class:`RecognitionSource`: ``start`` with a result
callback and an end callback, and ``stop``.  :class:`SpeechRecorder` owns
the transcript state and restarts the source transparently when it ends
while the user still intends to record.

:class:`ReplaySource` replays Web Speech result batches recorded as JSON
lines, which lets recordings captured in a browser run through the same
reconciliation from the command line.
"""

from __future__ import annotations

import json
import logging
from collections.abc import Callable
from pathlib import Path
from typing import Protocol

from voice_cal.exceptions import CapabilityUnavailable, ValidationError
from voice_cal.models.transcript import RecognitionEvent, TranscriptState
from voice_cal.transcript import (
    apply_event,
    edit_transcript,
    handle_end,
    reset_transcript,
    start_session,
    stop_session,
)

logger = logging.getLogger(__name__)

ResultCallback = Callable[[RecognitionEvent], None]
EndCallback = Callable[[], None]


class RecognitionSource(Protocol):
    """Minimal contract of a continuous speech-recognition engine."""

    def start(self, on_result: ResultCallback, on_end: EndCallback) -> None:
        """Begin recognition, delivering batches to *on_result*.

        *on_end* is called whenever recognition stops, whether requested
        or not.
        """

    def stop(self) -> None:
        """Stop recognition."""


class SpeechRecorder:
    """Reconciles callbacks from a recognition source into a transcript.

    Args:
        source: The recognition engine, or ``None`` when the platform has
            no speech recognition.  Starting without a source raises
            :class:`~voice_cal.exceptions.CapabilityUnavailable`.
    """

    def __init__(self, source: RecognitionSource | None = None) -> None:
        self._source = source
        self._state = TranscriptState()

    @property
    def state(self) -> TranscriptState:
        """Current transcript state."""
        return self._state

    @property
    def recording(self) -> bool:
        """Whether the user intends to keep recording."""
        return self._state.recording

    @property
    def transcript(self) -> str:
        """The displayed transcript."""
        return self._state.displayed

    # ------------------------------------------------------------------
    # User actions
    # ------------------------------------------------------------------

    def start(self) -> None:
        """Start a new recording session.

        Raises:
            CapabilityUnavailable: If there is no source or it refuses to
                start.  The transcript is left unchanged.
        """
        if self._source is None:
            raise CapabilityUnavailable("Speech recognition is not supported")

        previous = self._state
        self._state = start_session(previous)
        try:
            self._source.start(self._on_result, self._on_end)
        except Exception as exc:
            self._state = previous
            logger.error("Speech recognition failed to start: %s", exc)
            raise CapabilityUnavailable(f"Speech recognition failed to start: {exc}") from exc

        logger.info("Recording started (session %d)", self._state.session_id)

    def stop(self) -> None:
        """Stop recording and fold interim text into the transcript.

        Calling this twice yields the same transcript as calling it once.
        """
        # Clear the intent flag first so an end callback fired by the
        # source's own stop does not restart it.
        self._state = stop_session(self._state)
        if self._source is not None:
            self._source.stop()
        logger.info("Recording stopped: %d character(s)", len(self._state.displayed))

    def reset(self) -> None:
        """Discard the transcript."""
        self._state = reset_transcript(self._state)

    def edit(self, text: str) -> None:
        """Replace the transcript with user-edited *text*."""
        self._state = edit_transcript(self._state, text)

    # ------------------------------------------------------------------
    # Source callbacks
    # ------------------------------------------------------------------

    def _on_result(self, event: RecognitionEvent) -> None:
        self._state = apply_event(self._state, event)
        logger.debug("Transcript now: %r", self._state.displayed)

    def _on_end(self) -> None:
        self._state, restart = handle_end(self._state)
        if not restart or self._source is None:
            return

        logger.debug("Recognition ended while recording, restarting")
        try:
            self._source.start(self._on_result, self._on_end)
        except Exception as exc:
            logger.error("Speech recognition could not restart: %s", exc)
            self._state = stop_session(self._state)


class ReplaySource:
    """Recognition source that replays recorded result batches.

    Each line of the file is one Web Speech style batch (see
    :meth:`RecognitionEvent.from_payload`).  Batches are delivered once on
    the first :meth:`start`; later starts deliver nothing, so a restart after
    the recording is exhausted stays quiet.

    Args:
        events: Batches to replay, in order.
    """

    def __init__(self, events: list[RecognitionEvent]) -> None:
        self._pending = list(events)
        self._running = False

    @classmethod
    def from_file(cls, path: Path) -> ReplaySource:
        """Load batches from a JSON-lines file.

        Raises:
            ValidationError: If a line is not a valid batch.
        """
        events: list[RecognitionEvent] = []
        with open(path, encoding="utf-8") as fh:
            for line_number, line in enumerate(fh, start=1):
                if not line.strip():
                    continue
                try:
                    events.append(RecognitionEvent.from_payload(json.loads(line)))
                except (json.JSONDecodeError, ValueError, AttributeError) as exc:
                    raise ValidationError(
                        f"{path}:{line_number}: invalid recognition batch: {exc}"
                    ) from exc
        logger.info("Loaded %d recognition batch(es) from %s", len(events), path)
        return cls(events)

    def start(self, on_result: ResultCallback, on_end: EndCallback) -> None:
        self._running = True
        pending, self._pending = self._pending, []
        for event in pending:
            if not self._running:
                break
            on_result(event)

    def stop(self) -> None:
        self._running = False
