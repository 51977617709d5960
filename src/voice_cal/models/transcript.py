"""Transcript data models for incremental speech recognition.

These dataclasses describe what a recognition source delivers and the
transcript state the reconciler carries between callbacks.  They are
plain stdlib dataclasses (not Pydantic).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any


@dataclass(frozen=True)
class RecognitionResult:
    """One segment of a recognition batch.

    Attributes:
        transcript: Recognised text for this segment.
        is_final: ``True`` when the source guarantees the text will not
            change; ``False`` for provisional (interim) text.
    """

    transcript: str
    is_final: bool = False


@dataclass(frozen=True)
class RecognitionEvent:
    """A batch of results delivered by a single recognition callback.

    Attributes:
        results: All results known to the source for the current run.
        result_index: Index of the first result that changed in this
            batch; earlier results were already delivered.
    """

    results: tuple[RecognitionResult, ...] = ()
    result_index: int = 0

    @classmethod
    def from_payload(cls, payload: dict[str, Any]) -> RecognitionEvent:
        """Build an event from a Web Speech style result payload.

        Accepts both the flattened form
        ``{"isFinal": true, "transcript": "..."}`` and the browser's
        alternatives form ``{"isFinal": true, "0": {"transcript": "..."}}``
        for each entry of ``payload["results"]``.

        Raises:
            ValueError: If the payload is not shaped like a result batch.
        """
        raw_results = payload.get("results", [])
        if not isinstance(raw_results, list):
            raise ValueError("'results' must be a list")

        results = []
        for raw in raw_results:
            if not isinstance(raw, dict):
                raise ValueError(f"Result entry must be an object, got {raw!r}")
            if "transcript" in raw:
                text = raw["transcript"]
            else:
                text = (raw.get("0") or {}).get("transcript", "")
            results.append(
                RecognitionResult(transcript=str(text), is_final=bool(raw.get("isFinal", False)))
            )

        return cls(results=tuple(results), result_index=int(payload.get("resultIndex", 0)))


@dataclass(frozen=True)
class TranscriptState:
    """Reconciled transcript for one recording session.

    Attributes:
        final: Committed text; append-only within a session.
        interim: Provisional text from the latest recognition cycle.
        recording: Whether the user intends to keep recording.  This flag,
            not the recognition source, decides restart-on-end.
        session_id: Incremented whenever the transcript is replaced
            (new session, reset, manual edit).  Outstanding extraction
            requests compare against it to detect stale responses.
    """

    final: str = ""
    interim: str = ""
    recording: bool = False
    session_id: int = 0

    @property
    def displayed(self) -> str:
        """The transcript as shown to the user: final text then interim text."""
        return " ".join(part for part in (self.final, self.interim) if part)
