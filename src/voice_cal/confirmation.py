"""Review-and-confirm state machine for extracted events.

``IDLE -> PENDING_REVIEW`` when an extraction succeeds.  From
``PENDING_REVIEW`` the user edits the candidate, cancels (back to ``IDLE``)
or confirms.  Confirming encodes the candidate, wraps it in a
:class:`~voice_cal.models.event.HistoryItem` and prepends it to history
(``COMMITTED``).  An encoding failure keeps the candidate under review so
the user can edit and retry.
"""

from __future__ import annotations

import enum
import logging
import uuid
from datetime import datetime
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from voice_cal.calendar.encoder import CalendarEncoder
from voice_cal.exceptions import EncodingFailed, InvalidStateError, ValidationError
from voice_cal.history import HistoryStore
from voice_cal.models.event import EventDetails, HistoryItem

logger = logging.getLogger(__name__)

EDITABLE_FIELDS = ("title", "description", "start", "end", "location")


class FlowState(enum.Enum):
    """States of the confirmation flow."""

    IDLE = "idle"
    PENDING_REVIEW = "pending_review"
    COMMITTED = "committed"


class ConfirmationFlow:
    """Holds a candidate event while the user reviews it."""

    def __init__(self) -> None:
        self._state = FlowState.IDLE
        self._candidate: EventDetails | None = None
        self._transcription = ""

    @property
    def state(self) -> FlowState:
        return self._state

    @property
    def candidate(self) -> EventDetails | None:
        """The event under review, or ``None`` outside ``PENDING_REVIEW``."""
        return self._candidate

    @property
    def transcription(self) -> str:
        """Source text of the candidate."""
        return self._transcription

    def propose(self, details: EventDetails, transcription: str) -> None:
        """Put *details* under review, replacing any pending candidate."""
        if self._state is FlowState.PENDING_REVIEW:
            logger.info("Replacing pending candidate '%s'", self._candidate.title)
        self._candidate = details
        self._transcription = transcription
        self._state = FlowState.PENDING_REVIEW
        logger.info("Event '%s' awaiting confirmation", details.title)

    def edit(self, **changes: Any) -> EventDetails:
        """Apply user edits to the candidate.

        Args:
            **changes: Any of ``title``, ``description``, ``start``,
                ``end`` and ``location``.  Dates may be 5-tuples,
                ``datetime`` objects or ``YYYY-MM-DDTHH:MM`` strings.

        Returns:
            The updated candidate.

        Raises:
            InvalidStateError: If no candidate is under review.
            ValidationError: If a field is unknown or a date/time is
                malformed.  The candidate is left unchanged.
        """
        candidate = self._require_candidate("edit")

        unknown = set(changes) - set(EDITABLE_FIELDS)
        if unknown:
            raise ValidationError(f"Unknown event field(s): {', '.join(sorted(unknown))}")

        try:
            self._candidate = candidate.with_changes(**changes)
        except PydanticValidationError as exc:
            messages = "; ".join(err["msg"] for err in exc.errors())
            raise ValidationError(f"Invalid event details: {messages}") from exc

        logger.debug("Candidate edited: %s", sorted(changes))
        return self._candidate

    def cancel(self) -> None:
        """Discard the candidate and return to ``IDLE``."""
        self._require_candidate("cancel")
        logger.info("Event '%s' discarded", self._candidate.title)
        self._reset(FlowState.IDLE)

    def confirm(
        self,
        encoder: CalendarEncoder,
        history: HistoryStore,
        now: datetime | None = None,
    ) -> HistoryItem:
        """Commit the candidate.

        Args:
            encoder: Produces the calendar file and its handle.
            history: Receives the new item at the front.
            now: Creation instant; defaults to ``datetime.now()``.

        Returns:
            The new :class:`HistoryItem`.

        Raises:
            InvalidStateError: If no candidate is under review.
            EncodingFailed: If the calendar file cannot be produced.  The
                flow stays in ``PENDING_REVIEW`` with the candidate intact.
        """
        candidate = self._require_candidate("confirm")

        try:
            encoded = encoder.encode(candidate)
        except EncodingFailed:
            logger.warning("Encoding failed, '%s' stays under review", candidate.title)
            raise

        created = now or datetime.now()
        item = HistoryItem(
            id=str(uuid.uuid4()),
            transcription=self._transcription,
            event_details=candidate,
            timestamp=int(created.timestamp() * 1000),
            download_url=encoded.url,
        )
        history.add(item)
        self._reset(FlowState.COMMITTED)
        logger.info("Event '%s' committed as %s", candidate.title, item.id)
        return item

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    def _require_candidate(self, action: str) -> EventDetails:
        if self._state is not FlowState.PENDING_REVIEW or self._candidate is None:
            raise InvalidStateError(f"Cannot {action}: no event is awaiting confirmation")
        return self._candidate

    def _reset(self, state: FlowState) -> None:
        self._candidate = None
        self._transcription = ""
        self._state = state
