"""Persistent, newest-first history of committed events.

The whole sequence is stored as a JSON array under the ``"eventHistory"``
key of :class:`~voice_cal.storage.LocalStorage` and rewritten on every
mutation.  Storage problems never stop the application: unreadable or
corrupt data rehydrates as an empty history, and a failed write degrades
the store to in-memory history for the rest of the session.
"""

from __future__ import annotations

import logging

from pydantic import TypeAdapter
from pydantic import ValidationError as PydanticValidationError

from voice_cal.exceptions import StorageError
from voice_cal.models.event import HistoryItem
from voice_cal.storage import LocalStorage

logger = logging.getLogger(__name__)

HISTORY_KEY = "eventHistory"

_HISTORY_ADAPTER = TypeAdapter(list[HistoryItem])


class HistoryStore:
    """Ordered history of :class:`HistoryItem`, newest first.

    Args:
        storage: Backing client-local storage.  The history is loaded
            from it immediately.

    Attributes:
        persistent: ``False`` once a write has failed; the store then keeps
            working in memory only.
        last_error: Message of the most recent storage failure, or ``None``.
    """

    def __init__(self, storage: LocalStorage) -> None:
        self._storage = storage
        self._items: list[HistoryItem] = []
        self.persistent = True
        self.last_error: str | None = None
        self._load()

    @property
    def items(self) -> list[HistoryItem]:
        """A copy of the history, newest first."""
        return list(self._items)

    def __len__(self) -> int:
        return len(self._items)

    def get(self, item_id: str) -> HistoryItem | None:
        """Return the item with *item_id*, or ``None``."""
        return next((item for item in self._items if item.id == item_id), None)

    def add(self, item: HistoryItem) -> None:
        """Prepend *item* and persist."""
        self._items.insert(0, item)
        logger.info("History item added: %s ('%s')", item.id, item.event_details.title)
        self._save()

    def remove(self, item_id: str) -> bool:
        """Remove the item with *item_id* and persist.

        Returns:
            ``True`` if an item was removed, ``False`` if *item_id* was
            not present (nothing is written in that case).
        """
        remaining = [item for item in self._items if item.id != item_id]
        if len(remaining) == len(self._items):
            logger.debug("History item %s not found, nothing removed", item_id)
            return False
        self._items = remaining
        logger.info("History item removed: %s", item_id)
        self._save()
        return True

    def clear(self) -> None:
        """Remove every item and persist the empty history."""
        self._items = []
        logger.info("History cleared")
        self._save()

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------

    def _load(self) -> None:
        try:
            raw = self._storage.get_item(HISTORY_KEY)
        except StorageError as exc:
            logger.warning("History unavailable, starting empty: %s", exc)
            self.last_error = str(exc)
            return

        if raw is None:
            return

        try:
            self._items = _HISTORY_ADAPTER.validate_json(raw)
        except PydanticValidationError as exc:
            logger.warning("Stored history is corrupt, starting empty: %s", exc)
            self.last_error = f"Stored history is corrupt: {exc.error_count()} error(s)"
            return

        logger.info("Loaded %d history item(s)", len(self._items))

    def _save(self) -> None:
        payload = _HISTORY_ADAPTER.dump_json(self._items, by_alias=True).decode("utf-8")
        try:
            self._storage.set_item(HISTORY_KEY, payload)
        except StorageError as exc:
            if self.persistent:
                logger.warning("History could not be saved, keeping it in memory: %s", exc)
            self.persistent = False
            self.last_error = str(exc)
