"""Capacity-bounded local history of completed translations."""

from __future__ import annotations

import json
import logging
from typing import List

from .models import TranslationRecord
from .storage import LocalStore, StorageError

HISTORY_KEY = "translationHistory"
HISTORY_VERSION = 1
MAX_ENTRIES = 10


class PersistenceError(RuntimeError):
    """Raised when the history cannot be written to local storage."""


class HistoryStore:
    """Newest-first log of :class:`TranslationRecord` objects.

    The in-memory log is authoritative. Write failures are logged and never
    propagate, so losing history cannot block a translation.
    """

    def __init__(self, store: LocalStore, capacity: int = MAX_ENTRIES) -> None:
        self._store = store
        self._capacity = capacity
        self._records: List[TranslationRecord] = []

    @property
    def records(self) -> List[TranslationRecord]:
        return list(self._records)

    def __len__(self) -> int:
        return len(self._records)

    def load(self) -> List[TranslationRecord]:
        try:
            raw = self._store.get_item(HISTORY_KEY)
        except StorageError as exc:
            logging.warning("Could not read translation history: %s", exc)
            raw = None

        self._records = []
        if raw is None:
            return self.records

        try:
            payload = json.loads(raw)
            # Older clients stored a bare array without a version tag.
            items = payload if isinstance(payload, list) else payload["records"]
            self._records = [TranslationRecord.from_dict(item) for item in items][: self._capacity]
        except (ValueError, KeyError, TypeError) as exc:
            logging.warning("Ignoring corrupt translation history: %s", exc)
            self._records = []
        return self.records

    def append(self, record: TranslationRecord) -> None:
        self._records = [record, *self._records][: self._capacity]
        try:
            self._persist()
        except PersistenceError as exc:
            logging.warning("%s", exc)

    def clear(self) -> None:
        self._records = []
        try:
            self._store.remove_item(HISTORY_KEY)
        except StorageError as exc:
            logging.warning("Could not remove translation history: %s", exc)

    def _persist(self) -> None:
        payload = {
            "version": HISTORY_VERSION,
            "records": [record.to_dict() for record in self._records],
        }
        try:
            self._store.set_item(HISTORY_KEY, json.dumps(payload))
        except StorageError as exc:
            raise PersistenceError(f"Could not save translation history: {exc}") from exc
