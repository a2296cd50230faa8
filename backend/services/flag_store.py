from __future__ import annotations

import logging
import threading
from typing import Protocol

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from db.models import CompletionFlag


logger = logging.getLogger(__name__)


class FlagStore(Protocol):
    def get_flag(self, key: str) -> bool: ...

    def set_flag(self, key: str) -> None: ...


class InMemoryFlagStore:
    def __init__(self) -> None:
        self._flags: dict[str, bool] = {}
        self._lock = threading.Lock()

    def get_flag(self, key: str) -> bool:
        with self._lock:
            return self._flags.get(key, False)

    def set_flag(self, key: str) -> None:
        with self._lock:
            self._flags[key] = True

    def keys(self) -> set[str]:
        with self._lock:
            return {key for key, value in self._flags.items() if value}


class SqlFlagStore:
    """Completion flags for one participant, one row per key."""

    def __init__(self, db: Session, participant_id: str) -> None:
        self.db = db
        self.participant_id = participant_id

    def _row(self, key: str) -> CompletionFlag | None:
        return (
            self.db.query(CompletionFlag)
            .filter(
                CompletionFlag.participant_id == self.participant_id,
                CompletionFlag.flag_key == key,
            )
            .first()
        )

    def get_flag(self, key: str) -> bool:
        row = self._row(key)
        return bool(row is not None and row.value)

    def set_flag(self, key: str) -> None:
        row = self._row(key)
        if row is not None:
            if not row.value:
                row.value = True
                self.db.commit()
            return
        self.db.add(CompletionFlag(participant_id=self.participant_id, flag_key=key, value=True))
        try:
            self.db.commit()
        except IntegrityError:
            # Another writer stored the same key first; the flag is set either way.
            self.db.rollback()
            logger.info("Completion flag %s already recorded for participant %s", key, self.participant_id)
        except Exception:
            self.db.rollback()
            raise
