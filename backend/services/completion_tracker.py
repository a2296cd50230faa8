from __future__ import annotations

import logging

from services.activity_types import ActivityCategory, completion_key
from services.flag_store import FlagStore


logger = logging.getLogger(__name__)

END_OF_STUDY_KEY_PREFIX = "endOfStudyComplete"


def end_of_study_key(task_identifier: str) -> str:
    return f"{END_OF_STUDY_KEY_PREFIX}{task_identifier}"


class CompletionTracker:
    """
    Completion flags for a single participant.

    Daily and sleep are tracked per day for the whole study. Physical and
    cognition are tracked per day during week 1 and per week afterwards, so
    finishing the task on any day of a later week completes the whole week.
    Flags are only ever set, never cleared.
    """

    def __init__(self, store: FlagStore) -> None:
        self.store = store

    def is_complete(self, category: ActivityCategory, day_of_study: int) -> bool:
        return self.store.get_flag(completion_key(category, day_of_study))

    def mark_complete(self, category: ActivityCategory, day_of_study: int) -> None:
        key = completion_key(category, day_of_study)
        if self.store.get_flag(key):
            return
        self.store.set_flag(key)
        logger.info("Marked %s complete (day %s, key %s)", category.value, day_of_study, key)

    def complete_end_of_study(self, task_identifier: str) -> None:
        self.store.set_flag(end_of_study_key(task_identifier))

    def is_end_of_study_complete(self, task_identifier: str) -> bool:
        return self.store.get_flag(end_of_study_key(task_identifier))
