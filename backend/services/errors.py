from __future__ import annotations


class StudyDayOutOfRangeError(ValueError):
    """Raised when a rotation or week lookup is asked about a day before the study started."""

    def __init__(self, day_of_study: int):
        super().__init__(f"Day of study must be 1 or greater (got {day_of_study})")
        self.day_of_study = day_of_study


class UnknownCategoryError(ValueError):
    def __init__(self, name: str):
        super().__init__(f"Unknown activity category '{name}'")
        self.name = name
