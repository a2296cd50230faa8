from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Union

from services.activity_types import TaskIdentifier


HAND_SELECTION_KEY = "handSelection"
HAND_LEFT = "left"
HAND_RIGHT = "right"
HAND_BOTH = "both"
MOTION_RESULT_IDENTIFIER = "motion"

# Identifiers the dual-hand tremor task is known by.
_RESTING_KINETIC_TREMOR_IDS = {
    TaskIdentifier.RESTING_KINETIC_TREMOR,
    "restingKineticTremorTask",
}

_HAND_REQUIREMENTS: dict[str, tuple[tuple[str, str], ...]] = {
    HAND_LEFT: (
        ("restingLeft", "Missing required left resting motion file result"),
        ("kineticLeft", "Missing required left kinetic motion file result"),
    ),
    HAND_RIGHT: (
        ("restingRight", "Missing required right resting motion file result"),
        ("kineticRight", "Missing required right kinetic motion file result"),
    ),
}


@dataclass
class AnswerResult:
    identifier: str
    value: Any = None
    answer_type: str = "string"


@dataclass
class FileResult:
    identifier: str
    url: str | None = None
    content_type: str | None = None


@dataclass
class TaskResult:
    identifier: str
    step_history: list["Result"] = field(default_factory=list)
    async_results: list["Result"] = field(default_factory=list)

    def find_result(self, identifier: str) -> "Result | None":
        for result in reversed(self.step_history):
            if result.identifier == identifier:
                return result
        for result in reversed(self.async_results):
            if result.identifier == identifier:
                return result
        return None

    def find_answer_result(self, identifier: str) -> AnswerResult | None:
        for result in reversed(self.step_history):
            if isinstance(result, AnswerResult) and result.identifier == identifier:
                return result
            if isinstance(result, TaskResult):
                nested = result.find_answer_result(identifier)
                if nested is not None:
                    return nested
        return None


Result = Union[AnswerResult, FileResult, TaskResult]


@dataclass(frozen=True)
class ValidationResult:
    is_valid: bool
    error_message: str | None = None


VALID = ValidationResult(is_valid=True)


def _child_list(data: dict[str, Any], key: str) -> list[Any]:
    children = data.get(key) or []
    if not isinstance(children, list):
        raise ValueError(f"'{key}' must be a list")
    return children


def result_from_dict(data: dict[str, Any]) -> Result:
    """Build a result tree from its JSON form (``type`` is task, answer or file)."""
    if not isinstance(data, dict):
        raise ValueError(f"Result entries must be objects (got {type(data).__name__})")
    kind = str(data.get("type") or "task").strip().lower()
    identifier = str(data.get("identifier") or "")
    if kind == "answer":
        return AnswerResult(
            identifier=identifier,
            value=data.get("value"),
            answer_type=str(data.get("answer_type") or "string"),
        )
    if kind == "file":
        return FileResult(
            identifier=identifier,
            url=data.get("url"),
            content_type=data.get("content_type"),
        )
    if kind == "task":
        return TaskResult(
            identifier=identifier,
            step_history=[result_from_dict(item) for item in _child_list(data, "step_history")],
            async_results=[result_from_dict(item) for item in _child_list(data, "async_results")],
        )
    raise ValueError(f"Unsupported result type '{kind}'")


def _has_nested_motion_result(task_result: TaskResult, sub_task_identifier: str) -> bool:
    sub_task = task_result.find_result(sub_task_identifier)
    if not isinstance(sub_task, TaskResult):
        return False
    motion = next((r for r in sub_task.async_results if r.identifier == MOTION_RESULT_IDENTIFIER), None)
    return isinstance(motion, FileResult)


def _validate_resting_kinetic_tremor(task_result: TaskResult) -> ValidationResult:
    answer = task_result.find_answer_result(HAND_SELECTION_KEY)
    if answer is None or not isinstance(answer.value, str):
        return ValidationResult(False, "Missing hand selection answer result")

    hands: list[str] = []
    if answer.value in {HAND_LEFT, HAND_BOTH}:
        hands.append(HAND_LEFT)
    if answer.value in {HAND_RIGHT, HAND_BOTH}:
        hands.append(HAND_RIGHT)

    for hand in hands:
        for sub_task_identifier, message in _HAND_REQUIREMENTS[hand]:
            if not _has_nested_motion_result(task_result, sub_task_identifier):
                return ValidationResult(False, message)
    return VALID


def validate(task_result: TaskResult, identifier: str | None = None) -> ValidationResult:
    """
    Decide whether a finished task is complete enough to upload.

    Only the dual-hand tremor task has structural requirements: the hand
    selection answer plus resting and kinetic motion files for every selected
    hand. Other tasks are accepted as-is.
    """
    task_id = identifier or task_result.identifier
    if task_id in _RESTING_KINETIC_TREMOR_IDS:
        return _validate_resting_kinetic_tremor(task_result)
    return VALID
