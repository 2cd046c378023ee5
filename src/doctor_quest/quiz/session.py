"""Session state for one pass through a question sequence.

The state is an immutable value; every interaction is a function that takes
the current state and returns the next one. Per question the flow is
Unanswered -> Selected -> Revealed, and Revealed only ends through `advance`
or `reset`.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from enum import Enum
from typing import Mapping, Optional, Tuple

from doctor_quest.data_models import Question


class Direction(str, Enum):
    NEXT = "next"
    PREVIOUS = "previous"


@dataclass(frozen=True)
class SessionState:
    """Progress through the loaded questions.

    `results` maps a question index to the correctness of its latest
    submission in this session, so resubmitting a revisited question replaces
    its earlier result instead of counting twice.
    """

    total_questions: int = 0
    index: int = 0
    selected: Optional[str] = None
    revealed: bool = False
    results: Mapping[int, bool] = field(default_factory=dict)

    @property
    def score(self) -> int:
        return sum(1 for correct in self.results.values() if correct)

    @property
    def answered_count(self) -> int:
        return len(self.results)

    @property
    def is_last(self) -> bool:
        return self.index >= self.total_questions - 1

    @property
    def current_result(self) -> Optional[bool]:
        """Correctness of the revealed answer; None while unrevealed."""
        if not self.revealed:
            return None
        return self.results.get(self.index)


def new_session(total_questions: int) -> SessionState:
    return SessionState(total_questions=max(0, total_questions))


def select_answer(state: SessionState, key: str) -> SessionState:
    if state.revealed or state.total_questions == 0:
        return state
    if state.selected == key:
        return state
    return replace(state, selected=key)


def submit_answer(state: SessionState, question: Question) -> Tuple[SessionState, Optional[bool]]:
    """Reveal the result for the current question.

    Returns the next state and the correctness of the submission, or the
    unchanged state and None when there is nothing to submit.
    """
    if state.selected is None or state.revealed or state.total_questions == 0:
        return state, None
    correct = question.is_correct(state.selected)
    results = dict(state.results)
    results[state.index] = correct
    return replace(state, revealed=True, results=results), correct


def advance(state: SessionState, direction: Direction | str) -> SessionState:
    step = 1 if Direction(direction) is Direction.NEXT else -1
    target = state.index + step
    if target < 0 or target >= state.total_questions:
        return state
    return replace(state, index=target, selected=None, revealed=False)


def reset(state: SessionState) -> SessionState:
    return new_session(state.total_questions)
