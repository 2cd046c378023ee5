from __future__ import annotations

import math
from typing import Dict, Optional

from doctor_quest.data_models import Question, UserStats

from .session import SessionState


def accuracy_percent(correct: int, answered: int) -> int:
    """Whole-number percentage of correct answers, rounding halves up; 0 when nothing answered."""
    if answered <= 0:
        return 0
    return int(math.floor(correct / answered * 100 + 0.5))


def progress_label(state: SessionState) -> str:
    if state.total_questions == 0:
        return "No questions"
    return f"Question {state.index + 1} of {state.total_questions}"


def score_label(state: SessionState) -> str:
    return f"Score: {state.score}/{state.answered_count}"


def progress_fraction(state: SessionState) -> float:
    if state.total_questions == 0:
        return 0.0
    return (state.index + 1) / state.total_questions


def correct_answer_label(question: Question) -> str:
    if question.correct_text:
        return f"{question.correct_option} - {question.correct_text}"
    return question.correct_option


def result_message(question: Question, state: SessionState) -> Optional[str]:
    """Feedback line shown once the answer is revealed."""
    correct = state.current_result
    if correct is None:
        return None
    if correct:
        return "Correct!"
    return f"Wrong! The correct answer is: {correct_answer_label(question)}"


def session_summary(state: SessionState) -> Dict[str, int]:
    return {
        "answered": state.answered_count,
        "correct": state.score,
        "accuracy": accuracy_percent(state.score, state.answered_count),
    }


def stats_summary(stats: UserStats) -> Dict[str, int]:
    return {
        "total": stats.total_questions_answered,
        "correct": stats.total_correct_answers,
        "accuracy": accuracy_percent(stats.total_correct_answers, stats.total_questions_answered),
        "current_streak": stats.current_streak,
        "longest_streak": stats.longest_streak,
    }
