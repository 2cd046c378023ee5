"""Shared fixtures: an in-memory backend seeded with a small bank and controllers over it."""

from __future__ import annotations

from typing import List

import pytest

from doctor_quest.backend import InMemoryBackend
from doctor_quest.data_models import Question
from doctor_quest.quiz import AnswerRecorder, QuizController
from doctor_quest.utils.executors import ImmediateExecutor


def make_question(
    question_id: int,
    subject: str,
    correct: str,
    options: int = 4,
) -> Question:
    texts = {
        f"option_{key}": f"{subject} option {key.upper()}"
        for key in "abcde"[:options]
    }
    return Question(
        id=question_id,
        subject=subject,
        question_text=f"{subject} question {question_id}?",
        correct_option=correct,
        correct_text=f"{subject} option {correct}",
        **texts,
    )


@pytest.fixture
def questions() -> List[Question]:
    """Five questions over three subjects, deliberately stored out of id order."""
    return [
        make_question(3, "Anatomy", "C"),
        make_question(1, "Anatomy", "B"),
        make_question(2, "Physiology", "A"),
        make_question(5, "Pharmacology", "D"),
        make_question(4, "Physiology", "E", options=5),
    ]


@pytest.fixture
def backend(questions) -> InMemoryBackend:
    return InMemoryBackend(questions)


@pytest.fixture
def controller(backend) -> QuizController:
    """Controller whose answer writes complete before `submit_answer` returns."""
    quiz = QuizController(backend, recorder=AnswerRecorder(backend, executor=ImmediateExecutor()))
    quiz.load()
    yield quiz
    quiz.close()


@pytest.fixture
def signed_in_user(backend) -> str:
    """Register and sign in a user; returns the user id."""
    user_id = backend.register_user("student@example.com", "s3cret")
    backend.sign_in("student@example.com", "s3cret")
    return user_id
