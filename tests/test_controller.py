"""Tests for the quiz controller: scoring, navigation, persistence and stats refresh."""

from __future__ import annotations

import threading
from concurrent.futures import Executor, Future
from typing import List

import pytest

from doctor_quest.backend import BackendError, InMemoryBackend
from doctor_quest.data_models import Question
from doctor_quest.quiz import AnswerRecorder, QuizController
from doctor_quest.utils.executors import ImmediateExecutor


class RecordingBackend(InMemoryBackend):
    """In-memory backend that remembers every write and can be told to fail."""

    def __init__(self, questions=()):
        super().__init__(questions)
        self.upserts: List = []
        self.fail_upsert = False
        self.fail_stats = False
        self.fail_questions = False

    def fetch_questions(self, subject=None):
        if self.fail_questions:
            raise BackendError("timeout")
        return super().fetch_questions(subject)

    def upsert_answer(self, record):
        self.upserts.append(record)
        if self.fail_upsert:
            raise BackendError("permission denied for table user_scores", code="42501")
        super().upsert_answer(record)

    def fetch_user_stats(self, user_id):
        if self.fail_stats:
            raise BackendError("stats unavailable")
        return super().fetch_user_stats(user_id)


class DeferredExecutor(Executor):
    """Holds submitted work until `run_all` is called."""

    def __init__(self):
        self.pending = []

    def submit(self, fn, /, *args, **kwargs):
        future = Future()
        self.pending.append((future, fn, args, kwargs))
        return future

    def run_all(self):
        while self.pending:
            future, fn, args, kwargs = self.pending.pop(0)
            future.set_result(fn(*args, **kwargs))


@pytest.fixture
def recording_backend(questions):
    return RecordingBackend(questions)


@pytest.fixture
def recording_controller(recording_backend):
    quiz = QuizController(
        recording_backend,
        recorder=AnswerRecorder(recording_backend, executor=ImmediateExecutor()),
    )
    quiz.load()
    return quiz


def _sign_in(backend: InMemoryBackend, controller: QuizController) -> str:
    user_id = backend.register_user("student@example.com", "s3cret")
    controller.set_user(user_id)
    return user_id


def test_load_starts_fresh_session(controller):
    assert [question.id for question in controller.questions] == [1, 2, 3, 4, 5]
    assert controller.subjects == ["Anatomy", "Physiology", "Pharmacology"]
    assert controller.state.total_questions == 5
    assert controller.current_question.id == 1
    assert not controller.loading


def test_change_subject_resets_progress(controller):
    controller.select_answer("B")
    controller.submit_answer()
    controller.next()

    assert controller.change_subject("Anatomy")
    assert [question.id for question in controller.questions] == [1, 3]
    assert controller.subject_filter == "Anatomy"
    assert controller.state.index == 0
    assert controller.state.score == 0
    assert controller.state.answered_count == 0
    assert controller.state.selected is None
    assert not controller.state.revealed


def test_failed_load_keeps_previous_questions(recording_backend, recording_controller):
    recording_controller.select_answer("B")
    recording_controller.submit_answer()
    before = recording_controller.state
    recording_backend.fail_questions = True

    assert recording_controller.change_subject("Anatomy") is False
    assert len(recording_controller.questions) == 5
    assert recording_controller.subject_filter == "all"
    assert recording_controller.state == before


def test_correct_submission_scenario():
    backend = InMemoryBackend(
        [Question(id=1, subject="A", option_a="x", option_b="y", option_c="z", correct_option="B")]
    )
    quiz = QuizController(backend, recorder=AnswerRecorder(backend, executor=ImmediateExecutor()))
    quiz.load()

    quiz.select_answer("B")
    assert quiz.submit_answer() is True
    assert quiz.state.revealed
    assert quiz.state.score == 1
    assert quiz.state.answered_count == 1


def test_wrong_submission_scenario():
    backend = InMemoryBackend(
        [Question(id=1, subject="A", option_a="x", option_b="y", option_c="z", correct_option="B")]
    )
    quiz = QuizController(backend, recorder=AnswerRecorder(backend, executor=ImmediateExecutor()))
    quiz.load()

    quiz.select_answer("C")
    assert quiz.submit_answer() is False
    assert quiz.state.score == 0
    assert quiz.state.answered_count == 1
    assert quiz.current_question.correct_option == "B"


def test_signed_out_submission_writes_nothing(recording_backend, recording_controller):
    recording_controller.select_answer("B")
    assert recording_controller.submit_answer() is True

    assert recording_backend.upserts == []
    assert recording_controller.last_write is None
    assert recording_controller.state.score == 1
    assert recording_controller.state.answered_count == 1


def test_signed_in_submission_upserts_and_refreshes_stats(recording_backend, recording_controller):
    user_id = _sign_in(recording_backend, recording_controller)
    assert recording_controller.stats is None

    recording_controller.select_answer("C")
    recording_controller.submit_answer()

    [record] = recording_backend.upserts
    assert record.user_id == user_id
    assert record.question_id == "1"
    assert record.subject == "Anatomy"
    assert record.is_correct is False
    assert recording_controller.last_write.result() is True

    stats = recording_controller.stats
    assert stats.total_questions_answered == 1
    assert stats.total_correct_answers == 0


def test_submission_without_selection_does_nothing(recording_backend, recording_controller):
    _sign_in(recording_backend, recording_controller)
    before = recording_controller.state

    assert recording_controller.submit_answer() is None
    assert recording_controller.state == before
    assert recording_backend.upserts == []


def test_answers_locked_after_submission(recording_backend, recording_controller):
    _sign_in(recording_backend, recording_controller)
    recording_controller.select_answer("A")
    recording_controller.submit_answer()
    revealed = recording_controller.state

    recording_controller.select_answer("B")
    assert recording_controller.submit_answer() is None
    assert recording_controller.state == revealed
    assert len(recording_backend.upserts) == 1


def test_unknown_option_is_rejected(controller):
    with pytest.raises(ValueError):
        controller.select_answer("E")  # question 1 only has four options
    assert controller.state.selected is None


def test_unknown_option_ignored_once_revealed(controller):
    controller.select_answer("B")
    controller.submit_answer()
    assert controller.select_answer("Z") == controller.state


def test_blank_options_are_hidden():
    question = Question(
        id=7,
        subject="A",
        option_a="yes",
        option_b="   ",
        option_c="",
        option_d=None,
        option_e="no",
        correct_option="A",
    )
    assert [option.key for option in question.options()] == ["A", "E"]


def test_write_failure_keeps_result_and_skips_refresh(recording_backend, recording_controller, caplog):
    _sign_in(recording_backend, recording_controller)
    recording_backend.fail_upsert = True

    recording_controller.select_answer("B")
    with caplog.at_level("ERROR"):
        assert recording_controller.submit_answer() is True

    assert recording_controller.state.revealed
    assert recording_controller.state.score == 1
    assert recording_controller.last_write.result() is False
    assert recording_controller.stats is None
    assert "Error saving score" in caplog.text


def test_stats_failure_is_logged_and_keeps_snapshot(recording_backend, recording_controller, caplog):
    _sign_in(recording_backend, recording_controller)
    recording_controller.select_answer("B")
    recording_controller.submit_answer()
    snapshot = recording_controller.stats
    recording_backend.fail_stats = True

    recording_controller.next()
    recording_controller.select_answer("A")
    with caplog.at_level("ERROR"):
        recording_controller.submit_answer()

    assert recording_controller.stats == snapshot
    assert "Error fetching user stats" in caplog.text


def test_writes_do_not_block_submission(questions):
    backend = RecordingBackend(questions)
    executor = DeferredExecutor()
    quiz = QuizController(backend, recorder=AnswerRecorder(backend, executor=executor))
    quiz.load()
    _sign_in(backend, quiz)

    quiz.select_answer("B")
    assert quiz.submit_answer() is True
    assert quiz.state.revealed
    assert backend.upserts == []
    assert not quiz.last_write.done()

    executor.run_all()
    assert len(backend.upserts) == 1
    assert quiz.stats.total_correct_answers == 1


def test_stale_stats_for_signed_out_user_are_discarded(questions):
    backend = RecordingBackend(questions)
    executor = DeferredExecutor()
    quiz = QuizController(backend, recorder=AnswerRecorder(backend, executor=executor))
    quiz.load()
    _sign_in(backend, quiz)

    quiz.select_answer("B")
    quiz.submit_answer()
    quiz.set_user(None)
    executor.run_all()

    assert len(backend.upserts) == 1
    assert quiz.stats is None


def test_navigation_and_reset(controller):
    controller.previous()
    assert controller.state.index == 0

    controller.select_answer("B")
    controller.submit_answer()
    controller.next()
    assert controller.state.index == 1
    assert controller.state.selected is None
    assert not controller.state.revealed

    for _ in range(10):
        controller.next()
    assert controller.state.index == 4
    assert controller.state.is_last

    controller.reset()
    assert controller.state.index == 0
    assert controller.state.score == 0
    assert controller.state.answered_count == 0
    assert len(controller.questions) == 5


def test_empty_bank_has_no_current_question():
    quiz = QuizController(InMemoryBackend(), recorder=AnswerRecorder(InMemoryBackend(), ImmediateExecutor()))
    assert quiz.load()
    assert quiz.current_question is None
    assert quiz.visible_options() == []
    assert quiz.select_answer("A") == quiz.state
    assert quiz.submit_answer() is None


class GatedBackend(RecordingBackend):
    """Answer writes block until `release` is set."""

    def __init__(self, questions=()):
        super().__init__(questions)
        self.release = threading.Event()

    def upsert_answer(self, record):
        self.release.wait(timeout=5)
        super().upsert_answer(record)


def test_wait_for_write_exposes_refreshed_stats(questions):
    backend = GatedBackend(questions)
    quiz = QuizController(backend)
    quiz.load()
    assert quiz.wait_for_write(timeout=0) is True

    _sign_in(backend, quiz)
    quiz.select_answer("B")
    quiz.submit_answer()

    assert quiz.wait_for_write(timeout=0.01) is False
    assert quiz.stats is None

    backend.release.set()
    assert quiz.wait_for_write(timeout=5) is True
    assert quiz.stats.total_correct_answers == 1
    quiz.close()
