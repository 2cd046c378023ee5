from __future__ import annotations

import logging
import threading
from concurrent.futures import Future
from concurrent.futures import TimeoutError as FutureTimeoutError
from typing import List, Optional

from doctor_quest.backend import BackendError, QuizBackend
from doctor_quest.data_models import AnswerOption, AnswerRecord, Question, UserStats

from . import session as transitions
from .loader import QuestionFeedLoader
from .persistence import AnswerRecorder
from .session import Direction, SessionState

logger = logging.getLogger(__name__)


class QuizController:
    """
    Owns the question sequence, the session state and the signed-in user.

    Interaction methods (`select_answer`, `submit_answer`, `advance`, `reset`)
    only replace `state`; the answer write and the statistics refresh that
    follows it run through the `AnswerRecorder` and never block the caller.

    Attributes
    ----------
    questions : List[Question]
        Sequence from the last successful load, ascending by id.
    subjects : List[str]
        Distinct subjects of that sequence, in order of first appearance.
    subject_filter : str
        Filter used for the last successful load.
    state : SessionState
        Current session progress.
    last_write : Future | None
        Handle of the most recent answer write, if one was issued.
    """

    def __init__(
        self,
        backend: QuizBackend,
        *,
        all_subjects: str = "all",
        recorder: Optional[AnswerRecorder] = None,
    ):
        self.backend = backend
        self.all_subjects = all_subjects
        self.loader = QuestionFeedLoader(backend, all_subjects)
        self.recorder = recorder or AnswerRecorder(backend)
        self.questions: List[Question] = []
        self.subjects: List[str] = []
        self.subject_filter = all_subjects
        self.state: SessionState = transitions.new_session(0)
        self.loading = False
        self.last_write: Optional[Future] = None
        self._lock = threading.Lock()
        self._user_id: Optional[str] = None
        self._stats: Optional[UserStats] = None

    # ---------------------------------------------------------------- loading
    def load(self, subject_filter: Optional[str] = None) -> bool:
        """Fetch questions for the filter and start a fresh session; False if the fetch failed."""
        self.loading = True
        try:
            feed = self.loader.fetch_questions(subject_filter or self.all_subjects)
        finally:
            self.loading = False
        if feed is None:
            return False
        self.questions = feed.questions
        self.subjects = feed.subjects
        self.subject_filter = feed.subject_filter
        self.state = transitions.new_session(len(feed.questions))
        return True

    def change_subject(self, subject_filter: str) -> bool:
        return self.load(subject_filter)

    @property
    def current_question(self) -> Optional[Question]:
        if not self.questions:
            return None
        return self.questions[self.state.index]

    def visible_options(self) -> List[AnswerOption]:
        question = self.current_question
        return question.options() if question is not None else []

    # ------------------------------------------------------------ interaction
    def select_answer(self, key: str) -> SessionState:
        question = self.current_question
        if question is None or self.state.revealed:
            return self.state
        if key not in question.option_keys():
            raise ValueError(f"Option {key!r} is not offered for question {question.id}")
        self.state = transitions.select_answer(self.state, key)
        return self.state

    def submit_answer(self) -> Optional[bool]:
        """Reveal the result; returns its correctness, or None when nothing was submitted."""
        question = self.current_question
        if question is None:
            return None
        next_state, correct = transitions.submit_answer(self.state, question)
        if correct is None:
            return None
        self.state = next_state

        user_id = self.user_id
        if user_id is not None:
            record = AnswerRecord.for_question(user_id, question, correct)
            self.last_write = self.recorder.submit(record, on_saved=self.refresh_stats)
        return correct

    def advance(self, direction: Direction | str) -> SessionState:
        self.state = transitions.advance(self.state, direction)
        return self.state

    def next(self) -> SessionState:
        return self.advance(Direction.NEXT)

    def previous(self) -> SessionState:
        return self.advance(Direction.PREVIOUS)

    def reset(self) -> SessionState:
        self.state = transitions.reset(self.state)
        return self.state

    # ------------------------------------------------------------ user/stats
    @property
    def user_id(self) -> Optional[str]:
        with self._lock:
            return self._user_id

    @property
    def stats(self) -> Optional[UserStats]:
        with self._lock:
            return self._stats

    def set_user(self, user_id: Optional[str]) -> None:
        """
        Record the signed-in user and load their statistics, or clear both on sign-out.

        A different user never inherits the previous snapshot, even when their
        own statistics cannot be read.
        """
        with self._lock:
            if user_id != self._user_id:
                self._stats = None
            self._user_id = user_id
        if user_id is not None:
            self.refresh_stats(user_id)

    def refresh_stats(self, user_id: Optional[str] = None) -> Optional[UserStats]:
        """Re-read the user's statistics; failures are logged and leave the snapshot as it was."""
        target = user_id or self.user_id
        if target is None:
            return None
        try:
            stats = self.backend.fetch_user_stats(target)
        except BackendError as exc:
            logger.error("Error fetching user stats for %s: %s", target, exc)
            return None
        with self._lock:
            if self._user_id != target:
                logger.debug("Discarding stats for %s; active user changed", target)
                return None
            self._stats = stats
        return stats

    def wait_for_write(self, timeout: Optional[float] = None) -> bool:
        """Block until the latest answer write and its stats refresh finish; False on timeout."""
        pending = self.last_write
        if pending is None:
            return True
        try:
            pending.result(timeout=timeout)
        except FutureTimeoutError:
            logger.warning("Answer write still pending after %ss", timeout)
            return False
        return True

    def close(self, wait: bool = True) -> None:
        self.recorder.close(wait=wait)
