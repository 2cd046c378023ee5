from __future__ import annotations

import logging
import threading
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Iterable, List, Optional, Tuple

from doctor_quest.data_models import AnswerRecord, AuthSession, Question, UserStats
from doctor_quest.storage import QuestionJsonlStore

from .base import AuthCallback, AuthEvent, BackendError, QuizBackend

logger = logging.getLogger(__name__)


class _MemorySubscription:
    def __init__(self, backend: "InMemoryBackend", callback: AuthCallback):
        self._backend = backend
        self.callback = callback

    def unsubscribe(self) -> None:
        self._backend._remove_listener(self)


class InMemoryBackend(QuizBackend):
    """
    Process-local backend for offline use and tests.

    Mirrors the hosted service closely enough for the quiz: questions come back
    ordered by id, answer records are unique per (user, question), and the
    statistics row is maintained on every upsert the way a database trigger
    would: totals are recounted from the stored records, the streak counters
    follow the order in which results arrived.
    """

    def __init__(self, questions: Iterable[Question] = ()):
        self._lock = threading.Lock()
        self._questions: Dict[int, Question] = {question.id: question for question in questions}
        self._answers: Dict[Tuple[str, str], AnswerRecord] = {}
        self._stats: Dict[str, UserStats] = {}
        self._users: Dict[str, Tuple[str, str]] = {}
        self._session: Optional[AuthSession] = None
        self._listeners: List[_MemorySubscription] = []

    @classmethod
    def from_jsonl(cls, path: Path) -> "InMemoryBackend":
        questions = QuestionJsonlStore(path).load()
        logger.info("Loaded %d questions from %s", len(questions), path)
        return cls(questions)

    # ------------------------------------------------------------------ tables
    def fetch_questions(self, subject: Optional[str] = None) -> List[Question]:
        with self._lock:
            ordered = [self._questions[key] for key in sorted(self._questions)]
        if subject is None:
            return ordered
        return [question for question in ordered if question.subject == subject]

    def upsert_answer(self, record: AnswerRecord) -> None:
        with self._lock:
            self._answers[(record.user_id, record.question_id)] = record
            self._stats[record.user_id] = self._next_stats(record)

    def _next_stats(self, record: AnswerRecord) -> UserStats:
        previous = self._stats.get(record.user_id) or UserStats(user_id=record.user_id)
        user_records = [
            stored for (user_id, _), stored in self._answers.items() if user_id == record.user_id
        ]
        current = previous.current_streak + 1 if record.is_correct else 0
        return UserStats(
            user_id=record.user_id,
            total_questions_answered=len(user_records),
            total_correct_answers=sum(1 for stored in user_records if stored.is_correct),
            current_streak=current,
            longest_streak=max(previous.longest_streak, current),
            last_answered_at=datetime.now(timezone.utc),
        )

    def fetch_user_stats(self, user_id: str) -> Optional[UserStats]:
        with self._lock:
            stats = self._stats.get(user_id)
        return stats.model_copy() if stats is not None else None

    def answer_records(self, user_id: Optional[str] = None) -> List[AnswerRecord]:
        """Snapshot of stored answer records, optionally for one user."""
        with self._lock:
            records = list(self._answers.values())
        if user_id is None:
            return records
        return [record for record in records if record.user_id == user_id]

    # -------------------------------------------------------------------- auth
    def register_user(self, email: str, password: str) -> str:
        """Create an account and return its user id."""
        with self._lock:
            if email in self._users:
                raise ValueError(f"User already registered: {email}")
            user_id = str(uuid.uuid4())
            self._users[email] = (password, user_id)
        return user_id

    def get_session(self) -> Optional[AuthSession]:
        with self._lock:
            return self._session

    def on_auth_state_change(self, callback: AuthCallback) -> _MemorySubscription:
        subscription = _MemorySubscription(self, callback)
        with self._lock:
            self._listeners.append(subscription)
        return subscription

    @property
    def listener_count(self) -> int:
        with self._lock:
            return len(self._listeners)

    def _remove_listener(self, subscription: _MemorySubscription) -> None:
        with self._lock:
            if subscription in self._listeners:
                self._listeners.remove(subscription)

    def _emit(self, event: str, session: Optional[AuthSession]) -> None:
        with self._lock:
            listeners = list(self._listeners)
        for listener in listeners:
            listener.callback(event, session)

    def sign_in(self, email: str, password: str) -> AuthSession:
        with self._lock:
            account = self._users.get(email)
            if account is None or account[0] != password:
                raise BackendError("Invalid login credentials", code="invalid_credentials")
            session = AuthSession(user_id=account[1], email=email)
            self._session = session
        # Listeners may call back into the backend, so they run outside the lock.
        self._emit(AuthEvent.SIGNED_IN, session)
        return session

    def sign_up(self, email: str, password: str) -> AuthSession:
        try:
            self.register_user(email, password)
        except ValueError as exc:
            raise BackendError(str(exc), code="user_already_exists") from exc
        return self.sign_in(email, password)

    def sign_out(self) -> None:
        with self._lock:
            self._session = None
        self._emit(AuthEvent.SIGNED_OUT, None)
