from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Callable, List, Optional, Protocol

from doctor_quest.data_models import AnswerRecord, AuthSession, Question, UserStats

AuthCallback = Callable[[str, Optional[AuthSession]], None]


class AuthEvent:
    """Auth-state event names delivered to subscribers."""

    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"


class BackendError(RuntimeError):
    """Raised when the backend rejects a request or cannot be reached."""

    def __init__(self, message: str, code: Optional[str] = None):
        super().__init__(message)
        self.code = code


class Subscription(Protocol):
    def unsubscribe(self) -> None:
        ...


class QuizBackend(ABC):
    """Abstract interface for the service holding questions, results and identities."""

    @abstractmethod
    def fetch_questions(self, subject: Optional[str] = None) -> List[Question]:
        """Return questions ordered by ascending id, filtered on subject when given."""

    @abstractmethod
    def upsert_answer(self, record: AnswerRecord) -> None:
        """Insert or replace the result keyed on (user_id, question_id)."""

    @abstractmethod
    def fetch_user_stats(self, user_id: str) -> Optional[UserStats]:
        """Return the user's aggregate statistics, or None when no history exists."""

    @abstractmethod
    def get_session(self) -> Optional[AuthSession]:
        """Return the currently persisted session, if any."""

    @abstractmethod
    def on_auth_state_change(self, callback: AuthCallback) -> Subscription:
        """Register for (event, session) notifications; unsubscribe via the handle."""

    @abstractmethod
    def sign_in(self, email: str, password: str) -> AuthSession:
        """Authenticate with email and password."""

    @abstractmethod
    def sign_up(self, email: str, password: str) -> Optional[AuthSession]:
        """Create an account; returns the session when the provider signs the user in directly."""

    @abstractmethod
    def sign_out(self) -> None:
        """End the current session."""
