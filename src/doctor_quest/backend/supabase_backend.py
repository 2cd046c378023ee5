from __future__ import annotations

import logging
from typing import Any, List, Optional

import httpx
from pydantic import ValidationError
from supabase import AuthError, Client, PostgrestAPIError, create_client

from doctor_quest.config.schema import BackendConfig
from doctor_quest.data_models import AnswerRecord, AuthSession, Question, UserStats

from .base import AuthCallback, BackendError, QuizBackend, Subscription

logger = logging.getLogger(__name__)

# PostgREST answers `.single()` with this code when the filter matched no rows.
NO_ROWS_CODE = "PGRST116"
ANSWER_CONFLICT_TARGET = "user_id,question_id"


def _to_auth_session(session: Any) -> Optional[AuthSession]:
    if session is None or getattr(session, "user", None) is None:
        return None
    return AuthSession(
        user_id=str(session.user.id),
        email=getattr(session.user, "email", None),
        access_token=getattr(session, "access_token", None),
    )


class SupabaseBackend(QuizBackend):
    """Backend served by a Supabase project (PostgREST tables + GoTrue auth)."""

    def __init__(self, client: Client, config: BackendConfig | None = None):
        self.client = client
        self.config = config or BackendConfig()

    @classmethod
    def from_config(cls, config: BackendConfig) -> "SupabaseBackend":
        """Create the Supabase client from project URL and anonymous key."""
        if not config.url or not config.anon_key:
            raise ValueError(
                "Supabase URL and anon key are required. Set backend.url/backend.anon_key "
                "or SUPABASE_URL/SUPABASE_ANON_KEY."
            )
        return cls(create_client(config.url, config.anon_key), config)

    def fetch_questions(self, subject: Optional[str] = None) -> List[Question]:
        query = (
            self.client.table(self.config.questions_table)
            .select("*")
            .order("id", desc=False)
        )
        if subject is not None:
            query = query.eq("subject", subject)
        try:
            response = query.execute()
            return [Question.model_validate(row) for row in response.data or []]
        except PostgrestAPIError as exc:
            raise BackendError(f"Question query failed: {exc.message}", code=exc.code) from exc
        except httpx.HTTPError as exc:
            raise BackendError(f"Question query failed: {exc}") from exc
        except ValidationError as exc:
            raise BackendError(f"Question row has unexpected shape: {exc}") from exc

    def upsert_answer(self, record: AnswerRecord) -> None:
        try:
            (
                self.client.table(self.config.answers_table)
                .upsert(record.to_row(), on_conflict=ANSWER_CONFLICT_TARGET)
                .execute()
            )
        except PostgrestAPIError as exc:
            raise BackendError(f"Answer upsert failed: {exc.message}", code=exc.code) from exc
        except httpx.HTTPError as exc:
            raise BackendError(f"Answer upsert failed: {exc}") from exc

    def fetch_user_stats(self, user_id: str) -> Optional[UserStats]:
        try:
            response = (
                self.client.table(self.config.stats_table)
                .select("*")
                .eq("user_id", user_id)
                .single()
                .execute()
            )
        except PostgrestAPIError as exc:
            if exc.code == NO_ROWS_CODE:
                return None
            raise BackendError(f"Stats query failed: {exc.message}", code=exc.code) from exc
        except httpx.HTTPError as exc:
            raise BackendError(f"Stats query failed: {exc}") from exc
        if not response.data:
            return None
        try:
            return UserStats.model_validate(response.data)
        except ValidationError as exc:
            raise BackendError(f"Stats row has unexpected shape: {exc}") from exc

    def get_session(self) -> Optional[AuthSession]:
        try:
            return _to_auth_session(self.client.auth.get_session())
        except AuthError as exc:
            raise BackendError(f"Session lookup failed: {exc}") from exc

    def on_auth_state_change(self, callback: AuthCallback) -> Subscription:
        def relay(event: str, session: Any) -> None:
            callback(str(event), _to_auth_session(session))

        return self.client.auth.on_auth_state_change(relay)

    def sign_in(self, email: str, password: str) -> AuthSession:
        try:
            response = self.client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except AuthError as exc:
            raise BackendError(f"Sign-in failed: {exc}") from exc
        session = _to_auth_session(response.session)
        if session is None:
            raise BackendError("Sign-in returned no session; is the email confirmed?")
        logger.info("Signed in user %s", session.user_id)
        return session

    def sign_up(self, email: str, password: str) -> Optional[AuthSession]:
        try:
            response = self.client.auth.sign_up({"email": email, "password": password})
        except AuthError as exc:
            raise BackendError(f"Sign-up failed: {exc}") from exc
        # None while the project waits for email confirmation.
        return _to_auth_session(response.session)

    def sign_out(self) -> None:
        try:
            self.client.auth.sign_out()
        except AuthError as exc:
            raise BackendError(f"Sign-out failed: {exc}") from exc
