from __future__ import annotations

import logging
from typing import Optional

from doctor_quest.backend import AuthEvent, BackendError, QuizBackend, Subscription
from doctor_quest.data_models import AuthSession
from doctor_quest.quiz.controller import QuizController

logger = logging.getLogger(__name__)


class AuthStatsBridge:
    """
    Keep the controller's user and statistics in step with the identity provider.

    `mount` subscribes to auth-state changes and applies the session that is
    already persisted; each notification then sets or clears the user on the
    controller, which loads or drops the statistics snapshot. `teardown`
    releases the subscription. Mounting an already mounted bridge does nothing,
    so a page that re-runs never stacks listeners.
    """

    def __init__(self, backend: QuizBackend, controller: QuizController):
        self.backend = backend
        self.controller = controller
        self._subscription: Optional[Subscription] = None

    @property
    def mounted(self) -> bool:
        return self._subscription is not None

    def mount(self) -> None:
        if self._subscription is not None:
            return
        self._subscription = self.backend.on_auth_state_change(self.handle_event)
        try:
            session = self.backend.get_session()
        except BackendError as exc:
            logger.error("Error reading current session: %s", exc)
            session = None
        self.handle_event(AuthEvent.INITIAL_SESSION, session)

    def handle_event(self, event: str, session: Optional[AuthSession]) -> None:
        logger.debug("Auth event %s (signed_in=%s)", event, session is not None)
        if session is None:
            self.controller.set_user(None)
        else:
            self.controller.set_user(session.user_id)

    def teardown(self) -> None:
        if self._subscription is None:
            return
        self._subscription.unsubscribe()
        self._subscription = None

    def __enter__(self) -> "AuthStatsBridge":
        self.mount()
        return self

    def __exit__(self, *exc_info) -> None:
        self.teardown()
