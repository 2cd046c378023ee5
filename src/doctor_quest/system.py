from __future__ import annotations

import logging
import weakref
from concurrent.futures import Executor
from pathlib import Path
from typing import Optional, Tuple

from doctor_quest.auth import AuthStatsBridge
from doctor_quest.backend import QuizBackend, create_backend
from doctor_quest.config import Settings, load_settings
from doctor_quest.data_models import AuthSession
from doctor_quest.quiz import AnswerRecorder, QuizController
from doctor_quest.storage import QuestionJsonlStore
from doctor_quest.utils.logging import configure_logging

logger = logging.getLogger(__name__)


class QuizSystem:
    """
    Facade wiring configuration, the backend handle and per-session objects.

    Both the Streamlit page and the CLI go through this class. It holds one
    backend handle; every viewer gets its own `QuizController` and
    `AuthStatsBridge` from `start_session`.

    Attributes
    ----------
    settings : Settings
        Configuration loaded from YAML (see config/default.yaml).
    backend : QuizBackend
        Supabase or in-memory backend, injected or created from settings.
    """

    def __init__(self, settings: Settings, backend: Optional[QuizBackend] = None):
        """
        Parameters
        ----------
        settings : Settings
            Validated configuration.
        backend : QuizBackend | None
            Backend to use instead of the one named by `settings.backend.provider`;
            tests pass an `InMemoryBackend` here.

        Raises
        ------
        ValueError
            If no backend is given and the configured one cannot be created.
        """
        self.settings = settings
        configure_logging(
            settings.logging.level,
            settings.logging.use_json,
            settings.paths.logs_dir,
        )
        self.backend = backend or create_backend(settings)

    @classmethod
    def from_config(
        cls,
        config_path: str | Path | None = None,
        backend: Optional[QuizBackend] = None,
    ) -> "QuizSystem":
        """Load settings from YAML (config/default.yaml by default) and build the system."""
        settings = load_settings(config_path)
        return cls(settings, backend=backend)

    def create_controller(self, executor: Optional[Executor] = None) -> QuizController:
        recorder = AnswerRecorder(self.backend, executor=executor)
        return QuizController(
            self.backend,
            all_subjects=self.settings.quiz.all_subjects,
            recorder=recorder,
        )

    def start_session(
        self,
        subject_filter: Optional[str] = None,
        executor: Optional[Executor] = None,
    ) -> Tuple[QuizController, AuthStatsBridge]:
        """Create a controller, load its questions and mount its auth bridge."""
        controller = self.create_controller(executor=executor)
        controller.load(subject_filter)
        bridge = AuthStatsBridge(self.backend, controller)
        bridge.mount()
        return controller, bridge

    def release_on_collect(
        self, controller: QuizController, bridge: AuthStatsBridge
    ) -> weakref.finalize:
        """
        End a viewer session once this system is garbage collected.

        Hosts without a session-end hook (Streamlit drops `st.session_state`
        when the browser tab goes away) use this to release the auth listener
        and the answer-writer thread together with the system that owns them.
        """
        return weakref.finalize(self, end_session, controller, bridge)

    def sign_in(self, email: str, password: str) -> AuthSession:
        return self.backend.sign_in(email, password)

    def sign_up(self, email: str, password: str) -> Optional[AuthSession]:
        return self.backend.sign_up(email, password)

    def sign_out(self) -> None:
        self.backend.sign_out()

    def export_questions(self, destination: Path, subject_filter: Optional[str] = None) -> int:
        """
        Snapshot questions from the backend into a JSONL file.

        The file can seed the in-memory backend (`backend.provider: memory`).
        Rows already present in the file are replaced by id.

        Returns
        -------
        int
            Number of questions written by this call.

        Raises
        ------
        BackendError
            If the backend query fails.
        """
        requested = subject_filter or self.settings.quiz.all_subjects
        subject = None if requested == self.settings.quiz.all_subjects else requested
        questions = self.backend.fetch_questions(subject)
        QuestionJsonlStore(destination).upsert(questions)
        logger.info("Exported %d questions to %s", len(questions), destination)
        return len(questions)


def end_session(controller: QuizController, bridge: AuthStatsBridge) -> None:
    """Unsubscribe the bridge and stop the controller's writer without waiting on it."""
    bridge.teardown()
    controller.close(wait=False)

