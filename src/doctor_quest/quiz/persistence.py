from __future__ import annotations

import logging
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from typing import Callable, Optional

from doctor_quest.backend import BackendError, QuizBackend
from doctor_quest.data_models import AnswerRecord

logger = logging.getLogger(__name__)

OnSaved = Callable[[str], object]


class AnswerRecorder:
    """
    Write answer records off the caller's thread.

    The default executor has a single worker, so writes for a session reach the
    backend in submission order. A failed write is logged and the `on_saved`
    follow-up (the stats refresh) is skipped; nothing is retried.
    """

    def __init__(self, backend: QuizBackend, executor: Optional[Executor] = None):
        self.backend = backend
        self._owns_executor = executor is None
        self._executor = executor or ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="answer-writer"
        )

    def submit(self, record: AnswerRecord, on_saved: Optional[OnSaved] = None) -> Future:
        return self._executor.submit(self._write, record, on_saved)

    def _write(self, record: AnswerRecord, on_saved: Optional[OnSaved]) -> bool:
        try:
            self.backend.upsert_answer(record)
        except BackendError as exc:
            logger.error(
                "Error saving score for user %s question %s: %s",
                record.user_id,
                record.question_id,
                exc,
            )
            return False
        if on_saved is not None:
            on_saved(record.user_id)
        return True

    def close(self, wait: bool = True) -> None:
        if self._owns_executor:
            self._executor.shutdown(wait=wait)
