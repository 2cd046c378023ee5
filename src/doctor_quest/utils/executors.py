from __future__ import annotations

from concurrent.futures import Executor, Future
from typing import Any, Callable


class ImmediateExecutor(Executor):
    """Executor that runs each task on the submitting thread before returning."""

    def submit(self, fn: Callable[..., Any], /, *args: Any, **kwargs: Any) -> Future:
        future: Future = Future()
        try:
            result = fn(*args, **kwargs)
        except Exception as exc:
            future.set_exception(exc)
        else:
            future.set_result(result)
        return future
