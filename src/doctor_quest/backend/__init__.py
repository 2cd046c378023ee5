from .base import AuthCallback, AuthEvent, BackendError, QuizBackend, Subscription
from .factory import create_backend
from .memory import InMemoryBackend

__all__ = [
    "AuthCallback",
    "AuthEvent",
    "BackendError",
    "InMemoryBackend",
    "QuizBackend",
    "Subscription",
    "create_backend",
]
