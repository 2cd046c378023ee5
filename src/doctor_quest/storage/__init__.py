from .jsonl_store import QuestionJsonlStore

__all__ = ["QuestionJsonlStore"]
