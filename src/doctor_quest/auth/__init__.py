from .bridge import AuthStatsBridge

__all__ = ["AuthStatsBridge"]
