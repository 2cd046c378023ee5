from .records import OPTION_KEYS, AnswerOption, AnswerRecord, AuthSession, Question, UserStats

__all__ = [
    "OPTION_KEYS",
    "AnswerOption",
    "AnswerRecord",
    "AuthSession",
    "Question",
    "UserStats",
]
