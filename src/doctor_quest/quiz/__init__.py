from .controller import QuizController
from .loader import QuestionFeed, QuestionFeedLoader, distinct_subjects
from .persistence import AnswerRecorder
from .session import Direction, SessionState

__all__ = [
    "AnswerRecorder",
    "Direction",
    "QuestionFeed",
    "QuestionFeedLoader",
    "QuizController",
    "SessionState",
    "distinct_subjects",
]
