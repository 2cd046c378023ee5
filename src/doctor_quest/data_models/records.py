from __future__ import annotations

from datetime import datetime
from typing import Any, Dict, List, Optional, Sequence

from pydantic import BaseModel, ConfigDict, Field

OPTION_KEYS: Sequence[str] = ("A", "B", "C", "D", "E")


class AnswerOption(BaseModel):
    """Displayable answer option: its label and text."""

    key: str
    text: str


class Question(BaseModel):
    """Multiple-choice question as stored in the questions table."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: int
    subject: str
    source_file: Optional[str] = None
    question_number: Optional[int] = None
    question_text: str = ""
    option_a: Optional[str] = None
    option_b: Optional[str] = None
    option_c: Optional[str] = None
    option_d: Optional[str] = None
    option_e: Optional[str] = None
    correct_option: str
    correct_text: Optional[str] = None

    def option_text(self, key: str) -> Optional[str]:
        """Return the raw text stored for an option label, if the label exists."""
        if key not in OPTION_KEYS:
            return None
        return getattr(self, f"option_{key.lower()}")

    def options(self) -> List[AnswerOption]:
        """Return the non-blank options in label order."""
        displayed: List[AnswerOption] = []
        for key in OPTION_KEYS:
            text = self.option_text(key)
            if text and text.strip():
                displayed.append(AnswerOption(key=key, text=text))
        return displayed

    def option_keys(self) -> List[str]:
        return [option.key for option in self.options()]

    def is_correct(self, key: Optional[str]) -> bool:
        return key is not None and key == self.correct_option


class AnswerRecord(BaseModel):
    """One user's latest result for one question; unique on (user_id, question_id)."""

    user_id: str
    question_id: str
    subject: str
    is_correct: bool

    @classmethod
    def for_question(cls, user_id: str, question: Question, is_correct: bool) -> "AnswerRecord":
        return cls(
            user_id=user_id,
            question_id=str(question.id),
            subject=question.subject,
            is_correct=is_correct,
        )

    def to_row(self) -> Dict[str, Any]:
        return self.model_dump()


class UserStats(BaseModel):
    """Backend-maintained rollup of a user's answer history."""

    model_config = ConfigDict(extra="ignore")

    user_id: str
    total_questions_answered: int = 0
    total_correct_answers: int = 0
    current_streak: int = 0
    longest_streak: int = 0
    last_answered_at: Optional[datetime] = None


class AuthSession(BaseModel):
    """Signed-in identity as reported by the identity provider."""

    user_id: str
    email: Optional[str] = None
    access_token: Optional[str] = Field(default=None, repr=False)
