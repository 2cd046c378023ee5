from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Iterable, List, Optional

from doctor_quest.backend import BackendError, QuizBackend
from doctor_quest.data_models import Question

logger = logging.getLogger(__name__)


def distinct_subjects(questions: Iterable[Question]) -> List[str]:
    """Subjects in order of first appearance."""
    return list(dict.fromkeys(question.subject for question in questions))


@dataclass
class QuestionFeed:
    """Result of one successful fetch."""

    subject_filter: str
    questions: List[Question] = field(default_factory=list)
    subjects: List[str] = field(default_factory=list)


class QuestionFeedLoader:
    """Fetch the ordered question sequence for a subject filter."""

    def __init__(self, backend: QuizBackend, all_subjects: str = "all"):
        self.backend = backend
        self.all_subjects = all_subjects

    def fetch_questions(self, subject_filter: Optional[str] = None) -> Optional[QuestionFeed]:
        """
        Query questions ordered by ascending id, filtered on subject unless the
        filter is the all-subjects value.

        Returns None when the backend fails; the caller keeps whatever it was
        showing before.
        """
        requested = subject_filter or self.all_subjects
        subject = None if requested == self.all_subjects else requested
        try:
            questions = self.backend.fetch_questions(subject)
        except BackendError as exc:
            logger.error("Error fetching questions (subject=%s): %s", requested, exc)
            return None
        logger.info("Fetched %d questions (subject=%s)", len(questions), requested)
        return QuestionFeed(
            subject_filter=requested,
            questions=list(questions),
            subjects=distinct_subjects(questions),
        )
