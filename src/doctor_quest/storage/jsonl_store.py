from __future__ import annotations

import json
from pathlib import Path
from typing import Iterable, List

from doctor_quest.data_models import Question


class QuestionJsonlStore:
    """JSONL file of question rows, kept in ascending id order."""

    def __init__(self, path: Path):
        """Record the JSONL filepath; the parent directory is created on first write."""
        self.path = path

    def load(self) -> List[Question]:
        """Read all stored questions; a missing file yields an empty bank."""
        if not self.path.exists():
            return []
        questions: List[Question] = []
        with self.path.open("r", encoding="utf-8") as handle:
            for line_number, line in enumerate(handle, start=1):
                if not line.strip():
                    continue
                try:
                    data = json.loads(line)
                except json.JSONDecodeError as exc:
                    raise ValueError(f"{self.path}:{line_number} is not valid JSON") from exc
                questions.append(Question.model_validate(data))
        return sorted(questions, key=lambda question: question.id)

    def upsert(self, questions: Iterable[Question]) -> int:
        """Merge questions into the file, replacing rows with matching ids; returns the row count."""
        existing = {question.id: question for question in self.load()}
        for question in questions:
            existing[question.id] = question
        self.path.parent.mkdir(parents=True, exist_ok=True)
        with self.path.open("w", encoding="utf-8") as handle:
            for question_id in sorted(existing):
                handle.write(existing[question_id].model_dump_json())
                handle.write("\n")
        return len(existing)
