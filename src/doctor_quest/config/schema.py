from __future__ import annotations

from pathlib import Path
from typing import Optional

from pydantic import BaseModel, Field, validator


class BackendConfig(BaseModel):
    """Which backend serves questions, answers and statistics."""

    provider: str = Field("supabase", description="supabase or memory.")
    url: Optional[str] = Field(None, description="Supabase project URL.")
    anon_key: Optional[str] = Field(None, description="Supabase anonymous API key.")
    questions_table: str = "questions"
    answers_table: str = "user_scores"
    stats_table: str = "user_stats"

    @validator("provider")
    def known_provider(cls, value: str) -> str:
        """Normalize the provider name and reject unknown backends."""
        normalized = value.strip().lower()
        if normalized not in {"supabase", "memory"}:
            raise ValueError("provider must be 'supabase' or 'memory'")
        return normalized


class QuizConfig(BaseModel):
    """Labels and defaults used while presenting questions."""

    all_subjects: str = Field("all", description="Filter value meaning no subject filter.")


class PathsConfig(BaseModel):
    """Filesystem locations for seed data and logs."""

    seed_questions: Path = Field(Path("data/questions.jsonl"))
    logs_dir: Path = Field(Path("logs"))


class LoggingConfig(BaseModel):
    """Controls for logging output and format."""

    level: str = Field("INFO")
    use_json: bool = False


class Settings(BaseModel):
    """Top-level project configuration aggregating all sub-settings."""

    project_name: str = Field("DoctorQuest")
    backend: BackendConfig = Field(default_factory=BackendConfig)
    quiz: QuizConfig = Field(default_factory=QuizConfig)
    paths: PathsConfig = Field(default_factory=PathsConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
