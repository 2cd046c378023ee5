from __future__ import annotations

import logging

from doctor_quest.config.schema import Settings

from .base import QuizBackend

logger = logging.getLogger(__name__)


def create_backend(settings: Settings) -> QuizBackend:
    """
    Instantiate the backend named by `backend.provider`.

    Parameters
    ----------
    settings : Settings
        Loaded configuration. `supabase` needs `backend.url` and `backend.anon_key`;
        `memory` seeds itself from `paths.seed_questions`.

    Returns
    -------
    QuizBackend
        SupabaseBackend or InMemoryBackend.

    Raises
    ------
    ValueError
        If Supabase credentials are missing or the provider is unknown.
    """
    provider = settings.backend.provider
    if provider == "supabase":
        from .supabase_backend import SupabaseBackend

        logger.info("Using Supabase backend at %s", settings.backend.url)
        return SupabaseBackend.from_config(settings.backend)
    if provider == "memory":
        from .memory import InMemoryBackend

        logger.info("Using in-memory backend seeded from %s", settings.paths.seed_questions)
        return InMemoryBackend.from_jsonl(settings.paths.seed_questions)
    logger.error("Unknown backend provider: %s", provider)
    raise ValueError(
        f"Unknown backend provider: {provider}. Supported providers: 'supabase', 'memory'"
    )
