"""
Nabha Shiksha: Server Context

Everything the routers share, built once per app instead of at import time.
"""

import logging
from dataclasses import dataclass, field

from fastapi import Request

from shiksha.services.nlp import DictionaryEntityRecognizer, EntityRecognizer
from shiksha.services.sentiment import LexiconSentimentAnalyzer, SentimentAnalyzer
from shiksha.services.users import UserRegistry

logger = logging.getLogger(__name__)


@dataclass
class AppContext:
    users: UserRegistry = field(default_factory=UserRegistry)
    recognizer: EntityRecognizer = field(default_factory=DictionaryEntityRecognizer)
    sentiment: SentimentAnalyzer = field(default_factory=LexiconSentimentAnalyzer)
    voice_delay: float = 0.0

    @classmethod
    def create(cls, **overrides) -> "AppContext":
        ctx = cls(**overrides)
        logger.info("App context created")
        return ctx

    async def shutdown(self) -> None:
        logger.info(f"App context shut down ({len(self.users)} in-memory users discarded)")


def get_app_context(request: Request) -> AppContext:
    """FastAPI dependency."""
    return request.app.state.ctx
