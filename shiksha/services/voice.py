"""
Nabha Shiksha: Voice Query

Mock speech pipeline. There is no speech model: every clip "transcribes"
to the same Punjabi sentence, which then runs through the text pipeline.
"""

import asyncio
import logging

from shiksha.errors import UpstreamServiceError
from shiksha.services.content import generate_content
from shiksha.services.nlp import DictionaryEntityRecognizer
from shiksha.services.sentiment import analyze_sentiment

logger = logging.getLogger(__name__)

# "I want to learn about mathematics"
MOCK_TRANSCRIPTION = "ਮੈਂ ਗਣਿਤ ਦੇ ਬਾਰੇ ਸਿੱਖਣਾ ਚਾਹੁੰਦਾ ਹਾਂ"
MOCK_CONFIDENCE = 0.85

_recognizer = DictionaryEntityRecognizer()


def transcribe(audio: bytes, language: str = "punjabi") -> str:
    if not audio:
        raise UpstreamServiceError("Failed to process voice query: empty audio")
    return MOCK_TRANSCRIPTION


async def process_voice_query(audio: bytes, language: str = "punjabi", delay: float = 0.0) -> dict:
    if delay:
        # Stand-in for recognition latency
        await asyncio.sleep(delay)

    transcription = transcribe(audio, language)
    entities = _recognizer.recognize(transcription, language)
    sentiment = analyze_sentiment(transcription, language)
    content = generate_content(transcription, language, entities, sentiment)
    logger.info(f"Voice query: {len(audio)} bytes -> '{transcription[:30]}'")

    return {
        "transcription": transcription,
        "entities": entities,
        "sentiment": sentiment,
        "content": content,
        "confidence": MOCK_CONFIDENCE,
    }
