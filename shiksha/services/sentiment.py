"""
Nabha Shiksha: Sentiment

English words are scored with the AFINN word list (`afinn` package),
Gurmukhi words with a small Punjabi list on the same -5..+5 scale. Score is
the sum, comparative is score per token. Failures return neutral.
"""

import logging
from typing import Protocol

from afinn import Afinn

logger = logging.getLogger(__name__)

# Emotion labels shown to students
EMOTIONS = {
    "positive": "ਖੁਸ਼",
    "negative": "ਉਦਾਸ",
    "neutral": "ਸਾਧਾਰਣ",
}

NEUTRAL_SENTIMENT = {
    "score": 0,
    "comparative": 0.0,
    "emotion": EMOTIONS["neutral"],
    "confidence": 0.5,
}

_AFINN = Afinn(language="en")

PUNJABI_LEXICON = {
    "ਚੰਗਾ": 3, "ਵਧੀਆ": 3, "ਖੁਸ਼": 3, "ਸੌਖਾ": 1, "ਧੰਨਵਾਦ": 2, "ਪਸੰਦ": 2,
    "ਮਜ਼ੇਦਾਰ": 4, "ਸ਼ਾਨਦਾਰ": 3, "ਹਾਂ": 1,
    "ਮਾੜਾ": -3, "ਔਖਾ": -1, "ਮੁਸ਼ਕਲ": -1, "ਉਦਾਸ": -2, "ਗਲਤ": -2,
    "ਨਹੀਂ": -1, "ਡਰ": -2, "ਥੱਕ": -2, "ਬੋਰ": -3,
}

_STRIP = ".,!?;:'\"()[]{}।॥"


def tokenize(text: str) -> list:
    return [t for t in (w.strip(_STRIP) for w in text.lower().split()) if t]


def analyze_sentiment(text: str, language: str = "punjabi") -> dict:
    try:
        tokens = tokenize(text)
        score = int(_AFINN.score(text.lower())) + sum(PUNJABI_LEXICON.get(t, 0) for t in tokens)
        comparative = score / len(tokens) if tokens else 0.0
        if score > 0:
            emotion = EMOTIONS["positive"]
        elif score < 0:
            emotion = EMOTIONS["negative"]
        else:
            emotion = EMOTIONS["neutral"]
        return {
            "score": score,
            "comparative": comparative,
            "emotion": emotion,
            "confidence": abs(comparative),
        }
    except Exception as e:
        logger.error(f"Error analyzing sentiment: {e}")
        return dict(NEUTRAL_SENTIMENT)


class SentimentAnalyzer(Protocol):
    def analyze(self, text: str, language: str = "punjabi") -> dict: ...


class LexiconSentimentAnalyzer:
    def analyze(self, text: str, language: str = "punjabi") -> dict:
        return analyze_sentiment(text, language)
