"""
Nabha Shiksha: Content Generation

Templated lesson content. Subject and topic are picked out of the query by
dictionary lookup; everything else comes from the tables below.
"""

import logging
from typing import Optional

from shiksha.config import DEFAULT_LEVEL
from shiksha.errors import UpstreamServiceError

logger = logging.getLogger(__name__)


# ─── Catalog ─────────────────────────────────────────────────────────────────

TOPICS = [
    {"id": "addition", "name": "ਜੋੜ", "nameEn": "Addition",
     "description": "Basic addition operations", "level": "beginner", "estimatedTime": 15},
    {"id": "subtraction", "name": "ਘਟਾਓ", "nameEn": "Subtraction",
     "description": "Basic subtraction operations", "level": "beginner", "estimatedTime": 15},
    {"id": "multiplication", "name": "ਗੁਣਾ", "nameEn": "Multiplication",
     "description": "Multiplication tables and operations", "level": "intermediate", "estimatedTime": 20},
    {"id": "division", "name": "ਭਾਗ", "nameEn": "Division",
     "description": "Division operations and remainders", "level": "intermediate", "estimatedTime": 20},
    {"id": "fractions", "name": "ਭਿੰਨਾਂ", "nameEn": "Fractions",
     "description": "Understanding and working with fractions", "level": "advanced", "estimatedTime": 25},
    {"id": "geometry", "name": "ਜਿਓਮੈਟਰੀ", "nameEn": "Geometry",
     "description": "Basic geometric shapes and concepts", "level": "intermediate", "estimatedTime": 20},
]
TOPIC_NAMES = {t["id"]: t["name"] for t in TOPICS}

LEVEL_CATALOG = [
    {"id": "beginner", "name": "ਸ਼ੁਰੂਆਤੀ", "nameEn": "Beginner",
     "description": "Basic concepts and simple problems", "color": "#10B981"},
    {"id": "intermediate", "name": "ਮੱਧਮ", "nameEn": "Intermediate",
     "description": "Moderate complexity problems", "color": "#F59E0B"},
    {"id": "advanced", "name": "ਉੱਚ", "nameEn": "Advanced",
     "description": "Complex problems and advanced concepts", "color": "#EF4444"},
]

SUBJECTS = {
    "ਗਣਿਤ": "mathematics",
    "ਵਿਗਿਆਨ": "science",
    "ਇਤਿਹਾਸ": "history",
    "ਭੂਗੋਲ": "geography",
    "ਪੰਜਾਬੀ": "punjabi",
    "ਅੰਗਰੇਜ਼ੀ": "english",
    "ਹਿੰਦੀ": "hindi",
}
GENERAL_SUBJECT = {"punjabi": "ਆਮ", "english": "general"}

CONTENT_TOPICS = ["ਜੋੜ", "ਘਟਾਓ", "ਗੁਣਾ", "ਭਾਗ", "ਪ੍ਰਕਿਰਿਆ", "ਸਮੀਕਰਣ"]
GENERAL_TOPIC = "ਆਮ ਸਿੱਖਿਆ"

_TITLED_TOPICS = {"ਜੋੜ", "ਘਟਾਓ", "ਗੁਣਾ", "ਭਾਗ"}

EXPLANATIONS = {
    "ਜੋੜ": {
        "beginner": "ਜੋੜ ਇੱਕ ਬੁਨਿਆਦੀ ਗਣਿਤੀ ਕਿਰਿਆ ਹੈ ਜਿਸ ਵਿੱਚ ਦੋ ਜਾਂ ਵਧੇਰੇ ਸੰਖਿਆਵਾਂ ਨੂੰ ਮਿਲਾਇਆ ਜਾਂਦਾ ਹੈ।",
        "intermediate": "ਜੋੜ ਦੀ ਕਿਰਿਆ ਵਿੱਚ ਸੰਖਿਆਵਾਂ ਨੂੰ ਇੱਕ ਸਾਥ ਰੱਖ ਕੇ ਉਨ੍ਹਾਂ ਦਾ ਕੁੱਲ ਪਤਾ ਲਗਾਇਆ ਜਾਂਦਾ ਹੈ।",
        "advanced": "ਜੋੜ ਦੀ ਕਿਰਿਆ ਕਮਿਊਟੇਟਿਵ ਅਤੇ ਐਸੋਸੀਏਟਿਵ ਗੁਣਾਂ ਦੀ ਪਾਲਣਾ ਕਰਦੀ ਹੈ।",
    },
}
DEFAULT_EXPLANATION = "ਇਹ ਇੱਕ ਮਹੱਤਵਪੂਰਨ ਵਿਸ਼ਾ ਹੈ ਜਿਸ ਨੂੰ ਸਮਝਣਾ ਜ਼ਰੂਰੀ ਹੈ।"

EXAMPLES = {
    "ਜੋੜ": [
        {"problem": "2 + 3 = ?", "solution": "5", "explanation": "ਦੋ ਅਤੇ ਤਿੰਨ ਜੋੜਨ ਨਾਲ ਪੰਜ ਬਣਦਾ ਹੈ।"},
        {"problem": "7 + 4 = ?", "solution": "11", "explanation": "ਸੱਤ ਅਤੇ ਚਾਰ ਜੋੜਨ ਨਾਲ ਗਿਆਰਾਂ ਬਣਦਾ ਹੈ।"},
    ],
}

EXERCISES = {
    "ਜੋੜ": [
        {"problem": "5 + 3 = ?", "options": ["7", "8", "9", "6"], "correct": 1},
        {"problem": "9 + 6 = ?", "options": ["14", "15", "16", "13"], "correct": 1},
    ],
}

ESTIMATED_MINUTES = {"beginner": 10, "intermediate": 20, "advanced": 30}
DEFAULT_MINUTES = 15

NEXT_STEPS = ["ਅਭਿਆਸ ਕਰੋ", "ਵਧੇਰੇ ਉਦਾਹਰਣਾਂ ਦੇਖੋ", "ਅਗਲਾ ਪਾਠ ਸਿੱਖੋ"]

AUDIO_SECONDS = 15


# ─── Extraction ──────────────────────────────────────────────────────────────

def extract_subject(query: str) -> dict:
    lowered = query.lower()
    for punjabi, english in SUBJECTS.items():
        if punjabi in lowered:
            return {"punjabi": punjabi, "english": english}
    return dict(GENERAL_SUBJECT)


def extract_topic(query: str) -> str:
    for topic in CONTENT_TOPICS:
        if topic in query:
            return topic
    return GENERAL_TOPIC


# ─── Generators ──────────────────────────────────────────────────────────────

def generate_title(topic: str, subject: dict) -> str:
    if topic in _TITLED_TOPICS:
        return f"{subject['punjabi']} ਵਿੱਚ {topic} ਦੀ ਸਿੱਖਿਆ"
    return f"{subject['punjabi']} ਦੀ ਸਿੱਖਿਆ"


def generate_explanation(topic: str, level: str) -> str:
    return EXPLANATIONS.get(topic, {}).get(level, DEFAULT_EXPLANATION)


def generate_audio_response(topic: str, subject: dict, language: str) -> dict:
    # Text only; a TTS step would turn this into audio
    return {
        "text": f"ਆਓ {topic} ਬਾਰੇ ਸਿੱਖੀਏ। ਇਹ {subject['punjabi']} ਦਾ ਇੱਕ ਮਹੱਤਵਪੂਰਨ ਹਿੱਸਾ ਹੈ।",
        "duration": AUDIO_SECONDS,
        "language": language,
    }


def generate_visual_aids(topic: str) -> dict:
    return {
        "images": [f"/images/{topic}-visual.png"],
        "diagrams": [f"/diagrams/{topic}-diagram.svg"],
        "animations": [f"/animations/{topic}-demo.mp4"],
    }


def generate_content(
    query: str,
    language: str = "punjabi",
    entities: Optional[dict] = None,
    sentiment: Optional[dict] = None,
    level: str = DEFAULT_LEVEL,
    student_profile: Optional[dict] = None,
) -> dict:
    """
    Build a lesson for `query`. `entities`, `sentiment` and `student_profile`
    are accepted so richer backends can use them; templates ignore them.
    """
    if not isinstance(query, str):
        raise UpstreamServiceError("Failed to generate educational content: query must be text")

    level = level or DEFAULT_LEVEL
    subject = extract_subject(query)
    topic = extract_topic(query)

    return {
        "title": generate_title(topic, subject),
        "explanation": generate_explanation(topic, level),
        "examples": list(EXAMPLES.get(topic, [])),
        "exercises": list(EXERCISES.get(topic, [])),
        "audioResponse": generate_audio_response(topic, subject, language),
        "visualAids": generate_visual_aids(topic),
        "difficulty": level,
        "estimatedTime": ESTIMATED_MINUTES.get(level, DEFAULT_MINUTES),
        "nextSteps": list(NEXT_STEPS),
    }
