"""
Nabha Shiksha: Entity Recognition

Dictionary lookup over Punjabi (Gurmukhi) educational vocabulary.
No model inference: each category is a plain mapping and a match is a
substring hit. `EntityRecognizer` is the seam a real NLP backend would
plug into.
"""

import logging
import re
from datetime import datetime, timezone
from typing import Protocol

logger = logging.getLogger(__name__)


# ─── Vocabulary ──────────────────────────────────────────────────────────────

PUNJABI_VOCABULARY = {
    "numbers": {
        "ਇੱਕ": 1, "ਦੋ": 2, "ਤਿੰਨ": 3, "ਚਾਰ": 4, "ਪੰਜ": 5,
        "ਛੇ": 6, "ਸੱਤ": 7, "ਅੱਠ": 8, "ਨੌਂ": 9, "ਦਸ": 10,
    },
    "subjects": {
        "ਗਣਿਤ": "mathematics",
        "ਵਿਗਿਆਨ": "science",
        "ਭੂਗੋਲ": "geography",
        "ਇਤਿਹਾਸ": "history",
        "ਪੰਜਾਬੀ": "punjabi",
        "ਅੰਗਰੇਜ਼ੀ": "english",
        "ਹਿੰਦੀ": "hindi",
        "ਸਾਹਿਤ": "literature",
        "ਕਲਾ": "art",
        "ਸੰਗੀਤ": "music",
    },
    "operations": {
        "ਜੋੜ": "addition",
        "ਘਟਾਓ": "subtraction",
        "ਗੁਣਾ": "multiplication",
        "ਭਾਗ": "division",
        "ਵਰਗ": "square",
        "ਜੜ": "root",
    },
    "questions": {
        "ਕੀ": "what",
        "ਕਿਵੇਂ": "how",
        "ਕਦੋਂ": "when",
        "ਕਿੱਥੇ": "where",
        "ਕਿਉਂ": "why",
        "ਕੌਣ": "who",
    },
    "learning": {
        "ਸਿੱਖਣਾ": "learn",
        "ਸਮਝਣਾ": "understand",
        "ਅਭਿਆਸ": "practice",
        "ਪ੍ਰਸ਼ਨ": "question",
        "ਜਵਾਬ": "answer",
        "ਉਦਾਹਰਣ": "example",
        "ਸਮੱਸਿਆ": "problem",
        "ਹੱਲ": "solution",
    },
}

# vocabulary category -> entities key
_CATEGORY_KEYS = {
    "subjects": "subjects",
    "operations": "operations",
    "numbers": "numbers",
    "questions": "questions",
    "learning": "learning_terms",
}

DICTIONARY_CONFIDENCE = 0.9
PATTERN_CONFIDENCE = 0.8
PHRASE_CONFIDENCE = 0.7

_CONCEPT_PATTERNS = [
    ("addition", re.compile(r"\d+\s*\+\s*\d+")),
    ("subtraction", re.compile(r"\d+\s*-\s*\d+")),
    ("multiplication", re.compile(r"\d+\s*\*\s*\d+")),
    ("division", re.compile(r"\d+\s*/\s*\d+")),
]

_PHRASE_PATTERNS = [
    re.compile(r"ਮੈਂ\s+([^।]+)\s+ਸਿੱਖਣਾ\s+ਚਾਹੁੰਦਾ\s+ਹਾਂ"),   # I want to learn ...
    re.compile(r"([^।]+)\s+ਕਿਵੇਂ\s+ਕਰਦੇ\s+ਹਨ"),               # how do you do ...
    re.compile(r"([^।]+)\s+ਦਾ\s+ਮਤਲਬ\s+ਕੀ\s+ਹੈ"),              # what does ... mean
    re.compile(r"([^।]+)\s+ਦੀ\s+ਵਿਆਖਿਆ\s+ਕਰੋ"),               # explain ...
]


def empty_entities() -> dict:
    return {key: [] for key in (*_CATEGORY_KEYS.values(), "concepts")}


# ─── Recognition ─────────────────────────────────────────────────────────────

def _find(text: str, term: str, language: str) -> int:
    """Position of `term` in `text`, or -1. English terms match whole words."""
    if language == "english" and term.isascii():
        m = re.search(rf"\b{re.escape(term)}\b", text, re.IGNORECASE)
        return m.start() if m else -1
    return text.find(term)


def recognize_entities(text: str, language: str = "punjabi") -> dict:
    """
    Match every vocabulary category against `text`.
    With language="english" the English glosses are matched too.
    """
    entities = empty_entities()
    if not text:
        return entities

    for category, mapping in PUNJABI_VOCABULARY.items():
        key = _CATEGORY_KEYS[category]
        for punjabi, meaning in mapping.items():
            position = _find(text, punjabi, "punjabi")
            if position < 0 and language == "english" and isinstance(meaning, str):
                position = _find(text, meaning, "english")
            if position < 0:
                continue
            match = {"punjabi": punjabi, "confidence": DICTIONARY_CONFIDENCE, "position": position}
            if category == "numbers":
                match["value"] = meaning
            else:
                match["english"] = meaning
            entities[key].append(match)

    for concept, pattern in _CONCEPT_PATTERNS:
        matches = pattern.findall(text)
        if matches:
            entities["concepts"].append({
                "type": concept,
                "matches": matches,
                "confidence": PATTERN_CONFIDENCE,
            })

    return entities


def extract_key_phrases(text: str, language: str = "punjabi") -> list:
    phrases = []
    for pattern in _PHRASE_PATTERNS:
        for match in pattern.finditer(text):
            phrases.append({
                "phrase": match.group(0).strip(),
                "confidence": PHRASE_CONFIDENCE,
                "type": "educational_query",
            })
    return phrases


def determine_learning_intent(text: str, entities: dict) -> dict:
    """Later rules win: practice/explanation override a plain learning request."""
    intent = {"type": "general", "confidence": 0.5, "details": {}}
    terms = {t["punjabi"] for t in entities.get("learning_terms", [])}

    if entities.get("questions"):
        intent["type"] = "question"
        intent["confidence"] = 0.8
        intent["details"]["questionType"] = entities["questions"][0]["english"]
    if "ਸਿੱਖਣਾ" in terms:
        intent["type"] = "learning_request"
        intent["confidence"] = 0.9
    if "ਅਭਿਆਸ" in terms:
        intent["type"] = "practice_request"
        intent["confidence"] = 0.8
    if "ਸਮਝਣਾ" in terms:
        intent["type"] = "explanation_request"
        intent["confidence"] = 0.8
    return intent


def generate_response_context(entities: dict, intent: dict) -> dict:
    numbers = entities.get("numbers", [])
    operations = entities.get("operations", [])
    subjects = entities.get("subjects", [])

    complexity = "beginner"
    if len(numbers) > 2 or len(operations) > 1:
        complexity = "intermediate"
    if any(n["value"] > 100 for n in numbers) or len(operations) > 2:
        complexity = "advanced"

    return {
        "subject": subjects[0] if subjects else None,
        "operation": operations[0] if operations else None,
        "numbers": numbers,
        "intent": intent["type"],
        "complexity": complexity,
    }


def process_punjabi_text(text: str) -> dict:
    entities = recognize_entities(text, "punjabi")
    intent = determine_learning_intent(text, entities)
    return {
        "originalText": text,
        "entities": entities,
        "phrases": extract_key_phrases(text, "punjabi"),
        "intent": intent,
        "context": generate_response_context(entities, intent),
        "language": "punjabi",
        "processedAt": datetime.now(timezone.utc).isoformat(),
    }


# ─── Swappable backend ───────────────────────────────────────────────────────

class EntityRecognizer(Protocol):
    def recognize(self, text: str, language: str = "punjabi") -> dict: ...


class DictionaryEntityRecognizer:
    """Default recognizer. Never raises: failures return empty entities."""

    def recognize(self, text: str, language: str = "punjabi") -> dict:
        try:
            return recognize_entities(text, language)
        except Exception as e:
            logger.error(f"Error in entity recognition: {e}")
            return empty_entities()
