"""
Nabha Shiksha: Content Router
Topic/level catalog, lesson generation, search and demo progress.
"""

import logging
from typing import Optional

from fastapi import APIRouter
from pydantic import BaseModel, ConfigDict, Field

from shiksha.config import DEFAULT_LANGUAGE, DEFAULT_LEVEL
from shiksha.errors import ApiError, UpstreamServiceError
from shiksha.routers import ok, timestamp
from shiksha.services.content import TOPICS, TOPIC_NAMES, LEVEL_CATALOG, generate_content

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/content", tags=["content"])


class LessonRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    topic: Optional[str] = None
    level: Optional[str] = None
    language: str = DEFAULT_LANGUAGE
    student_profile: Optional[dict] = Field(default=None, alias="studentProfile")

class ProgressUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    lesson_id: Optional[str] = Field(default=None, alias="lessonId")
    completed: Optional[bool] = None
    time_spent: Optional[int] = Field(default=None, alias="timeSpent")
    score: Optional[float] = None


@router.get("/topics")
def topics():
    return ok(TOPICS)


@router.get("/levels")
def levels():
    return ok(LEVEL_CATALOG)


@router.post("/lesson")
def create_lesson(req: LessonRequest):
    if not req.topic:
        raise ApiError(400, "No topic provided", "Please provide a topic for the lesson")
    try:
        content = generate_content(
            req.topic, req.language,
            level=req.level or DEFAULT_LEVEL,
            student_profile=req.student_profile or {},
        )
    except UpstreamServiceError as e:
        logger.error(f"Lesson generation error: {e}")
        raise ApiError(500, "Failed to generate lesson content", str(e))
    return ok(content)


@router.get("/lesson/{lesson_id}")
def get_lesson(lesson_id: str, level: str = DEFAULT_LEVEL, language: str = DEFAULT_LANGUAGE):
    topic = TOPIC_NAMES.get(lesson_id)
    if topic is None:
        raise ApiError(404, "Topic not found", "The requested topic does not exist")

    now = timestamp()
    return ok({
        "id": lesson_id,
        "topic": topic,
        "level": level,
        "language": language,
        "content": generate_content(topic, language, level=level, student_profile={}),
        "createdAt": now,
        "updatedAt": now,
    })


@router.get("/search")
def search(q: Optional[str] = None, level: Optional[str] = None):
    if not q:
        raise ApiError(400, "No search query provided", "Please provide a search query")

    needle = q.strip().lower()
    results = []
    for t in TOPICS:
        if level and t["level"] != level:
            continue
        if needle in (t["id"], t["name"], t["nameEn"].lower()):
            relevance = 0.9
        elif needle in t["description"].lower() or needle in t["nameEn"].lower():
            relevance = 0.6
        else:
            continue
        results.append({
            "id": t["id"],
            "title": f"{t['name']} ਦੀ ਸਿੱਖਿਆ",
            "description": f"{t['description']} in Punjabi",
            "level": t["level"],
            "relevance": relevance,
        })
    results.sort(key=lambda r: -r["relevance"])
    return ok({"query": q, "results": results, "total": len(results)})


@router.get("/progress/{user_id}")
def demo_progress(user_id: str):
    """Sample progress for the landing page; real progress lives under /api/user."""
    now = timestamp()
    return ok({
        "userId": user_id,
        "completedLessons": 5,
        "totalLessons": 20,
        "currentStreak": 3,
        "totalTimeSpent": 120,
        "achievements": [{
            "id": "first_lesson",
            "name": "First Lesson",
            "description": "Completed your first lesson",
            "earnedAt": now,
        }],
        "lastActivity": now,
    })


@router.post("/progress/{user_id}")
def echo_progress(user_id: str, req: ProgressUpdate):
    return ok({
        "userId": user_id,
        "lessonId": req.lesson_id,
        "completed": req.completed,
        "timeSpent": req.time_spent,
        "score": req.score,
        "updatedAt": timestamp(),
    })
