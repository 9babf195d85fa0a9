"""
Nabha Shiksha: User Registry

In-memory users, profiles, progress and settings. Lives on the app's
context (created in the lifespan), so it resets with the process.
"""

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from shiksha.config import DEFAULT_LANGUAGE, DEFAULT_LEVEL
from shiksha.errors import ApiError

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _default_preferences() -> dict:
    return {"voiceEnabled": True, "audioEnabled": True, "offlineMode": True}


def _default_progress() -> dict:
    return {"completedLessons": 0, "totalTimeSpent": 0, "currentStreak": 0, "achievements": []}


@dataclass
class User:
    id: str
    name: str
    email: str
    language: str = DEFAULT_LANGUAGE
    level: str = DEFAULT_LEVEL
    preferences: dict = field(default_factory=_default_preferences)
    progress: dict = field(default_factory=_default_progress)
    created_at: str = field(default_factory=_now)
    updated_at: str = field(default_factory=_now)

    def public(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "language": self.language,
            "level": self.level,
            "preferences": self.preferences,
        }

    def profile(self) -> dict:
        return {
            **self.public(),
            "progress": self.progress,
            "createdAt": self.created_at,
            "updatedAt": self.updated_at,
        }

    def summary(self) -> dict:
        return {
            "id": self.id,
            "name": self.name,
            "email": self.email,
            "language": self.language,
            "level": self.level,
            "createdAt": self.created_at,
            "lastActivity": self.updated_at,
        }

    def touch(self) -> None:
        self.updated_at = _now()


class UserRegistry:
    def __init__(self):
        self._users: dict = {}

    def __len__(self) -> int:
        return len(self._users)

    def get(self, user_id: str) -> User:
        user = self._users.get(user_id)
        if user is None:
            raise ApiError(404, "User not found", "The requested user does not exist")
        return user

    def register(self, name: str, email: str, language: Optional[str] = None, level: Optional[str] = None) -> User:
        if not name or not email:
            raise ApiError(400, "Missing required fields", "Name and email are required")
        if any(u.email == email for u in self._users.values()):
            raise ApiError(409, "User already exists", "A user with this email already exists")

        user = User(
            id=str(uuid.uuid4()),
            name=name,
            email=email,
            language=language or DEFAULT_LANGUAGE,
            level=level or DEFAULT_LEVEL,
        )
        self._users[user.id] = user
        logger.info(f"Registered user {user.id}")
        return user

    def update_profile(self, user_id: str, name=None, language=None, level=None, preferences=None) -> User:
        user = self.get(user_id)
        if name:
            user.name = name
        if language:
            user.language = language
        if level:
            user.level = level
        if preferences:
            user.preferences = {**user.preferences, **preferences}
        user.touch()
        return user

    def update_progress(self, user_id: str, completed=False, time_spent=None, achievements=None) -> dict:
        user = self.get(user_id)
        if completed:
            user.progress["completedLessons"] += 1
        if time_spent:
            user.progress["totalTimeSpent"] += time_spent
        if achievements:
            user.progress["achievements"].extend(achievements)
        user.touch()
        return user.progress

    def update_settings(self, user_id: str, **settings) -> dict:
        """voiceEnabled/audioEnabled/offlineMode may be False; language/level only if truthy."""
        user = self.get(user_id)
        for key in ("voiceEnabled", "audioEnabled", "offlineMode"):
            if settings.get(key) is not None:
                user.preferences[key] = settings[key]
        if settings.get("language"):
            user.language = settings["language"]
        if settings.get("level"):
            user.level = settings["level"]
        user.touch()
        return user.preferences

    def delete(self, user_id: str) -> None:
        self.get(user_id)
        del self._users[user_id]
        logger.info(f"Deleted user {user_id}")

    def all(self) -> list:
        return [u.summary() for u in self._users.values()]
