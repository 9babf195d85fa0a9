"""
Nabha Shiksha: User Router
Registration, profile, progress, settings. Backed by the in-memory registry.
"""

from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from shiksha.app_context import AppContext, get_app_context
from shiksha.auth import create_token, get_current_user
from shiksha.routers import ok, timestamp

router = APIRouter(prefix="/api/user", tags=["user"])


# ─── Request Models ──────────────────────────────────────────────────────────

class RegisterRequest(BaseModel):
    name: Optional[str] = None
    email: Optional[str] = None
    language: Optional[str] = None
    level: Optional[str] = None

class ProfileUpdate(BaseModel):
    name: Optional[str] = None
    language: Optional[str] = None
    level: Optional[str] = None
    preferences: Optional[dict] = None

class ProgressUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    lesson_id: Optional[str] = Field(default=None, alias="lessonId")
    completed: Optional[bool] = None
    time_spent: Optional[int] = Field(default=None, alias="timeSpent")
    score: Optional[float] = None
    achievements: Optional[list] = None

class SettingsUpdate(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    voice_enabled: Optional[bool] = Field(default=None, alias="voiceEnabled")
    audio_enabled: Optional[bool] = Field(default=None, alias="audioEnabled")
    offline_mode: Optional[bool] = Field(default=None, alias="offlineMode")
    language: Optional[str] = None
    level: Optional[str] = None


# ─── Endpoints ───────────────────────────────────────────────────────────────

@router.post("/register", status_code=201)
def register(req: RegisterRequest, ctx: AppContext = Depends(get_app_context)):
    user = ctx.users.register(req.name, req.email, req.language, req.level)
    return ok({"user": user.public(), "token": create_token(user.id)})


@router.get("/me")
def me(user_id: str = Depends(get_current_user), ctx: AppContext = Depends(get_app_context)):
    return ok(ctx.users.get(user_id).profile())


@router.get("/profile/{user_id}")
def get_profile(user_id: str, ctx: AppContext = Depends(get_app_context)):
    return ok(ctx.users.get(user_id).profile())


@router.put("/profile/{user_id}")
def update_profile(user_id: str, req: ProfileUpdate, ctx: AppContext = Depends(get_app_context)):
    user = ctx.users.update_profile(user_id, req.name, req.language, req.level, req.preferences)
    return ok(user.profile())


@router.get("/progress/{user_id}")
def get_progress(user_id: str, ctx: AppContext = Depends(get_app_context)):
    return ok(ctx.users.get(user_id).progress)


@router.post("/progress/{user_id}")
def update_progress(user_id: str, req: ProgressUpdate, ctx: AppContext = Depends(get_app_context)):
    progress = ctx.users.update_progress(
        user_id,
        completed=bool(req.completed),
        time_spent=req.time_spent,
        achievements=req.achievements,
    )
    return ok(progress)


@router.get("/settings/{user_id}")
def get_settings(user_id: str, ctx: AppContext = Depends(get_app_context)):
    return ok(ctx.users.get(user_id).preferences)


@router.put("/settings/{user_id}")
def update_settings(user_id: str, req: SettingsUpdate, ctx: AppContext = Depends(get_app_context)):
    preferences = ctx.users.update_settings(
        user_id,
        voiceEnabled=req.voice_enabled,
        audioEnabled=req.audio_enabled,
        offlineMode=req.offline_mode,
        language=req.language,
        level=req.level,
    )
    return ok(preferences)


@router.delete("/account/{user_id}")
def delete_account(user_id: str, ctx: AppContext = Depends(get_app_context)):
    ctx.users.delete(user_id)
    return {"success": True, "message": "User account deleted successfully", "timestamp": timestamp()}


@router.get("/all")
def all_users(ctx: AppContext = Depends(get_app_context)):
    users = ctx.users.all()
    return ok(users, total=len(users))
