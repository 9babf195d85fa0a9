"""
Nabha Shiksha: AI Router
Voice/text queries, content generation and sentiment. All mocked backends.
"""

import base64
import binascii
import logging
from typing import Optional

from fastapi import APIRouter, Depends, Request
from pydantic import BaseModel, ConfigDict, Field
from starlette.datastructures import UploadFile

from shiksha.app_context import AppContext, get_app_context
from shiksha.config import DEFAULT_LANGUAGE, MAX_AUDIO_BYTES
from shiksha.errors import ApiError, UpstreamServiceError
from shiksha.routers import ok, timestamp
from shiksha.services.content import generate_content
from shiksha.services.voice import process_voice_query

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/api/ai", tags=["ai"])


# ─── Request Models ──────────────────────────────────────────────────────────

class TextQueryRequest(BaseModel):
    query: Optional[str] = None
    language: str = DEFAULT_LANGUAGE

class GenerateContentRequest(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    topic: Optional[str] = None
    level: Optional[str] = None
    language: str = DEFAULT_LANGUAGE
    student_profile: Optional[dict] = Field(default=None, alias="studentProfile")

class SentimentRequest(BaseModel):
    text: Optional[str] = None
    language: str = DEFAULT_LANGUAGE


# ─── Helpers ─────────────────────────────────────────────────────────────────

def _decode_audio(value: str) -> bytes:
    """JSON clients send base64; anything that isn't base64 is taken as raw text."""
    try:
        return base64.b64decode(value, validate=True)
    except (binascii.Error, ValueError):
        return value.encode()


async def _read_audio(request: Request) -> Optional[bytes]:
    content_type = request.headers.get("content-type", "")
    if content_type.startswith("multipart/form-data"):
        form = await request.form()
        upload = form.get("audio")
        if isinstance(upload, UploadFile):
            if not (upload.content_type or "").startswith("audio/"):
                raise ApiError(400, "Invalid file type", "Only audio files are allowed")
            data = await upload.read()
            if len(data) > MAX_AUDIO_BYTES:
                raise ApiError(413, "File too large", "Audio must be 10MB or smaller")
            return data or None
        if isinstance(upload, str) and upload:
            return _decode_audio(upload)
        return None

    if content_type.startswith("application/json"):
        try:
            body = await request.json()
        except ValueError:
            return None
        audio = body.get("audio") if isinstance(body, dict) else None
        return _decode_audio(audio) if isinstance(audio, str) and audio else None
    return None


# ─── Endpoints ───────────────────────────────────────────────────────────────

@router.post("/voice-query")
async def voice_query(request: Request, ctx: AppContext = Depends(get_app_context)):
    audio = await _read_audio(request)
    if not audio:
        raise ApiError(400, "No audio data provided", "Please provide audio data for processing")
    try:
        result = await process_voice_query(audio, delay=ctx.voice_delay)
    except UpstreamServiceError as e:
        logger.error(f"Voice query processing error: {e}")
        raise ApiError(500, "Failed to process voice query", str(e))
    return ok(result)


@router.post("/text-query")
def text_query(req: TextQueryRequest, ctx: AppContext = Depends(get_app_context)):
    if not req.query:
        raise ApiError(400, "No query provided", "Please provide a text query")

    entities = ctx.recognizer.recognize(req.query, req.language)
    sentiment = ctx.sentiment.analyze(req.query, req.language)
    try:
        content = generate_content(req.query, req.language, entities, sentiment)
    except UpstreamServiceError as e:
        raise ApiError(500, "Failed to process text query", str(e))

    # timestamp sits inside data for this endpoint
    return {
        "success": True,
        "data": {
            "query": req.query,
            "language": req.language,
            "entities": entities,
            "sentiment": sentiment,
            "content": content,
            "timestamp": timestamp(),
        },
    }


@router.post("/generate-content")
def generate(req: GenerateContentRequest):
    if not req.topic:
        raise ApiError(400, "No topic provided", "Please provide a topic for content generation")
    try:
        content = generate_content(
            req.topic, req.language, level=req.level, student_profile=req.student_profile,
        )
    except UpstreamServiceError as e:
        raise ApiError(500, "Failed to generate content", str(e))
    return ok(content)


@router.post("/analyze-sentiment")
def sentiment(req: SentimentRequest, ctx: AppContext = Depends(get_app_context)):
    if not req.text:
        raise ApiError(400, "No text provided", "Please provide text for sentiment analysis")
    return ok(ctx.sentiment.analyze(req.text, req.language))


@router.get("/status")
def status():
    return {
        "status": "OK",
        "services": {
            "speechRecognition": "Available",
            "nlp": "Available",
            "contentGeneration": "Available",
            "sentimentAnalysis": "Available",
        },
        "timestamp": timestamp(),
    }
