"""
Nabha Shiksha: Configuration
All environment variables and constants. Single source of truth.
No other file reads os.environ directly.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

# ─── Paths ───────────────────────────────────────────────────────────────────
BASE_DIR = Path(__file__).resolve().parent.parent

# Load .env file if present (real environment wins)
load_dotenv(BASE_DIR / ".env", override=False)

WEB_DIR = Path(os.getenv("WEB_DIR", str(BASE_DIR / "web" / "build")))

# ─── Server ──────────────────────────────────────────────────────────────────
PORT = int(os.getenv("PORT", "5000"))
HOST = os.getenv("HOST", "0.0.0.0")
SERVICE_NAME = "Nabha Shiksha AI"
ENVIRONMENT = os.getenv("ENVIRONMENT", "development")

# ─── JWT ─────────────────────────────────────────────────────────────────────
JWT_SECRET = os.getenv("JWT_SECRET", "nabha-dev-secret-change-in-production")
JWT_ALGORITHM = "HS256"
JWT_EXPIRY_HOURS = int(os.getenv("JWT_EXPIRY_HOURS", "24"))

# ─── Languages / Levels ──────────────────────────────────────────────────────
DEFAULT_LANGUAGE = "punjabi"
DEFAULT_LEVEL = "beginner"

# Upload limit for /api/ai/voice-query
MAX_AUDIO_BYTES = 10 * 1024 * 1024

# ─── Local Store (client side) ───────────────────────────────────────────────
LOCAL_STORE_URL = os.getenv(
    "LOCAL_STORE_URL",
    f"sqlite:///{BASE_DIR / 'nabha_offline.db'}",
)
LOCAL_STORE_VERSION = 1
# In-memory fallback used when the durable store cannot be opened
MEMORY_STORE_URL = "sqlite://"

# ─── Response Cache ──────────────────────────────────────────────────────────
CACHE_STORE_URL = os.getenv(
    "CACHE_STORE_URL",
    f"sqlite:///{BASE_DIR / 'nabha_cache.db'}",
)
CACHE_NAME = "nabha-shiksha-ai-v1"
OFFLINE_CACHE_NAME = "nabha-shiksha-ai-offline-v1"

STATIC_CACHE_URLS = (
    "/",
    "/static/js/bundle.js",
    "/static/css/main.css",
    "/manifest.json",
    "/favicon.ico",
    "/logo192.png",
    "/logo512.png",
)
# Warmed through the gateway on start so they are readable offline
API_CACHE_URLS = (
    "/api/ai/status",
    "/api/content/topics",
    "/api/content/levels",
)

API_PREFIX = "/api/"
APP_SHELL_PATH = "/"

# ─── Sync Queue ──────────────────────────────────────────────────────────────
API_BASE_URL = os.getenv("API_BASE_URL", f"http://localhost:{PORT}")
HEALTH_PATH = "/api/health"
SYNC_MAX_RETRIES = int(os.getenv("SYNC_MAX_RETRIES", "3"))
SYNC_TIMEOUT_SECONDS = float(os.getenv("SYNC_TIMEOUT_SECONDS", "15"))
REACHABILITY_PROBE_SECONDS = float(os.getenv("REACHABILITY_PROBE_SECONDS", "30"))
# Environment connectivity signal at startup
INITIAL_ONLINE = os.getenv("INITIAL_ONLINE", "true").lower() == "true"

# ─── CORS ────────────────────────────────────────────────────────────────────
CORS_ORIGINS = os.getenv("CORS_ORIGINS", "*").split(",")

# ─── Logging ─────────────────────────────────────────────────────────────────
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO")
LOG_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"


def configure_logging(level: str = None) -> None:
    logging.basicConfig(
        level=getattr(logging, (level or LOG_LEVEL).upper(), logging.INFO),
        format=LOG_FORMAT,
    )


@dataclass(frozen=True)
class OfflineSettings:
    """Everything the offline layer needs, passed explicitly to OfflineContext."""
    store_url: str = LOCAL_STORE_URL
    store_version: int = LOCAL_STORE_VERSION
    cache_url: str = CACHE_STORE_URL
    cache_name: str = CACHE_NAME
    offline_cache_name: str = OFFLINE_CACHE_NAME
    static_urls: tuple = field(default=STATIC_CACHE_URLS)
    api_urls: tuple = field(default=API_CACHE_URLS)
    api_base_url: str = API_BASE_URL
    health_path: str = HEALTH_PATH
    max_retries: int = SYNC_MAX_RETRIES
    sync_timeout: float = SYNC_TIMEOUT_SECONDS
    probe_interval: float = REACHABILITY_PROBE_SECONDS
    initial_online: bool = INITIAL_ONLINE

    @classmethod
    def from_env(cls) -> "OfflineSettings":
        return cls()
