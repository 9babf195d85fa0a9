"""HTTP routers. Every success body uses the same envelope."""

from datetime import datetime, timezone


def timestamp() -> str:
    return datetime.now(timezone.utc).isoformat()


def ok(data, **extra) -> dict:
    return {"success": True, "data": data, **extra, "timestamp": timestamp()}
