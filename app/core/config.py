"""
Configuration
=============
Loads environment variables from .env file using python-dotenv.

Environment Variables:
    BUG_STORE_BACKEND      — "memory" (default) or "json"
    BUG_STORE_PATH         — JSON document path for the json backend (default: data/bugs.json)
    STORAGE_LATENCY_MS     — Simulated storage latency for the memory backend (default: 0)
    ALLOW_DIRECT_RESOLVE   — Permit open → resolved status changes (default: false)
    ENABLE_DEBUG_ENDPOINT  — Expose /api/debug (default: true)
    CORS_ORIGINS           — Comma-separated browser origins allowed to call the API
    LOG_LEVEL              — Root log level name (default: INFO)
    LOG_DIR                — Directory for dated log files (default: logs)

Status Workflow:
    The operator-facing workflow is open → in-progress → resolved → open.
    ALLOW_DIRECT_RESOLVE adds the shortcut open → resolved for teams that
    close trivial reports without starting work on them.
"""
import os
from dotenv import load_dotenv

load_dotenv()


def _env_flag(name: str, default: str) -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


BUG_STORE_BACKEND = os.getenv("BUG_STORE_BACKEND", "memory").strip().lower()
BUG_STORE_PATH = os.getenv("BUG_STORE_PATH", os.path.join("data", "bugs.json"))
STORAGE_LATENCY_MS = int(os.getenv("STORAGE_LATENCY_MS", 0))

ALLOW_DIRECT_RESOLVE = _env_flag("ALLOW_DIRECT_RESOLVE", "false")
ENABLE_DEBUG_ENDPOINT = _env_flag("ENABLE_DEBUG_ENDPOINT", "true")

CORS_ORIGINS: list[str] = [
    origin.strip()
    for origin in os.getenv(
        "CORS_ORIGINS",
        "http://localhost:3000,http://127.0.0.1:3000,http://localhost:5173,http://localhost:8000",
    ).split(",")
    if origin.strip()
]

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
LOG_DIR = os.getenv("LOG_DIR", "logs")
