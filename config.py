# Configuration for the estimation service. Values come from environment
# variables (a local `.env` file is honoured in development).

import os
from typing import List

from dotenv import load_dotenv

load_dotenv()


def _int_env(name: str, default: int) -> int:
    raw_value = os.getenv(name)
    if not raw_value:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _list_env(name: str, default: str) -> List[str]:
    raw_value = os.getenv(name, default)
    return [item.strip() for item in raw_value.split(",") if item.strip()]


# Storage backends (Redis wins over Postgres; neither means in-memory)
REDIS_URL = os.getenv("REDIS_URL")
POSTGRES_DSN = os.getenv("POSTGRES_DSN")

# Idle sessions are reclaimed after this many seconds (7 days)
SESSION_EXPIRY_SECONDS = _int_env("SESSION_EXPIRY_SECONDS", 7 * 24 * 60 * 60)
CLEANUP_INTERVAL_SECONDS = _int_env("CLEANUP_INTERVAL_SECONDS", 60 * 60)

# HTTP service
ESTIMATION_SERVICE_PORT = _int_env("ESTIMATION_SERVICE_PORT", 8002)
ESTIMATION_SERVICE_URL = os.getenv("ESTIMATION_SERVICE_URL", f"http://localhost:{ESTIMATION_SERVICE_PORT}")
CORS_ORIGINS = _list_env("CORS_ORIGINS", "*")

LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

DEFAULT_SESSION_NAME = "Planning Session"
