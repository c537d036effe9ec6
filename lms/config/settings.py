import os

from dotenv import load_dotenv

load_dotenv()


def _get_int(value: str | None, default: int) -> int:
    if value is None or not value.strip():
        return default
    return int(value)


MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017")
MONGO_DATABASE = os.getenv("MONGO_DATABASE", "lms")

REDIS_URI = os.getenv("REDIS_URI", "redis://localhost:6379/0")
SESSION_TTL_SECONDS = _get_int(os.getenv("SESSION_TTL_SECONDS"), 3600)

LMS_PORT = _get_int(os.getenv("LMS_PORT"), 8000)
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

CORS_ORIGINS = [
    origin.strip()
    for origin in os.getenv("CORS_ORIGINS", "http://localhost:5173").split(",")
    if origin.strip()
]
