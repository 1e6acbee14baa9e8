import os
from dotenv import load_dotenv

load_dotenv()


def _flag(name: str, default: str = "0") -> bool:
    return os.getenv(name, default).strip().lower() in ("1", "true", "yes", "on")


DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./dayplan.db")

OPENAI_API_KEY = os.getenv("OPENAI_API_KEY")
OPENAI_MODEL = os.getenv("OPENAI_MODEL", "gpt-3.5-turbo-0125")
AI_PROVIDER = os.getenv("AI_PROVIDER", "openai" if OPENAI_API_KEY else "heuristic")

CELERY_BROKER_URL = os.getenv("CELERY_BROKER_URL", "redis://localhost:6379/0")
CELERY_RESULT_BACKEND = os.getenv("CELERY_RESULT_BACKEND", CELERY_BROKER_URL)

# Feedback learning runs inline unless a worker consumes the learning queue
LEARNING_ASYNC = _flag("LEARNING_ASYNC")
LEARNING_MASK_HARD_CONSTRAINTS = _flag("LEARNING_MASK_HARD_CONSTRAINTS", "1")

DEFAULT_TIMEZONE = os.getenv("DEFAULT_TIMEZONE", "UTC")
LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()
