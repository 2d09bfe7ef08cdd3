"""Global settings and configuration."""

import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

# Load from project root
_env_path = Path(__file__).parent.parent.parent / ".env"
load_dotenv(_env_path)


def _env_float(key: str, default: float) -> float:
    try:
        return float(os.environ.get(key, default))
    except ValueError:
        return default


def _env_int(key: str, default: int) -> int:
    try:
        return int(os.environ.get(key, default))
    except ValueError:
        return default


@dataclass
class Config:
    """Application-wide configuration."""

    # Groq API Configuration
    # Store in environment variable or .env file: GROQ_API_KEY
    GROQ_API_KEY: str = os.environ.get("GROQ_API_KEY", "")
    GROQ_API_URL: str = os.environ.get("GROQ_API_URL", "https://api.groq.com/openai/v1")
    AI_MODEL: str = os.environ.get("AI_MODEL", "llama-3.3-70b-versatile")
    AI_TEMPERATURE: float = _env_float("AI_TEMPERATURE", 0.7)
    AI_TIMEOUT: int = _env_int("AI_TIMEOUT", 30)
    AI_TARGET_LANGUAGE: str = os.environ.get("AI_TARGET_LANGUAGE", "Indonesian")

    # Retry settings
    RETRIES: int = _env_int("RETRIES", 4)
    RETRY_BASE_DELAY: float = _env_float("RETRY_BASE_DELAY", 1.0)
    RETRY_MAX_DELAY: float = _env_float("RETRY_MAX_DELAY", 30.0)

    # BASE_DIR is the project root (parent of vocabrecall/)
    BASE_DIR: Path = Path(__file__).parent.parent.parent.resolve()

    # Storage
    STORAGE_BACKEND: str = os.environ.get("STORAGE_BACKEND", "json").lower()
    DATA_DIR: str = os.environ.get("DATA_DIR", str(BASE_DIR / "data" / "topics"))
    DB_PATH: str = os.environ.get("DB_PATH", str(BASE_DIR / "data" / "vocabrecall.db"))

    LOG_LEVEL: str = os.environ.get("LOG_LEVEL", "INFO").upper()
