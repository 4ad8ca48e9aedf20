import os
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Optional, Tuple

from dotenv import load_dotenv

load_dotenv()

MIN_QUESTION_AMOUNT = 3
MAX_QUESTION_AMOUNT = 20
DEFAULT_QUESTION_AMOUNT = 5

DEFAULT_MODEL = "gemini-2.5-flash"
KNOWN_MODELS: Tuple[str, ...] = (
    "gemini-2.5-flash",
    "gemini-2.5-flash-lite",
    "gemini-2.0-flash",
)
DEFAULT_TIMEOUT_SECONDS = 60.0
DEFAULT_PORT = 3000


def _split_csv(value: Optional[str]) -> Tuple[str, ...]:
    if not value:
        return ()
    return tuple(part.strip() for part in value.split(",") if part.strip())


@dataclass(frozen=True)
class Settings:
    api_key: str = field(repr=False)
    model: str = DEFAULT_MODEL
    known_models: Tuple[str, ...] = KNOWN_MODELS
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    port: int = DEFAULT_PORT
    log_level: str = "INFO"


def get_cors_origins() -> Tuple[str, ...]:
    return _split_csv(os.getenv("CORS_ORIGINS")) or ("*",)


def load_settings() -> Settings:
    """
    Read settings from the environment (and .env via python-dotenv).

    The Gemini key is mandatory: a missing key raises immediately so the
    service never starts half-configured.
    """
    api_key = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY")
    if not api_key:
        raise RuntimeError("Set GEMINI_API_KEY or GOOGLE_API_KEY in .env")

    return Settings(
        api_key=api_key,
        model=os.getenv("GEMINI_MODEL") or DEFAULT_MODEL,
        known_models=_split_csv(os.getenv("GEMINI_MODELS")) or KNOWN_MODELS,
        timeout_seconds=float(os.getenv("GEMINI_TIMEOUT_SECONDS") or DEFAULT_TIMEOUT_SECONDS),
        port=int(os.getenv("PORT") or DEFAULT_PORT),
        log_level=(os.getenv("LOG_LEVEL") or "INFO").upper(),
    )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    return load_settings()
