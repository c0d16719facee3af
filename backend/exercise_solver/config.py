from __future__ import annotations

import os
from dataclasses import dataclass, field
from typing import Optional, Tuple

DEFAULT_MODELS: Tuple[str, ...] = (
    "gemini-2.0-flash",
    "gemini-1.5-flash",
    "gemini-1.5-pro",
)

DEFAULT_LANGUAGE = "Vietnamese"


def _env_float(name: str, default: float) -> float:
    try:
        return float(os.getenv(name, str(default)))
    except Exception:
        return default


def _env_int(name: str, default: int) -> int:
    try:
        return int(float(os.getenv(name, str(default))))
    except Exception:
        return default


def _env_csv(name: str, default: Tuple[str, ...]) -> Tuple[str, ...]:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    values = tuple(v.strip() for v in raw.split(",") if v.strip())
    return values or default


@dataclass(frozen=True)
class Settings:
    """Process-wide, read-only configuration."""

    api_key: Optional[str] = None
    models: Tuple[str, ...] = DEFAULT_MODELS
    attempt_timeout_s: float = 60.0
    http_timeout_s: float = 120.0
    max_output_tokens: int = 8192
    temperature: float = 0.2
    answer_language: str = DEFAULT_LANGUAGE
    frontend_origins: Tuple[str, ...] = field(default_factory=lambda: ("http://localhost:3000",))

    @property
    def has_api_key(self) -> bool:
        return bool(self.api_key and self.api_key.strip())

    @classmethod
    def from_env(cls) -> "Settings":
        api_key = os.getenv("GEMINI_API_KEY") or os.getenv("GOOGLE_API_KEY") or None
        return cls(
            api_key=api_key,
            models=_env_csv("GEMINI_MODELS", DEFAULT_MODELS),
            attempt_timeout_s=max(1.0, _env_float("GENAI_ATTEMPT_TIMEOUT_SECONDS", 60.0)),
            http_timeout_s=max(1.0, _env_float("GENAI_HTTP_TIMEOUT_SECONDS", 120.0)),
            max_output_tokens=_env_int("SOLVE_MAX_OUTPUT_TOKENS", 8192),
            temperature=_env_float("SOLVE_TEMPERATURE", 0.2),
            answer_language=(os.getenv("ANSWER_LANGUAGE") or DEFAULT_LANGUAGE).strip() or DEFAULT_LANGUAGE,
            frontend_origins=_env_csv("FRONTEND_ORIGINS", ("http://localhost:3000",)),
        )


def get_settings() -> Settings:
    return Settings.from_env()
