from __future__ import annotations

import logging
from typing import Any, Optional

from .config import Settings

logger = logging.getLogger(__name__)


def _candidate_text(candidate: Any) -> str:
    content = getattr(candidate, "content", None)
    parts = getattr(content, "parts", None) or []
    # Thought parts carry the model's reasoning, not the answer.
    return "".join(
        p.text for p in parts if isinstance(getattr(p, "text", None), str) and not getattr(p, "thought", False)
    )


def _extract_text_from_response(response: object) -> Optional[str]:
    # response.text raises on some SDK versions when candidates are blocked.
    try:
        text = getattr(response, "text", None)
    except Exception:
        text = None
    if isinstance(text, str) and text.strip():
        return text

    candidates = getattr(response, "candidates", None) or []
    joined = "".join(_candidate_text(c) for c in candidates[:1]).strip()
    return joined or None


def _empty_response_error(response: object, model: str) -> RuntimeError:
    finish_reason = None
    try:
        candidates = getattr(response, "candidates", None) or []
        if candidates:
            finish_reason = getattr(candidates[0], "finish_reason", None)
    except Exception:
        finish_reason = None

    prompt_feedback = getattr(response, "prompt_feedback", None)
    return RuntimeError(
        f"Model {model} returned no text"
        + (f" (finish_reason={finish_reason})" if finish_reason is not None else "")
        + (f" (prompt_feedback={prompt_feedback!r})" if prompt_feedback is not None else "")
    )


class GeminiClient:
    def __init__(
        self,
        api_key: str,
        *,
        http_timeout_s: float = 120.0,
        max_output_tokens: int = 8192,
        temperature: float = 0.2,
    ) -> None:
        from google import genai

        self.max_output_tokens = max_output_tokens
        self.temperature = temperature
        timeout_ms = max(1000, int(http_timeout_s * 1000))
        try:
            self._client = genai.Client(api_key=api_key, http_options={"timeout": timeout_ms})
        except TypeError:
            self._client = genai.Client(api_key=api_key)

    @classmethod
    def from_settings(cls, settings: Settings) -> "GeminiClient":
        return cls(
            settings.api_key or "",
            http_timeout_s=settings.http_timeout_s,
            max_output_tokens=settings.max_output_tokens,
            temperature=settings.temperature,
        )

    async def generate_solution_async(
        self,
        *,
        model: str,
        image_bytes: bytes,
        mime_type: str,
        prompt: str,
    ) -> str:
        from google.genai import types

        response = await self._client.aio.models.generate_content(
            model=model,
            contents=[
                types.Part.from_bytes(data=image_bytes, mime_type=mime_type),
                prompt,
            ],
            config=types.GenerateContentConfig(
                max_output_tokens=self.max_output_tokens,
                temperature=self.temperature,
            ),
        )

        text = _extract_text_from_response(response)
        if text is not None:
            return text

        logger.warning("Empty response from model=%s", model)
        raise _empty_response_error(response, model)
