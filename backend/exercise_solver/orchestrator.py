"""
Sequential model fallback.

Candidates are tried in priority order (fastest first, most capable last).
The first success ends the loop; a failure or timeout moves on to the next
candidate. Candidates are never called concurrently and never retried.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Optional, Protocol, Sequence, Tuple, Union

from .observability import SolveContext, log_attempt
from .schemas import ExerciseImage

logger = logging.getLogger(__name__)


class SolutionBackend(Protocol):
    async def generate_solution_async(
        self,
        *,
        model: str,
        image_bytes: bytes,
        mime_type: str,
        prompt: str,
    ) -> str: ...


@dataclass(frozen=True)
class AttemptSuccess:
    model: str
    text: str


@dataclass(frozen=True)
class AttemptFailure:
    model: str
    error: str
    timed_out: bool = False


GenerationAttempt = Union[AttemptSuccess, AttemptFailure]


@dataclass(frozen=True)
class SolveOutcome:
    attempts: Tuple[GenerationAttempt, ...] = ()

    @property
    def success(self) -> Optional[AttemptSuccess]:
        if self.attempts and isinstance(self.attempts[-1], AttemptSuccess):
            return self.attempts[-1]
        return None

    @property
    def ok(self) -> bool:
        return self.success is not None

    @property
    def last_error(self) -> Optional[str]:
        for attempt in reversed(self.attempts):
            if isinstance(attempt, AttemptFailure) and attempt.error:
                return attempt.error
        return None


def _describe(exc: BaseException) -> str:
    msg = str(exc).strip()
    return msg or exc.__class__.__name__


async def _attempt(
    backend: SolutionBackend,
    *,
    model: str,
    image: ExerciseImage,
    prompt: str,
    timeout_s: Optional[float],
) -> GenerationAttempt:
    try:
        text = await asyncio.wait_for(
            backend.generate_solution_async(
                model=model,
                image_bytes=image.data,
                mime_type=image.mime_type,
                prompt=prompt,
            ),
            timeout=timeout_s,
        )
    except asyncio.CancelledError:
        raise
    except asyncio.TimeoutError:
        return AttemptFailure(model=model, error=f"Model {model} timed out after {timeout_s:g}s", timed_out=True)
    except Exception as e:
        logger.debug("Generation failed (model=%s)", model, exc_info=True)
        return AttemptFailure(model=model, error=_describe(e))

    if not isinstance(text, str) or not text.strip():
        return AttemptFailure(model=model, error=f"Model {model} returned an empty answer")
    return AttemptSuccess(model=model, text=text)


async def run_fallback(
    backend: SolutionBackend,
    *,
    models: Sequence[str],
    image: ExerciseImage,
    prompt: str,
    attempt_timeout_s: Optional[float] = None,
    ctx: Optional[SolveContext] = None,
) -> SolveOutcome:
    attempts: list[GenerationAttempt] = []

    for model in tuple(models):
        started = time.monotonic()
        result = await _attempt(
            backend,
            model=model,
            image=image,
            prompt=prompt,
            timeout_s=attempt_timeout_s,
        )
        attempts.append(result)

        duration_ms = int((time.monotonic() - started) * 1000)
        if isinstance(result, AttemptSuccess):
            log_attempt(ctx, model, True, duration_ms)
            break
        log_attempt(ctx, model, False, duration_ms, error=result.error, timed_out=result.timed_out)

    return SolveOutcome(attempts=tuple(attempts))
