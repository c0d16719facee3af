from __future__ import annotations

import asyncio
import logging
from typing import AsyncIterator, Optional, Sequence

from .formatter import format_response
from .observability import ErrorCode, SolveContext, log_solve_done, log_solve_error
from .orchestrator import SolutionBackend, SolveOutcome, run_fallback
from .schemas import ExerciseImage

logger = logging.getLogger(__name__)

ERROR_PREFIX = "Error:"
ALL_MODELS_FAILED_MESSAGE = "All models failed to process the image"


def error_payload(message: Optional[str]) -> str:
    text = (message or "").strip().rstrip(".").rstrip() or ALL_MODELS_FAILED_MESSAGE
    return f"{ERROR_PREFIX} {text}. Please try again."


def render_outcome(outcome: SolveOutcome) -> str:
    success = outcome.success
    if success is not None:
        return format_response(success.text)
    return error_payload(outcome.last_error)


async def stream_solution(
    backend: SolutionBackend,
    *,
    models: Sequence[str],
    image: ExerciseImage,
    prompt: str,
    attempt_timeout_s: Optional[float],
    ctx: SolveContext,
) -> AsyncIterator[str]:
    # Headers are already on the wire when this runs, so every outcome is in-band.
    try:
        outcome = await run_fallback(
            backend,
            models=models,
            image=image,
            prompt=prompt,
            attempt_timeout_s=attempt_timeout_s,
            ctx=ctx,
        )
        payload = render_outcome(outcome)
    except asyncio.CancelledError:
        ctx.mark_done("cancelled")
        log_solve_done(ctx)
        raise
    except Exception as e:
        log_solve_error(ctx, ErrorCode.INTERNAL_ERROR, str(e), exc=e)
        ctx.mark_done("failed")
        log_solve_done(ctx)
        yield error_payload(str(e) or None)
        return

    if outcome.ok:
        ctx.mark_done("completed")
    else:
        log_solve_error(ctx, ErrorCode.ALL_MODELS_FAILED, outcome.last_error or ALL_MODELS_FAILED_MESSAGE)
        ctx.mark_done("failed")
    log_solve_done(ctx)
    yield payload
