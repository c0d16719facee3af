"""
Observability utilities: correlation IDs, timing, error codes.

Usage:
    from .observability import SolveContext, ErrorCode, log_solve_start, log_solve_done

This module provides:
- SolveContext: dataclass for correlation IDs and timing of one solve request
- ErrorCode: enum of normalized error codes
- Structured logging helpers

Image bytes and API keys never go into these fields.
"""

from __future__ import annotations

import logging
import os
import time
import uuid
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Optional

logger = logging.getLogger(__name__)

RELEASE_VERSION = os.getenv("RELEASE_VERSION", "0.1.0")
GIT_SHA = os.getenv("GIT_SHA", "unknown")


class ErrorCode(str, Enum):
    """Normalized error codes for logging."""

    # Request errors (reported before streaming)
    API_KEY_MISSING = "API_KEY_MISSING"
    NO_IMAGE = "NO_IMAGE"

    # Per-candidate errors (recovered by falling through)
    MODEL_FAILED = "MODEL_FAILED"
    MODEL_TIMEOUT = "MODEL_TIMEOUT"

    # Terminal in-band error
    ALL_MODELS_FAILED = "ALL_MODELS_FAILED"

    # Generic
    INTERNAL_ERROR = "INTERNAL_ERROR"


@dataclass
class SolveContext:
    """
    Holds correlation IDs and timing for a single solve request.
    Create when the request arrives, pass through the pipeline.
    """

    request_id: str = field(default_factory=lambda: uuid.uuid4().hex[:12])
    subject: Optional[str] = None
    image_mime_type: Optional[str] = None
    image_size: int = 0
    candidates_count: int = 0

    started_at: float = field(default_factory=time.monotonic)
    done_at: Optional[float] = None

    # Outcome
    final_status: str = "unknown"
    error_code: Optional[str] = None
    model_used: Optional[str] = None
    attempted_models: List[str] = field(default_factory=list)

    @property
    def used_fallback(self) -> bool:
        return len(self.attempted_models) > 1

    def elapsed_ms(self) -> int:
        return int((time.monotonic() - self.started_at) * 1000)

    def mark_done(self, status: str) -> None:
        self.done_at = time.monotonic()
        self.final_status = status

    def correlation_fields(self) -> Dict[str, Any]:
        fields: Dict[str, Any] = {
            "request_id": self.request_id,
            "release": RELEASE_VERSION,
            "git_sha": GIT_SHA,
        }
        if self.subject:
            fields["subject"] = self.subject
        return fields

    def outcome_fields(self) -> Dict[str, Any]:
        fields: Dict[str, Any] = {
            "final_status": self.final_status,
            "elapsed_ms": self.elapsed_ms(),
            "attempts": len(self.attempted_models),
            "candidates": self.candidates_count,
            "used_fallback": self.used_fallback,
        }
        if self.model_used:
            fields["model_used"] = self.model_used
        if self.error_code:
            fields["error_code"] = self.error_code
        return fields

    def all_fields(self) -> Dict[str, Any]:
        return {**self.correlation_fields(), **self.outcome_fields()}


def log_solve_start(ctx: SolveContext, extra: Optional[Dict[str, Any]] = None) -> None:
    """Log solve start with correlation fields and image metadata."""
    fields = ctx.correlation_fields()
    fields["image_mime_type"] = ctx.image_mime_type
    fields["image_size"] = ctx.image_size
    fields["candidates"] = ctx.candidates_count
    if extra:
        fields.update(extra)
    logger.info("solve_start %s", fields)


def log_attempt(
    ctx: Optional[SolveContext],
    model: str,
    ok: bool,
    duration_ms: int,
    error: Optional[str] = None,
    timed_out: bool = False,
) -> None:
    """Log one candidate attempt."""
    fields = ctx.correlation_fields() if ctx is not None else {}
    fields["model"] = model
    fields["ok"] = ok
    fields["duration_ms"] = duration_ms
    if ctx is not None:
        ctx.attempted_models.append(model)
        if ok:
            ctx.model_used = model
    if ok:
        logger.info("solve_attempt %s", fields)
    else:
        code = ErrorCode.MODEL_TIMEOUT if timed_out else ErrorCode.MODEL_FAILED
        fields["error_code"] = code.value
        fields["error_message"] = error or ""
        logger.warning("solve_attempt %s", fields)


def log_solve_done(ctx: SolveContext, extra: Optional[Dict[str, Any]] = None) -> None:
    """Log solve done with correlation, timing and outcome fields."""
    fields = ctx.all_fields()
    if extra:
        fields.update(extra)
    logger.info("solve_done %s", fields)


def log_solve_error(
    ctx: SolveContext,
    error_code: ErrorCode,
    message: str,
    exc: Optional[BaseException] = None,
    extra: Optional[Dict[str, Any]] = None,
) -> None:
    """Log solve error with correlation fields and error code."""
    ctx.error_code = error_code.value
    fields = ctx.correlation_fields()
    fields["error_code"] = error_code.value
    fields["error_message"] = message
    if extra:
        fields.update(extra)
    if exc is not None:
        logger.error("solve_error %s", fields, exc_info=exc)
    else:
        logger.warning("solve_error %s", fields)
