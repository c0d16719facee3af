import logging
import os
from typing import Callable, Optional

from fastapi import Depends, FastAPI, File, Form, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response, StreamingResponse

from .config import Settings, get_settings
from .gemini_client import GeminiClient
from .imaging import prepare_image
from .observability import ErrorCode, SolveContext, log_solve_error, log_solve_start
from .orchestrator import SolutionBackend
from .prompts import build_prompt, parse_subject
from .schemas import ErrorResponse, ExerciseImage, HealthResponse
from .streaming import stream_solution

logger = logging.getLogger(__name__)

BackendFactory = Callable[[Settings], SolutionBackend]


def get_backend_factory() -> BackendFactory:
    return GeminiClient.from_settings


app = FastAPI(title="Exercise Solver API", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=list(Settings.from_env().frontend_origins),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


def _error_response(status_code: int, error: str, details: Optional[str] = None) -> JSONResponse:
    body = ErrorResponse(error=error, details=details)
    return JSONResponse(status_code=status_code, content=body.model_dump(exclude_none=True))


@app.get("/health", response_model=HealthResponse)
def health(settings: Settings = Depends(get_settings)) -> HealthResponse:
    return HealthResponse(
        status="ok",
        models=list(settings.models),
        api_key_configured=settings.has_api_key,
    )


@app.post("/api/solve", response_model=None)
async def solve(
    image: Optional[UploadFile] = File(default=None),
    subject: Optional[str] = Form(default=None),
    language: Optional[str] = Form(default=None),
    settings: Settings = Depends(get_settings),
    backend_factory: BackendFactory = Depends(get_backend_factory),
) -> Response:
    ctx = SolveContext(subject=(subject or "").strip() or None, candidates_count=len(settings.models))
    try:
        if not settings.has_api_key:
            log_solve_error(ctx, ErrorCode.API_KEY_MISSING, "GEMINI_API_KEY is not set")
            return _error_response(500, "API key is not configured")

        data = await image.read() if image is not None else b""
        if not data:
            log_solve_error(ctx, ErrorCode.NO_IMAGE, "No image provided in request")
            return _error_response(400, "No image provided")

        exercise = prepare_image(
            ExerciseImage(
                data=data,
                mime_type=image.content_type or "",
                filename=image.filename or "",
            )
        )
        ctx.image_mime_type = exercise.mime_type
        ctx.image_size = exercise.size

        parsed_subject = parse_subject(subject)
        prompt = build_prompt(parsed_subject, (language or "").strip() or settings.answer_language)
        backend = backend_factory(settings)

        log_solve_start(ctx, {"resolved_subject": parsed_subject.value if parsed_subject else None})
        generator = stream_solution(
            backend,
            models=settings.models,
            image=exercise,
            prompt=prompt,
            attempt_timeout_s=settings.attempt_timeout_s,
            ctx=ctx,
        )
        return StreamingResponse(generator, media_type="text/html", headers={"Cache-Control": "no-cache"})
    except Exception as e:
        log_solve_error(ctx, ErrorCode.INTERNAL_ERROR, str(e), exc=e)
        return _error_response(500, "Internal server error", details=str(e) or e.__class__.__name__)


if __name__ == "__main__":
    import uvicorn

    _level = os.getenv("LOG_LEVEL", "INFO").upper()
    logging.basicConfig(
        level=getattr(logging, _level, logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run(
        "exercise_solver.main:app",
        host=os.getenv("HOST", "0.0.0.0"),
        port=int(os.getenv("PORT", "8080")),
    )
