import io
from typing import Any, Dict, List, Sequence, Union

import pytest
from fastapi.testclient import TestClient
from PIL import Image

from exercise_solver.config import Settings, get_settings
from exercise_solver.main import app, get_backend_factory

Outcome = Union[str, BaseException]


class FakeBackend:
    """Plays back one scripted outcome per call, in call order."""

    def __init__(self, outcomes: Sequence[Outcome]) -> None:
        self._outcomes = list(outcomes)
        self.calls: List[Dict[str, Any]] = []
        self.built = 0

    @property
    def models_called(self) -> List[str]:
        return [c["model"] for c in self.calls]

    async def generate_solution_async(
        self,
        *,
        model: str,
        image_bytes: bytes,
        mime_type: str,
        prompt: str,
    ) -> str:
        self.calls.append(
            {"model": model, "image_bytes": image_bytes, "mime_type": mime_type, "prompt": prompt}
        )
        idx = len(self.calls) - 1
        if idx >= len(self._outcomes):
            raise AssertionError(f"unexpected call #{idx + 1} for model {model}")
        outcome = self._outcomes[idx]
        if isinstance(outcome, BaseException):
            raise outcome
        return outcome


def _image_bytes(fmt: str) -> bytes:
    out = io.BytesIO()
    Image.new("RGB", (8, 8), color=(255, 255, 255)).save(out, format=fmt)
    return out.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    return _image_bytes("PNG")


@pytest.fixture
def gif_bytes() -> bytes:
    return _image_bytes("GIF")


@pytest.fixture
def settings() -> Settings:
    return Settings(
        api_key="test-key",
        models=("model-a", "model-b", "model-c"),
        attempt_timeout_s=5.0,
    )


@pytest.fixture
def make_client():
    def _make(settings: Settings, backend: FakeBackend) -> TestClient:
        def _factory(s: Settings) -> FakeBackend:
            backend.built += 1
            return backend

        app.dependency_overrides[get_settings] = lambda: settings
        app.dependency_overrides[get_backend_factory] = lambda: _factory
        return TestClient(app)

    yield _make
    app.dependency_overrides.clear()
