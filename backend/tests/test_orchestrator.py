import asyncio

from conftest import FakeBackend

from exercise_solver.observability import SolveContext
from exercise_solver.orchestrator import AttemptFailure, AttemptSuccess, run_fallback
from exercise_solver.schemas import ExerciseImage

IMAGE = ExerciseImage(data=b"\x89PNG fake", mime_type="image/png", filename="ex.png")
MODELS = ("model-a", "model-b", "model-c", "model-d")


def _run(backend, models=MODELS, timeout=None, ctx=None):
    return asyncio.run(
        run_fallback(
            backend,
            models=models,
            image=IMAGE,
            prompt="solve it",
            attempt_timeout_s=timeout,
            ctx=ctx,
        )
    )


def test_first_success_short_circuits():
    backend = FakeBackend(["answer"])

    outcome = _run(backend)

    assert backend.models_called == ["model-a"]
    assert outcome.ok
    assert outcome.success == AttemptSuccess(model="model-a", text="answer")
    assert outcome.last_error is None


def test_fail_fail_success_stops_at_third():
    backend = FakeBackend([RuntimeError("quota"), RuntimeError("404 model"), "third wins"])

    outcome = _run(backend)

    assert backend.models_called == ["model-a", "model-b", "model-c"]
    assert [type(a) for a in outcome.attempts] == [AttemptFailure, AttemptFailure, AttemptSuccess]
    assert outcome.success.text == "third wins"
    assert outcome.last_error == "404 model"


def test_all_fail_keeps_last_error():
    backend = FakeBackend([RuntimeError("one"), RuntimeError("two"), RuntimeError("three")])

    outcome = _run(backend, models=MODELS[:3])

    assert backend.models_called == ["model-a", "model-b", "model-c"]
    assert not outcome.ok
    assert outcome.success is None
    assert outcome.last_error == "three"


def test_each_attempt_receives_image_and_prompt():
    backend = FakeBackend([RuntimeError("x"), "ok"])

    _run(backend)

    for call in backend.calls:
        assert call["image_bytes"] == IMAGE.data
        assert call["mime_type"] == "image/png"
        assert call["prompt"] == "solve it"


def test_empty_answer_counts_as_failure():
    backend = FakeBackend(["   ", "real answer"])

    outcome = _run(backend)

    assert backend.models_called == ["model-a", "model-b"]
    assert isinstance(outcome.attempts[0], AttemptFailure)
    assert "empty" in outcome.attempts[0].error
    assert outcome.success.text == "real answer"


def test_exception_without_message_uses_class_name():
    backend = FakeBackend([ValueError(), RuntimeError()])

    outcome = _run(backend, models=MODELS[:2])

    assert outcome.last_error == "RuntimeError"


class SlowThenFastBackend:
    def __init__(self):
        self.calls = []

    async def generate_solution_async(self, *, model, image_bytes, mime_type, prompt):
        self.calls.append(model)
        if model == "model-a":
            await asyncio.sleep(5)
        return f"answer from {model}"


def test_timeout_falls_through_to_next_candidate():
    backend = SlowThenFastBackend()

    outcome = _run(backend, timeout=0.05)

    assert backend.calls == ["model-a", "model-b"]
    first = outcome.attempts[0]
    assert isinstance(first, AttemptFailure)
    assert first.timed_out
    assert "timed out" in first.error
    assert outcome.success.text == "answer from model-b"


def test_context_records_attempts():
    backend = FakeBackend([RuntimeError("down"), "ok"])
    ctx = SolveContext()

    _run(backend, ctx=ctx)

    assert ctx.attempted_models == ["model-a", "model-b"]
    assert ctx.model_used == "model-b"
    assert ctx.used_fallback


def test_empty_candidate_list():
    backend = FakeBackend([])

    outcome = _run(backend, models=())

    assert backend.calls == []
    assert not outcome.ok
    assert outcome.last_error is None
