from __future__ import annotations

import os
from collections.abc import Generator
from pathlib import Path

import pytest

from soloquiz.questions.registry import QuestionSet, load_questions_json

TESTS_DIR = Path(__file__).resolve().parent
FIXTURE_QUESTIONS = TESTS_DIR / "questions" / "questions.json"


@pytest.fixture(scope="session", autouse=True)
def _load_dotenv_for_tests() -> None:
    """Load repo .env for local runs (e.g. a REDIS_URL or log level override).

    In CI we don't auto-load `.env` so runs stay hermetic.
    Opt-in there with: SOLOQUIZ_LOAD_DOTENV_FOR_TESTS=1
    """

    if os.environ.get("CI") and os.environ.get("SOLOQUIZ_LOAD_DOTENV_FOR_TESTS") != "1":
        return

    env_path = TESTS_DIR.parent / ".env"
    if env_path.exists():
        from dotenv import load_dotenv

        load_dotenv(dotenv_path=env_path, override=False)


@pytest.fixture(scope="session", autouse=True)
def _init_questions_from_test_fixtures(_load_dotenv_for_tests: None) -> None:
    """Initialize the question set from `tests/questions` and forbid the built-in fallback.

    This keeps tests hermetic and decoupled from the repo's real question file.
    """

    os.environ["SOLOQUIZ_STRICT_QUESTIONS"] = "1"
    os.environ.pop("SOLOQUIZ_QUESTIONS_PATH", None)
    os.environ.pop("SOLOQUIZ_KEY_PREFIX", None)
    os.environ.pop("SOLOQUIZ_STICKY_FINAL_RESOLUTION", None)

    from soloquiz.questions.singleton import init_questions, reset_questions_for_tests

    reset_questions_for_tests()
    # Point the loader at a fake project root: tests/ contains a questions/ dir.
    init_questions(project_root=TESTS_DIR)


@pytest.fixture()
def questions() -> QuestionSet:
    """Five questions worth 1, 1, 1, 2 and 1 points; the last one is the final."""

    return load_questions_json(FIXTURE_QUESTIONS)


@pytest.fixture()
def client_and_redis():
    """FastAPI TestClient wired to a fakeredis instance."""

    import fakeredis
    from fastapi.testclient import TestClient

    from soloquiz.api.deps import get_redis
    from soloquiz.main import app

    r = fakeredis.FakeRedis(decode_responses=True)

    def _override() -> Generator[fakeredis.FakeRedis, None, None]:
        yield r

    app.dependency_overrides[get_redis] = _override
    with TestClient(app) as c:
        yield c, r
    app.dependency_overrides.clear()
