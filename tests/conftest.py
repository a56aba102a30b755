from __future__ import annotations

import os
from collections.abc import Generator
from pathlib import Path

import pytest

from app.core.scheduler import ManualScheduler
from app.engine_config import EngineConfig

# Delays used by every test that drives a manual clock.
TEST_CONFIG = EngineConfig(reveal_delay_ms=600, reload_delay_ms=300)


@pytest.fixture(scope="session", autouse=True)
def _load_dotenv_for_tests() -> None:
    """Load repo .env for local runs (PyCharm/CLI).

    In CI, we *don't* auto-load `.env` by default so local overrides
    (delays, REDIS_URL) can't leak into the run.
    """

    if os.environ.get("CI") and os.environ.get("MEMORY_BOMB_LOAD_DOTENV_FOR_TESTS") != "1":
        return

    env_path = Path(__file__).resolve().parents[1] / ".env"
    if env_path.exists():
        from dotenv import load_dotenv

        load_dotenv(dotenv_path=env_path, override=False)


@pytest.fixture(scope="session", autouse=True)
def _init_assets_from_test_fixtures() -> None:
    """Initialize the symbol catalog from `tests/assets` and forbid the built-in fallback.

    This keeps tests hermetic and prevents coupling to the repo's real symbol sets.
    """

    os.environ["MEMORY_BOMB_STRICT_ASSETS"] = "1"

    from app.assets.singleton import init_assets, reset_assets_for_tests

    reset_assets_for_tests()

    # Point the loader at a fake project root: tests/ contains an assets/ dir.
    test_root = Path(__file__).resolve().parent
    init_assets(project_root=test_root)


@pytest.fixture()
def clock() -> ManualScheduler:
    return ManualScheduler()


@pytest.fixture()
def client_and_redis(clock: ManualScheduler):
    """FastAPI TestClient + fakeredis, with sessions driven by the manual `clock`."""

    import fakeredis
    from fastapi.testclient import TestClient

    from app.api.deps import get_redis, get_registry
    from app.main import app
    from app.sessions import SessionRegistry

    r = fakeredis.FakeRedis(decode_responses=True)
    sessions = SessionRegistry(scheduler_factory=lambda: clock, config=TEST_CONFIG)

    def _override() -> Generator[fakeredis.FakeRedis, None, None]:
        yield r

    app.dependency_overrides[get_redis] = _override
    app.dependency_overrides[get_registry] = lambda: sessions
    with TestClient(app) as c:
        yield c, r
    app.dependency_overrides.clear()
    sessions.clear()
