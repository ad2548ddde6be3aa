import os
from typing import Generator

import pytest
from fastapi.testclient import TestClient

# Settings are read when `main` is imported; keep the test run independent of a
# developer's .env and of a live lookup service.
os.environ.setdefault("API_URL", "http://lookup.test")
os.environ.setdefault("RUN_MIGRATIONS", "0")

from main import app  # noqa: E402
from songs.router import get_song_service  # noqa: E402
from songs.service import SongService  # noqa: E402

MIGRATIONS_DIR = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "db", "migrations")


@pytest.fixture
def song_service(mocker):
    """SongService double; every coroutine method is an AsyncMock."""
    return mocker.create_autospec(SongService, instance=True)


@pytest.fixture
def client(song_service) -> Generator[TestClient, None, None]:
    """TestClient wired to the mocked service. The lifespan (DB pool) is not started."""
    app.dependency_overrides[get_song_service] = lambda: song_service
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def migrations_dir() -> str:
    return MIGRATIONS_DIR
