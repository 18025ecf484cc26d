"""Shared test fixtures."""

import pytest

from app import create_app


@pytest.fixture
def configs_path(tmp_path):
    return str(tmp_path / "data" / "configs.json")


@pytest.fixture
def app(configs_path):
    """App instance with its configs document in a temp dir and a short SSE keepalive."""
    app = create_app(
        {
            "TESTING": True,
            "CONFIGS_FILE": configs_path,
            "STREAM_KEEPALIVE_SECONDS": 0.05,
            "RELAY_TIMEOUT_SECONDS": 2.0,
        }
    )
    yield app


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def inbox(app):
    return app.extensions["webhook_inbox"]


@pytest.fixture
def next_data_frame():
    """Read the next `data:` frame from an SSE chunk iterator, skipping comment frames."""

    def _read(frames):
        for chunk in frames:
            text = chunk.decode("utf-8") if isinstance(chunk, bytes) else chunk
            if text.startswith("data: "):
                return text
        raise AssertionError("stream ended without a data frame")

    return _read
