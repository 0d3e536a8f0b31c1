import asyncio

import pytest
from fastapi.testclient import TestClient

from image_server.config import Settings
from image_server.main import app, build_context

UPLOAD_USER = "uploader"
UPLOAD_PASS = "hunter2"


@pytest.fixture
def settings(tmp_path):
    """Settings pointing at per-test data and temp directories."""
    return Settings(
        data_dir=str(tmp_path / "data"),
        temp_dir=str(tmp_path / "temp"),
        upload_user=UPLOAD_USER,
        upload_pass=UPLOAD_PASS,
    )


@pytest.fixture
def context(settings):
    return asyncio.run(build_context(settings))


@pytest.fixture
def client(context):
    # Important: attach the test context to app state instead of running the lifespan
    app.state.context = context
    yield TestClient(app)
    del app.state.context


@pytest.fixture
def auth(settings):
    return (settings.upload_user, settings.upload_pass)
