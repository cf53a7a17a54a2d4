import os
import tempfile
from pathlib import Path
from unittest.mock import AsyncMock

import pytest
from fastapi import FastAPI
from fastapi.testclient import TestClient

# Config must exist before anything imports rgpanel.config
_tmp_dir = tempfile.TemporaryDirectory(prefix="pytest_config_")
_config_file = Path(_tmp_dir.name) / "config.yaml"
_config_file.write_text(
    f"""
search:
  root: {_tmp_dir.name}
  context_lines: 2

auth:
  token: test-token-123

logging:
  level: DEBUG
  json: false
"""
)
os.environ["CONFIG_PATH"] = str(_config_file)


@pytest.fixture(autouse=True)
def reset_settings_and_container():
    """Each test starts without cached settings or an initialized container."""
    from rgpanel.config import reset_settings_cache
    from rgpanel.services.container import reset_container

    reset_settings_cache()
    yield
    reset_settings_cache()
    reset_container()


@pytest.fixture
def search_root():
    """Create a temporary directory to search in."""
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir) / "root"
        root.mkdir()
        yield root


@pytest.fixture
def mock_search_service():
    """Search service whose search() returns no records unless told otherwise."""
    mock = AsyncMock()
    mock.search = AsyncMock(return_value=[])
    return mock


@pytest.fixture
def test_app():
    """Create a test FastAPI app without the production lifespan."""
    from rgpanel.api import health, search

    app = FastAPI(title="rg-panel test")
    app.include_router(health.router)
    app.include_router(search.router)
    return app


@pytest.fixture
def client(mock_search_service, test_app):
    """Test client with a session backed by the mock search service."""
    from rgpanel.services.container import init_container

    init_container(search_service=mock_search_service)

    with TestClient(test_app) as c:
        yield c


@pytest.fixture
def auth_headers():
    """Valid authorization headers."""
    return {"Authorization": "Bearer test-token-123"}
