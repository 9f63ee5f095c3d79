"""
Pytest configuration for API integration tests
"""

import pytest
from fastapi.testclient import TestClient


@pytest.fixture(scope="function")
def files_dir(tmp_path):
    """Directory that stored uploads are written to"""
    directory = tmp_path / "files"
    directory.mkdir()
    return directory


@pytest.fixture(scope="function")
def client(files_dir):
    """
    Create a test client with properly initialized app state.
    Each test gets a fresh client to avoid state contamination.
    """
    from config import Settings, StorageSettings
    from core.engine import CodecEngine
    from main import app

    settings = Settings(storage=StorageSettings(files_dir=str(files_dir)))

    # Set in app state
    app.state.engine = CodecEngine()
    app.state.settings = settings
    app.state.config = settings.to_dict()

    # Create test client (no context manager to skip the lifespan)
    test_client = TestClient(app, raise_server_exceptions=False)

    yield test_client
