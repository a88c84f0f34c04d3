"""
Shared fixtures for adversarial tests.

Provides application clients with tight limits for race condition and
rate limit abuse tests.
"""

from collections.abc import Callable
from typing import Any

import pytest
from fastapi.testclient import TestClient

from roobaroo.api.dependencies import get_repository
from roobaroo.api.main import create_app
from roobaroo.config.settings import Settings


@pytest.fixture
def make_client(repository) -> Callable[..., TestClient]:
    """Build a test client whose settings are overridden by keyword arguments."""

    def _make(**overrides: Any) -> TestClient:
        settings = Settings(_env_file=None, environment="test", **overrides)
        app = create_app(settings)
        app.dependency_overrides[get_repository] = lambda: repository
        return TestClient(app)

    return _make
