from __future__ import annotations

import pytest
from factories import FakeApiClient
from fastapi.testclient import TestClient

from contentops_web.app.config import Settings


@pytest.fixture
def fake_api() -> FakeApiClient:
    return FakeApiClient()


@pytest.fixture
def client(fake_api: FakeApiClient) -> TestClient:
    from contentops_web import main as main_module

    settings = Settings(api_base_url="http://backend.test")
    app = main_module.create_app(settings=settings, api_client=fake_api)
    with TestClient(app) as test_client:
        yield test_client
