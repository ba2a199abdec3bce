import os

# Settings are read at import time, so the environment goes first
os.environ.setdefault("ENVIRONMENT", "test")
os.environ.setdefault("ALLOWED_CORS_URLS", "http://localhost:3000")
os.environ.setdefault("REDIS_HOST", "localhost")
os.environ.setdefault("REDIS_PORT", "6379")
os.environ.setdefault("DB_HOST", "localhost")
os.environ.setdefault("DB_USER", "test")
os.environ.setdefault("DB_PASSWORD", "test")
os.environ.setdefault("DB_DATABASE", "estaciones_test")
os.environ.setdefault("API_BASE_URL", "http://caldenon.test/api")
os.environ.setdefault("MAXTRACKER_API_BASE_URL", "http://maxtracker.test")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from unittest.mock import AsyncMock, MagicMock, patch

import pytest
from fastapi.testclient import TestClient

from app.catalog.registry import station_registry
from app.core.config import settings
from app.main import estaciones_app
from app.users.models import User
from app.users.utils import get_current_user, require_reports, require_sync, require_user_admin


@pytest.fixture
def fake_user():
    return User(
        user_id=1,
        email="admin@estaciones.com",
        password_hash="",
        nombre_usuario="Admin",
        rol_id=1,
        activo=True,
    )


@pytest.fixture
def client(fake_user):
    """TestClient with authentication and permission checks bypassed"""
    for dependency in (get_current_user, require_sync, require_reports, require_user_admin):
        estaciones_app.dependency_overrides[dependency] = lambda: fake_user

    with patch.object(station_registry, "load", new=AsyncMock()):
        with TestClient(estaciones_app) as test_client:
            yield test_client

    estaciones_app.dependency_overrides.clear()


@pytest.fixture
def anonymous_client():
    """TestClient with the real authentication dependencies"""
    estaciones_app.dependency_overrides.clear()
    with patch.object(station_registry, "load", new=AsyncMock()):
        with TestClient(estaciones_app) as test_client:
            yield test_client


@pytest.fixture
def mock_db():
    db = MagicMock()
    db.commit = AsyncMock()
    db.rollback = AsyncMock()
    db.flush = AsyncMock()
    db.execute = AsyncMock(return_value=MagicMock())
    return db


@pytest.fixture
def no_pauses(monkeypatch):
    """Vendor pacing and retry waits off"""
    monkeypatch.setattr(settings, "sync_request_pause", 0)
    monkeypatch.setattr(settings, "sync_retry_delay", 0)
    monkeypatch.setattr(settings, "sync_retry_attempts", 2)
    monkeypatch.setattr(settings, "history_period_pause", 0)
