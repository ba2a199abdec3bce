from contextlib import asynccontextmanager
from unittest.mock import AsyncMock, MagicMock, patch

import pytest

from app.core import db as db_module
from app.tanks.tasks import refresh_tank_levels
from app.worker import config


def _fake_scope(session):
    @asynccontextmanager
    async def scope():
        yield session
        await session.commit()
    return scope


def test_beat_schedule_points_to_registered_tasks():
    tasks = {entry["task"] for entry in config.beat_schedule.values()}
    assert tasks == {
        "app.closures.tasks.sync_closures_auto",
        "app.invoicing.tasks.sync_last_hour",
        "app.tanks.tasks.refresh_tank_levels",
        "app.catalog.tasks.refresh_product_catalog",
    }
    assert config.timezone == "America/Argentina/Buenos_Aires"


def test_refresh_tank_levels_task_commits_before_returning():
    session = MagicMock(commit=AsyncMock())
    with patch("app.tanks.tasks.async_session_scope", _fake_scope(session)), \
            patch("app.tanks.tasks.async_engine") as engine, \
            patch("app.tanks.tasks.TankService") as service_cls:
        engine.dispose = AsyncMock()
        service_cls.return_value.refresh = AsyncMock(return_value=3)

        result = refresh_tank_levels.apply().get()

    assert result["status"] == "success"
    assert result["actualizados"] == 3
    session.commit.assert_awaited_once()
    engine.dispose.assert_awaited_once()


async def test_session_scope_commits_on_success(monkeypatch):
    session = MagicMock(commit=AsyncMock(), rollback=AsyncMock())
    factory = MagicMock()
    factory.return_value.__aenter__ = AsyncMock(return_value=session)
    factory.return_value.__aexit__ = AsyncMock(return_value=False)
    monkeypatch.setattr(db_module, "AsyncSessionLocal", factory)

    async with db_module.async_session_scope() as db:
        assert db is session

    session.commit.assert_awaited_once()
    session.rollback.assert_not_awaited()


async def test_session_scope_rolls_back_on_error(monkeypatch):
    session = MagicMock(commit=AsyncMock(), rollback=AsyncMock())
    factory = MagicMock()
    factory.return_value.__aenter__ = AsyncMock(return_value=session)
    factory.return_value.__aexit__ = AsyncMock(return_value=False)
    monkeypatch.setattr(db_module, "AsyncSessionLocal", factory)

    with pytest.raises(RuntimeError):
        async with db_module.async_session_scope():
            raise RuntimeError("vendor down")

    session.rollback.assert_awaited_once()
    session.commit.assert_not_awaited()
