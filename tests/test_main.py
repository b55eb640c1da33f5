import asyncio

import httpx

from database.mongodb import db_manager
from main import app, lifespan
from services.task_registry import task_registry


async def test_shutdown_drains_background_work_before_disconnect(monkeypatch):
    order = []

    async def connect():
        order.append("connect")

    async def disconnect():
        order.append("disconnect")

    async def slow_work():
        await asyncio.sleep(0.01)
        order.append("work done")

    monkeypatch.setattr(db_manager, "connect", connect)
    monkeypatch.setattr(db_manager, "disconnect", disconnect)

    async with lifespan(app):
        task_registry.schedule(slow_work(), name="slow-work")
        assert task_registry.pending == 1

    assert order == ["connect", "work done", "disconnect"]
    assert task_registry.pending == 0


async def test_health_reports_disconnected_database(monkeypatch):
    monkeypatch.setattr(db_manager, "client", None)
    transport = httpx.ASGITransport(app=app)

    async with httpx.AsyncClient(transport=transport, base_url="http://test") as client:
        response = await client.get("/health")

    assert response.status_code == 200
    assert response.json() == {
        "status": "degraded",
        "database": "disconnected",
        "background_tasks": 0,
    }
