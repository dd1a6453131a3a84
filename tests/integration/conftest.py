"""集成测试共享 fixture -- API + 模拟协作方 + 手动触发的调度器"""

import os
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from reviewengine.collaborators import CollaboratorConfig, build_collaborators
from reviewengine.core.store import create_store_group
from reviewengine.engine import ReviewScheduler, SchedulerConfig


@pytest_asyncio.fixture
async def integration_app(tmp_path: Path):
    """集成测试用 FastAPI app：调度器已装配但不启动循环，由测试通过 run_once 驱动"""
    os.environ["REVIEWENGINE_DB_PATH"] = str(tmp_path / "test.db")
    os.environ["REVIEWENGINE_SCHEDULER_ENABLED"] = "false"

    from reviewengine.gateway.main import build_aggregator, create_app

    app = create_app()

    store_group = await create_store_group(str(tmp_path / "test.db"))
    collaborators = build_collaborators(CollaboratorConfig(mode="simulated"))
    aggregator = build_aggregator(store_group, collaborators)
    app.state.store_group = store_group
    app.state.collaborators = collaborators
    app.state.clause_client = None
    app.state.aggregator = aggregator
    app.state.scheduler = None
    app.state.manual_scheduler = ReviewScheduler(aggregator, SchedulerConfig())

    yield app

    await store_group.conn.close()
    os.environ.pop("REVIEWENGINE_DB_PATH", None)
    os.environ.pop("REVIEWENGINE_SCHEDULER_ENABLED", None)


@pytest_asyncio.fixture
async def client(integration_app) -> AsyncGenerator[AsyncClient, None]:
    async with AsyncClient(
        transport=ASGITransport(app=integration_app),
        base_url="http://test",
    ) as ac:
        yield ac
