"""gateway 测试配置 -- FastAPI app（绕过 lifespan 手动装配）+ httpx AsyncClient"""

import os
from collections.abc import AsyncGenerator
from pathlib import Path

import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from reviewengine.core.store import create_store_group


@pytest_asyncio.fixture
async def app(tmp_path: Path):
    """创建测试用 FastAPI app 实例，调度器关闭"""
    os.environ["REVIEWENGINE_DB_PATH"] = str(tmp_path / "sqlite" / "test.db")
    os.environ["REVIEWENGINE_SCHEDULER_ENABLED"] = "false"

    from reviewengine.gateway.main import create_app

    application = create_app()

    # 手动初始化（ASGITransport 不触发 lifespan）
    store_group = await create_store_group(str(tmp_path / "sqlite" / "test.db"))
    application.state.store_group = store_group
    application.state.scheduler = None
    application.state.clause_client = None

    yield application

    await store_group.conn.close()
    for key in ["REVIEWENGINE_DB_PATH", "REVIEWENGINE_SCHEDULER_ENABLED"]:
        os.environ.pop(key, None)


@pytest_asyncio.fixture
async def client(app) -> AsyncGenerator[AsyncClient, None]:
    """提供 httpx AsyncClient 用于测试"""
    async with AsyncClient(
        transport=ASGITransport(app=app),
        base_url="http://test",
    ) as ac:
        yield ac


@pytest_asyncio.fixture
async def created_task(client: AsyncClient) -> dict:
    """通过 API 创建一条合同审查任务，返回响应体"""
    resp = await client.post(
        "/api/contract-review/tasks",
        json={
            "task_name": "采购合同审查",
            "contract_id": "CT-001",
            "file_uuid": "file-uuid-001",
            "contract_title": "设备采购合同",
            "business_tags": ["采购"],
        },
    )
    assert resp.status_code == 201
    return resp.json()
