"""全局 pytest 配置 -- 临时 SQLite 数据库 + StoreGroup + 合同任务种子数据 fixture"""

from collections.abc import AsyncGenerator, Awaitable, Callable
from pathlib import Path

import aiosqlite
import pytest_asyncio
from reviewengine.core.models import (
    ContractTaskDetails,
    RetryPolicy,
    Task,
    TaskConfiguration,
    TaskType,
)
from reviewengine.core.store import StoreGroup, create_store_group, create_task_with_details


@pytest_asyncio.fixture
async def tmp_db_path(tmp_path: Path) -> Path:
    """提供临时 SQLite 数据库路径"""
    return tmp_path / "test.db"


@pytest_asyncio.fixture
async def db_conn(tmp_db_path: Path) -> AsyncGenerator[aiosqlite.Connection, None]:
    """提供已初始化的临时 SQLite 数据库连接"""
    from reviewengine.core.store.sqlite_init import init_db

    conn = await aiosqlite.connect(str(tmp_db_path))
    conn.row_factory = aiosqlite.Row
    await init_db(conn)
    yield conn
    await conn.close()


@pytest_asyncio.fixture
async def store_group(tmp_db_path: Path) -> AsyncGenerator[StoreGroup, None]:
    """提供共享连接的 Store 实例组"""
    group = await create_store_group(str(tmp_db_path))
    yield group
    await group.conn.close()


SeedTask = Callable[..., Awaitable[Task]]


@pytest_asyncio.fixture
async def seed_contract_task(store_group: StoreGroup) -> SeedTask:
    """写入一条合同审查任务（Task + 合同详情）并返回 Task"""

    async def _seed(
        task_name: str = "采购合同审查",
        task_type: TaskType = TaskType.CONTRACT_REVIEW,
        retry_policy: RetryPolicy | None = None,
        custom_settings: dict | None = None,
        with_details: bool = True,
        contract_id: str = "CT-001",
    ) -> Task:
        task = Task.create(
            task_name=task_name,
            actor_id="tester",
            task_type=task_type,
            configuration=TaskConfiguration(
                retry_policy=retry_policy,
                custom_settings=custom_settings or {},
            ),
        )
        details = None
        if with_details:
            details = ContractTaskDetails(
                task_id=task.task_id,
                contract_id=contract_id,
                file_uuid=f"file-{contract_id}",
                contract_title="设备采购合同",
                contract_type="PURCHASE",
                business_tags=["采购"],
                industry="制造业",
                created_at=task.audit.created_at,
            )
        await create_task_with_details(
            store_group.conn,
            store_group.task_store,
            store_group.contract_task_store,
            task,
            details,
        )
        return task

    return _seed
