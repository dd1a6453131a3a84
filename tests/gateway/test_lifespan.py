"""FastAPI lifespan 测试

测试内容：
1. 启动时 DB 初始化、协作方 / 聚合器装配、调度器启动
2. 关闭时调度器停止、连接清理
3. 调度器关闭时 app.state.scheduler 为 None
"""

import os
from pathlib import Path

import pytest
from reviewengine.collaborators import SimulatedCollaborator
from reviewengine.core.models import ExecutionStage
from reviewengine.gateway.main import create_app

_ENV_KEYS = [
    "REVIEWENGINE_DB_PATH",
    "REVIEWENGINE_SCHEDULER_ENABLED",
    "REVIEWENGINE_SCHEDULER_PROCESS_DELAY_S",
    "REVIEWENGINE_SCHEDULER_RETRY_DELAY_S",
    "REVIEWENGINE_COLLABORATOR_MODE",
]


@pytest.fixture
def lifespan_env(tmp_path: Path):
    os.environ["REVIEWENGINE_DB_PATH"] = str(tmp_path / "data" / "lifespan.db")
    os.environ["REVIEWENGINE_SCHEDULER_PROCESS_DELAY_S"] = "60"
    os.environ["REVIEWENGINE_SCHEDULER_RETRY_DELAY_S"] = "60"
    os.environ.pop("REVIEWENGINE_COLLABORATOR_MODE", None)
    yield tmp_path
    for key in _ENV_KEYS:
        os.environ.pop(key, None)


class TestLifespan:
    """Lifespan 测试"""

    async def test_startup_and_shutdown(self, lifespan_env: Path):
        os.environ["REVIEWENGINE_SCHEDULER_ENABLED"] = "true"
        app = create_app()

        async with app.router.lifespan_context(app):
            assert (lifespan_env / "data" / "lifespan.db").exists()
            assert isinstance(app.state.collaborators.clause_extraction, SimulatedCollaborator)
            assert app.state.clause_client is None
            assert app.state.aggregator.registered_stages == [
                ExecutionStage.CLAUSE_EXTRACTION,
                ExecutionStage.MODEL_REVIEW,
                ExecutionStage.REPORT_GENERATION,
            ]
            scheduler = app.state.scheduler
            assert scheduler.running is True

        assert scheduler.running is False

    async def test_scheduler_disabled(self, lifespan_env: Path):
        os.environ["REVIEWENGINE_SCHEDULER_ENABLED"] = "false"
        app = create_app()

        async with app.router.lifespan_context(app):
            assert app.state.scheduler is None
            cursor = await app.state.store_group.conn.execute("SELECT COUNT(*) FROM tasks")
            assert (await cursor.fetchone())[0] == 0
