"""core 测试配置 -- 领域模型 fixture"""

import pytest
from reviewengine.core.models import RetryPolicy, Task, TaskConfiguration


@pytest.fixture
def new_task() -> Task:
    """未持久化的新任务（默认重试策略，CLAUSE_EXTRACTION 阶段，PENDING）"""
    return Task.create(task_name="框架协议审查", actor_id="tester")


@pytest.fixture
def make_task():
    """按指定重试策略构造任务"""

    def _make(retry_policy: RetryPolicy | None = None, **custom_settings) -> Task:
        return Task.create(
            task_name="框架协议审查",
            actor_id="tester",
            configuration=TaskConfiguration(
                retry_policy=retry_policy,
                custom_settings=custom_settings,
            ),
        )

    return _make
