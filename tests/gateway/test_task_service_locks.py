"""TaskService task 级别锁清理测试

测试内容：
1. 取消、删除后锁从全局字典移除
2. 重试耗尽后锁被清理；普通重试保留锁供后续写操作复用
3. 持有中的锁不会被清理
"""

import pytest
from reviewengine.core.exceptions import InvalidStateTransition, RetryExhausted
from reviewengine.core.models import RetryPolicy
from reviewengine.gateway.services.task_service import TaskService


@pytest.fixture(autouse=True)
def clear_task_locks():
    TaskService._task_locks.clear()
    yield
    TaskService._task_locks.clear()


async def _failed_task(store_group, seed_contract_task, retry_policy: RetryPolicy):
    task = await seed_contract_task(retry_policy=retry_policy)
    task.enter_stage("scheduler")
    task.fail("条款抽取程序执行失败: boom", "scheduler")
    return await store_group.task_store.save_task(task)


class TestTaskLockCleanup:
    """锁清理"""

    async def test_cancel_and_delete_release_locks(self, store_group, seed_contract_task):
        service = TaskService(store_group)
        task_ids = []
        for i in range(5):
            task = await seed_contract_task(contract_id=f"CT-{i:03d}")
            task_ids.append(task.task_id)

        for task_id in task_ids:
            await service.cancel_task(task_id, "ops")
            assert task_id not in TaskService._task_locks
            assert await service.delete_task(task_id) is True

        assert TaskService._task_locks == {}

    async def test_rejected_cancel_releases_lock(self, store_group, seed_contract_task):
        service = TaskService(store_group)
        task = await seed_contract_task()
        await service.cancel_task(task.task_id, "ops")

        with pytest.raises(InvalidStateTransition):
            await service.cancel_task(task.task_id, "ops")

        assert task.task_id not in TaskService._task_locks

    async def test_exhausted_retry_releases_lock(self, store_group, seed_contract_task):
        service = TaskService(store_group)
        task = await _failed_task(store_group, seed_contract_task, RetryPolicy.no_retry())

        with pytest.raises(RetryExhausted):
            await service.retry_task(task.task_id, "ops")

        assert task.task_id not in TaskService._task_locks
        stored = await store_group.task_store.get_task(task.task_id)
        assert stored.retry_exhausted is True

    async def test_successful_retry_keeps_lock(self, store_group, seed_contract_task):
        service = TaskService(store_group)
        task = await _failed_task(store_group, seed_contract_task, RetryPolicy(max_retries=2))

        await service.retry_task(task.task_id, "ops")

        assert task.task_id in TaskService._task_locks

    async def test_held_lock_is_not_removed(self, store_group, seed_contract_task):
        task = await seed_contract_task()
        lock = await TaskService._get_task_lock(task.task_id)

        async with lock:
            await TaskService._cleanup_task_lock(task.task_id)
            assert TaskService._task_locks[task.task_id] is lock

        await TaskService._cleanup_task_lock(task.task_id)
        assert task.task_id not in TaskService._task_locks
