"""engine 测试配置 -- 可编排的阶段协作方 + 执行器 / 聚合器装配"""

import pytest
from reviewengine.collaborators import SimulatedCollaborator, StageOutcome
from reviewengine.core.store import StoreGroup
from reviewengine.engine import (
    ClauseExtractionExecutor,
    ContractReviewAggregator,
    ContractTaskService,
    ModelReviewExecutor,
    ReportGenerationExecutor,
)


class ScriptedCollaborator:
    """按预设脚本返回结果或抛出异常的协作方，记录每次调用的 task_id"""

    def __init__(self, *results) -> None:
        self._results = list(results)
        self.calls: list[str] = []

    async def _next(self, task) -> StageOutcome:
        self.calls.append(task.task_id)
        result = self._results.pop(0) if len(self._results) > 1 else self._results[0]
        if isinstance(result, Exception):
            raise result
        return result

    async def extract_clauses(self, task, details):
        return await self._next(task)

    async def review_contract(self, task, details, clause_result):
        return await self._next(task)

    async def generate_report(self, task, details, review_result):
        return await self._next(task)


@pytest.fixture
def executor_kwargs(store_group: StoreGroup) -> dict:
    return {
        "task_store": store_group.task_store,
        "stage_result_store": store_group.stage_result_store,
        "contract_tasks": ContractTaskService(store_group.contract_task_store),
        "actor_id": "scheduler",
    }


@pytest.fixture
def simulated_aggregator(store_group: StoreGroup, executor_kwargs: dict) -> ContractReviewAggregator:
    """三个阶段都注册了模拟协作方的聚合器"""
    simulated = SimulatedCollaborator()
    return ContractReviewAggregator(
        task_store=store_group.task_store,
        executors=[
            ClauseExtractionExecutor(collaborator=simulated, **executor_kwargs),
            ModelReviewExecutor(collaborator=simulated, **executor_kwargs),
            ReportGenerationExecutor(collaborator=simulated, **executor_kwargs),
        ],
        actor_id="scheduler",
    )


@pytest.fixture
def scripted():
    """ScriptedCollaborator 构造器"""
    return ScriptedCollaborator
