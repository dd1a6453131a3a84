"""任务查询路由

GET /api/tasks: 任务列表查询，支持 status / stage 筛选。
GET /api/tasks/statistics: 按状态/阶段统计。
GET /api/tasks/timeout: 运行超时的任务。
GET /api/tasks/{task_id}: 任务详情，含合同详情与阶段结果。
DELETE /api/tasks/{task_id}: 删除任务。
"""

from fastapi import APIRouter, Depends, Query
from pydantic import BaseModel

from reviewengine.core.exceptions import DuplicateContractTaskError
from reviewengine.core.models import ExecutionStage, Task, TaskStatus

from ..deps import get_store_group
from ..services.task_service import TaskService
from .errors import error_response, task_not_found

router = APIRouter()


class TaskSummary(BaseModel):
    """任务摘要（列表项）"""

    task_id: str
    task_name: str
    task_type: str
    status: str
    current_stage: str
    retry_count: int
    max_retries: int
    retry_exhausted: bool
    error_message: str | None
    created_at: str
    updated_at: str

    @classmethod
    def from_task(cls, task: Task) -> "TaskSummary":
        return cls(
            task_id=task.task_id,
            task_name=task.task_name,
            task_type=task.task_type.value,
            status=task.status.value,
            current_stage=task.current_stage.value,
            retry_count=task.retry_count,
            max_retries=task.max_retries,
            retry_exhausted=task.retry_exhausted,
            error_message=task.error_message,
            created_at=task.audit.created_at.isoformat(),
            updated_at=task.audit.updated_at.isoformat(),
        )


class TaskListResponse(BaseModel):
    """任务列表响应"""

    tasks: list[TaskSummary]


@router.get("/api/tasks", response_model=TaskListResponse)
async def list_tasks(
    status: TaskStatus | None = Query(default=None, description="按状态筛选"),
    stage: ExecutionStage | None = Query(default=None, description="按阶段筛选"),
    store_group=Depends(get_store_group),
):
    """查询任务列表，按 created_at 倒序"""
    service = TaskService(store_group)
    tasks = await service.list_tasks(
        status.value if status else None,
        stage.value if stage else None,
    )
    return TaskListResponse(tasks=[TaskSummary.from_task(t) for t in tasks])


@router.get("/api/tasks/statistics")
async def get_statistics(store_group=Depends(get_store_group)):
    """任务统计"""
    service = TaskService(store_group)
    return await service.get_statistics()


@router.get("/api/tasks/timeout", response_model=TaskListResponse)
async def list_timeout_tasks(store_group=Depends(get_store_group)):
    """RUNNING 超过 timeout_seconds 的任务（仅观测，不会被自动中断）"""
    service = TaskService(store_group)
    tasks = await service.find_timeout_tasks()
    return TaskListResponse(tasks=[TaskSummary.from_task(t) for t in tasks])


@router.get("/api/tasks/{task_id}")
async def get_task_detail(
    task_id: str,
    store_group=Depends(get_store_group),
):
    """查询任务详情，包含合同详情和阶段结果"""
    service = TaskService(store_group)
    try:
        detail = await service.get_task_detail(task_id)
    except DuplicateContractTaskError as e:
        return error_response(409, "DUPLICATE_CONTRACT_TASK", str(e))

    if detail is None:
        return task_not_found(task_id)

    payload = detail.model_dump(mode="json")
    payload["task"]["max_retries"] = detail.task.max_retries
    return payload


@router.delete("/api/tasks/{task_id}")
async def delete_task(
    task_id: str,
    store_group=Depends(get_store_group),
):
    """删除任务"""
    service = TaskService(store_group)
    if not await service.delete_task(task_id):
        return task_not_found(task_id)
    return {"task_id": task_id, "deleted": True}
