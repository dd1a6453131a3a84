"""任务操作路由

POST /api/tasks/{task_id}/cancel: 取消任务。
- 200: 取消成功
- 404: 任务不存在
- 409: 任务状态不允许取消（已完成/已取消/已失败）

POST /api/tasks/{task_id}/retry: 手动重试失败任务。
- 200: 已重置为 PENDING，等待下一轮 sweep
- 404: 任务不存在
- 409: 任务不是 FAILED，或重试次数耗尽（此时任务被标记为永久失败）
"""

from fastapi import APIRouter, Depends
from pydantic import BaseModel

from reviewengine.core.exceptions import (
    InvalidStateTransition,
    RetryExhausted,
    TaskVersionConflictError,
)

from ..deps import get_actor_id, get_store_group
from ..services.task_service import TaskService
from .errors import error_response, task_not_found

router = APIRouter()


class TaskActionResponse(BaseModel):
    """操作成功响应"""

    task_id: str
    status: str
    current_stage: str
    retry_count: int


@router.post("/api/tasks/{task_id}/cancel", response_model=TaskActionResponse)
async def cancel_task(
    task_id: str,
    store_group=Depends(get_store_group),
    actor_id: str = Depends(get_actor_id),
):
    """取消任务"""
    service = TaskService(store_group)
    try:
        task = await service.cancel_task(task_id, actor_id)
    except InvalidStateTransition as e:
        return error_response(409, "INVALID_STATE_TRANSITION", str(e))
    except TaskVersionConflictError as e:
        return error_response(409, "TASK_VERSION_CONFLICT", str(e))

    if task is None:
        return task_not_found(task_id)

    return TaskActionResponse(
        task_id=task.task_id,
        status=task.status.value,
        current_stage=task.current_stage.value,
        retry_count=task.retry_count,
    )


@router.post("/api/tasks/{task_id}/retry", response_model=TaskActionResponse)
async def retry_task(
    task_id: str,
    store_group=Depends(get_store_group),
    actor_id: str = Depends(get_actor_id),
):
    """手动重试失败任务"""
    service = TaskService(store_group)
    try:
        task = await service.retry_task(task_id, actor_id)
    except RetryExhausted as e:
        return error_response(409, "RETRY_EXHAUSTED", str(e))
    except InvalidStateTransition as e:
        return error_response(409, "INVALID_STATE_TRANSITION", str(e))
    except TaskVersionConflictError as e:
        return error_response(409, "TASK_VERSION_CONFLICT", str(e))

    if task is None:
        return task_not_found(task_id)

    return TaskActionResponse(
        task_id=task.task_id,
        status=task.status.value,
        current_stage=task.current_stage.value,
        retry_count=task.retry_count,
    )
