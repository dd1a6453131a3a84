"""合同审查任务创建路由

POST /api/contract-review/tasks: 创建 Task + ContractTaskDetails，
任务以 PENDING 状态进入条款抽取阶段，由调度器下一轮 sweep 接手。
"""

from fastapi import APIRouter, Depends
from starlette.responses import JSONResponse

from ..deps import get_actor_id, get_store_group
from ..services.task_service import CreateContractReviewRequest, TaskService

router = APIRouter()


@router.post("/api/contract-review/tasks", status_code=201)
async def create_contract_review_task(
    body: CreateContractReviewRequest,
    store_group=Depends(get_store_group),
    actor_id: str = Depends(get_actor_id),
):
    """创建合同审查任务"""
    service = TaskService(store_group)
    detail = await service.create_contract_review(body, actor_id)
    return JSONResponse(status_code=201, content=detail.model_dump(mode="json"))
