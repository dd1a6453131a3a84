"""StageResult -- 阶段执行结果

由阶段执行器写入（尽力而为），后续阶段按 (task_id, stage) 读回作为输入。
"""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from .enums import ExecutionStage


class StageResult(BaseModel):
    """单个阶段的执行结果"""

    task_id: str = Field(description="任务 ID")
    stage: ExecutionStage = Field(description="产生该结果的阶段")
    success: bool = Field(description="阶段是否执行成功")
    output: str = Field(default="", description="自由文本输出")
    error_message: str | None = Field(default=None, description="错误信息")
    started_at: datetime | None = Field(default=None, description="开始时间")
    ended_at: datetime | None = Field(default=None, description="结束时间")
    data: dict = Field(default_factory=dict, description="阶段结构化数据")
