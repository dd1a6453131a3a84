"""ContractTaskDetails -- 合同审查任务的合同属性

与 Task 组合而非继承：按 task_id 关联，一个 Task 对应零或一条详情。
1:1 约束由 ContractTaskService 在应用层校验，存储层不做唯一约束。
"""

from datetime import datetime

from pydantic import BaseModel, Field

from .enums import ReviewType


class ContractTaskDetails(BaseModel):
    """合同任务详情"""

    task_id: str = Field(description="关联的 Task ID")
    contract_id: str = Field(description="合同 ID")
    file_uuid: str = Field(description="合同文件引用")
    contract_title: str = Field(default="", description="合同标题")
    review_type: ReviewType = Field(default=ReviewType.FULL_REVIEW, description="审查类型")
    contract_type: str = Field(default="", description="合同类型")
    business_tags: list[str] = Field(default_factory=list, description="业务标签")
    industry: str = Field(default="", description="所属行业")
    created_at: datetime = Field(description="创建时间")
