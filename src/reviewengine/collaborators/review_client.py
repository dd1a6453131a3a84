"""LiteLLMReviewClient -- 通过 LiteLLM Proxy 执行合同模型审查

提示词由合同详情与条款抽取结果拼装，要求模型返回 JSON；
响应解析见 review_parser。高风险结论是正常结果，不抛异常。
"""

import time
from collections import defaultdict

import httpx
import structlog
from litellm import acompletion

from reviewengine.core.models import ContractTaskDetails, StageResult, Task

from .exceptions import CollaboratorError, ResponseFormatError, ServiceUnreachableError
from .models import StageOutcome
from .review_parser import parse_review_response

log = structlog.get_logger()

# 连接类异常类型集合（映射为 ServiceUnreachableError）
_CONNECTION_ERROR_TYPES = (
    ConnectionError,
    OSError,
    TimeoutError,
    httpx.ConnectError,
    httpx.ConnectTimeout,
    httpx.TimeoutException,
)

SYSTEM_PROMPT = (
    "你是一名资深合同审查律师。请根据给出的合同条款进行风险审查，"
    "只输出一个 JSON 对象，字段包括：overallRiskLevel(LOW/MEDIUM/HIGH)、"
    "confidence(0-1)、summary、recommendations、"
    "riskItems(数组，元素含 factorName、riskLevel、riskScore(0-100)、confidence、"
    "riskSummary、recommendation、riskClauseId、originContractText)、complianceIssues(对象)。"
)


def _is_connection_error(e: Exception) -> bool:
    """判断异常是否为连接类错误（Proxy 不可达）"""
    if isinstance(e, _CONNECTION_ERROR_TYPES):
        return True
    # LiteLLM 的 APIConnectionError 也属于连接类错误
    error_name = type(e).__name__
    return error_name in ("APIConnectionError", "APITimeoutError")


def build_review_prompt(details: ContractTaskDetails, clause_result: StageResult) -> str:
    """按条款类型分组拼装审查提示词"""
    lines = [
        f"合同标题: {details.contract_title or '未命名合同'}",
        f"合同类型: {details.contract_type or '其他'}",
        f"审查类型: {details.review_type.value}",
    ]
    if details.industry:
        lines.append(f"所属行业: {details.industry}")
    if details.business_tags:
        lines.append(f"业务标签: {', '.join(details.business_tags)}")

    lines.append("")
    lines.append("=== 合同条款信息 ===")
    grouped: dict[str, list[dict]] = defaultdict(list)
    for clause in clause_result.data.get("clauses", []):
        grouped[clause.get("clause_type") or "OTHER"].append(clause)
    if not grouped:
        lines.append("（未抽取到条款，请基于合同基本信息给出审查结论）")
    for clause_type, clauses in grouped.items():
        lines.append(f"【{clause_type}条款】({len(clauses)}条):")
        for clause in clauses:
            title = clause.get("clause_title") or "无标题"
            content = clause.get("clause_content") or "无内容"
            lines.append(f"- {title}: {content}")
    return "\n".join(lines)


class LiteLLMReviewClient:
    """模型审查客户端

    封装 litellm.acompletion() 调用，返回 StageOutcome。
    """

    def __init__(
        self,
        proxy_base_url: str = "http://localhost:4000",
        proxy_api_key: str = "",
        model_alias: str = "main",
        timeout_s: int = 30,
    ) -> None:
        """初始化模型审查客户端

        Args:
            proxy_base_url: Proxy 基础 URL
            proxy_api_key: Proxy 访问密钥（LITELLM_PROXY_KEY）
            model_alias: 模型 alias
            timeout_s: 请求超时（秒）
        """
        self._proxy_base_url = proxy_base_url.rstrip("/")
        self._proxy_api_key = proxy_api_key
        self._model_alias = model_alias
        self._timeout_s = timeout_s

    async def review_contract(
        self,
        task: Task,
        details: ContractTaskDetails,
        clause_result: StageResult,
    ) -> StageOutcome:
        """调用 LLM 审查合同

        Raises:
            ServiceUnreachableError: Proxy 连接失败或超时
            CollaboratorError: Proxy 返回错误
            ResponseFormatError: 响应为空或无法解析
        """
        prompt = build_review_prompt(details, clause_result)
        messages = [
            {"role": "system", "content": SYSTEM_PROMPT},
            {"role": "user", "content": prompt},
        ]
        start_time = time.monotonic()

        try:
            log.debug(
                "review_call_start",
                task_id=task.task_id,
                model_alias=self._model_alias,
                prompt_length=len(prompt),
            )
            response = await acompletion(
                model=self._model_alias,
                messages=messages,
                api_base=self._proxy_base_url,
                api_key=self._proxy_api_key or "no-key",
                temperature=0.1,
                timeout=self._timeout_s,
                response_format={"type": "json_object"},
            )
        except Exception as e:
            duration_ms = int((time.monotonic() - start_time) * 1000)
            log.error(
                "review_call_failed",
                task_id=task.task_id,
                error=str(e),
                error_type=type(e).__name__,
                duration_ms=duration_ms,
            )
            # 区分连接类错误与业务错误
            if _is_connection_error(e):
                raise ServiceUnreachableError(
                    service_url=self._proxy_base_url,
                    original_error=e,
                ) from e
            raise CollaboratorError(f"AI模型审查失败: {e}") from e

        if not response.choices:
            raise ResponseFormatError("模型审查: AI模型响应为空")
        content = response.choices[0].message.content or ""
        result = parse_review_response(content)

        duration_ms = int((time.monotonic() - start_time) * 1000)
        log.info(
            "review_call_completed",
            task_id=task.task_id,
            model_alias=self._model_alias,
            overall_risk_level=result.overall_risk_level.value,
            risk_item_count=len(result.risk_items),
            duration_ms=duration_ms,
        )

        return StageOutcome(
            output=result.summary or "模型审查完成",
            data=result.model_dump(mode="json"),
        )
