"""ClauseServiceClient -- 条款抽取服务 HTTP 客户端

抽取服务是异步的：触发接口会返回当前抽取状态，执行中时再次调用不会重复触发。
因此客户端在 extractionStatus 不是 COMPLETED 时返回 done=False，由下一轮 sweep 继续轮询。
"""

import httpx
import structlog

from reviewengine.core.models import ContractTaskDetails, Task

from .exceptions import CollaboratorError, ResponseFormatError, ServiceUnreachableError
from .models import ExtractedClause, StageOutcome

log = structlog.get_logger()

EXTRACTION_COMPLETED = "COMPLETED"
EXTRACTION_FAILED = "FAILED"

_CONNECTION_ERROR_TYPES = (
    httpx.ConnectError,
    httpx.ConnectTimeout,
    httpx.TimeoutException,
)


class ClauseServiceClient:
    """条款抽取服务客户端"""

    def __init__(
        self,
        base_url: str,
        timeout_s: int = 30,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """
        Args:
            base_url: 服务基础 URL
            timeout_s: 请求超时（秒）
            transport: 自定义 httpx transport（测试注入 MockTransport）
        """
        self._base_url = base_url.rstrip("/")
        self._timeout_s = timeout_s
        self._transport = transport

    async def extract_clauses(
        self,
        task: Task,
        details: ContractTaskDetails,
    ) -> StageOutcome:
        """触发或轮询合同的条款抽取

        Raises:
            ServiceUnreachableError: 服务连接失败或超时
            CollaboratorError: 服务返回错误状态码或抽取失败
            ResponseFormatError: 响应不是合法 JSON 对象
        """
        url = f"{self._base_url}/api/clause-extraction/contracts/{details.contract_id}/trigger"
        try:
            async with httpx.AsyncClient(
                timeout=self._timeout_s, transport=self._transport
            ) as http_client:
                resp = await http_client.post(
                    url,
                    json={"taskId": task.task_id, "fileUuid": details.file_uuid},
                )
        except _CONNECTION_ERROR_TYPES as e:
            raise ServiceUnreachableError(service_url=self._base_url, original_error=e) from e

        if resp.status_code >= 400:
            raise CollaboratorError(
                f"条款抽取服务返回错误: HTTP {resp.status_code} {resp.text[:200]}"
            )

        try:
            body = resp.json()
        except ValueError as e:
            raise ResponseFormatError("条款抽取服务响应不是合法 JSON", raw=resp.text) from e
        if not isinstance(body, dict):
            raise ResponseFormatError("条款抽取服务响应格式错误", raw=resp.text)

        status = str(body.get("extractionStatus", "")).upper()
        clause_count = int(body.get("extractedClauseNumber") or 0)
        log.debug(
            "clause_extraction_polled",
            task_id=task.task_id,
            contract_id=details.contract_id,
            extraction_status=status,
            clause_count=clause_count,
        )

        if status == EXTRACTION_FAILED:
            raise CollaboratorError(
                f"条款抽取失败: {body.get('message') or 'extraction failed'}"
            )
        if status != EXTRACTION_COMPLETED:
            return StageOutcome(done=False, output=f"条款抽取进行中: {status or 'UNKNOWN'}")

        clauses = [
            ExtractedClause(
                clause_id=_optional_str(item.get("clauseId")),
                clause_type=item.get("clauseType") or "OTHER",
                clause_title=item.get("clauseTitle") or "",
                clause_content=item.get("clauseContent") or "",
            )
            for item in body.get("clauses") or []
            if isinstance(item, dict)
        ]
        return StageOutcome(
            output=f"条款抽取完成，共 {clause_count or len(clauses)} 个条款",
            data={
                "extraction_status": status,
                "clause_count": clause_count or len(clauses),
                "clauses": [clause.model_dump() for clause in clauses],
            },
        )

    async def health_check(self) -> bool:
        """检查条款抽取服务可达性（不抛异常）"""
        url = f"{self._base_url}/health"
        try:
            async with httpx.AsyncClient(transport=self._transport) as http_client:
                resp = await http_client.get(url, timeout=5)
                return resp.status_code == 200
        except Exception as e:
            log.debug("health_check_failed", url=url, error=str(e))
            return False


def _optional_str(value: object) -> str | None:
    return None if value is None else str(value)
