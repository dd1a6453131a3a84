"""模型审查响应解析

LLM 返回的 JSON 字段逐个宽松解析：非法值回退默认值并记录 warning，超长文本截断。
整体无法解析为 JSON 对象时抛出 ResponseFormatError（程序失败，触发重试）。
"""

import json
from typing import Any

import structlog

from reviewengine.core.models import RiskLevel

from .exceptions import ResponseFormatError
from .models import ModelReviewResult, RiskItem

log = structlog.get_logger()

SUMMARY_MAX_LENGTH = 2000
RISK_SUMMARY_MAX_LENGTH = 100
RECOMMENDATION_MAX_LENGTH = 500
ORIGIN_TEXT_MAX_LENGTH = 1000


def parse_review_response(raw: str) -> ModelReviewResult:
    """将 LLM 原始响应解析为 ModelReviewResult

    Raises:
        ResponseFormatError: 响应为空或不是 JSON 对象
    """
    if not raw or not raw.strip():
        raise ResponseFormatError("模型审查: AI模型返回的内容为空")

    try:
        payload = json.loads(_strip_code_fence(raw))
    except json.JSONDecodeError as e:
        raise ResponseFormatError(f"无法解析AI响应JSON: {e}", raw=raw) from e
    if not isinstance(payload, dict):
        raise ResponseFormatError("AI响应JSON不是对象", raw=raw)

    risk_items: list[RiskItem] = []
    raw_items = payload.get("riskItems")
    if isinstance(raw_items, list):
        for item in raw_items:
            parsed = _parse_risk_item(item)
            if parsed is not None:
                risk_items.append(parsed)
    elif raw_items is not None:
        log.warning("review_risk_items_invalid", value_type=type(raw_items).__name__)

    compliance_issues = payload.get("complianceIssues")
    if compliance_issues is not None and not isinstance(compliance_issues, dict):
        log.warning("review_compliance_issues_invalid")
        compliance_issues = None

    return ModelReviewResult(
        overall_risk_level=_risk_level(payload.get("overallRiskLevel"), RiskLevel.MEDIUM),
        confidence=_bounded_float(payload.get("confidence"), 0.0, 1.0, 0.5, "confidence"),
        summary=_truncate(payload.get("summary"), SUMMARY_MAX_LENGTH),
        recommendations=_truncate(payload.get("recommendations"), SUMMARY_MAX_LENGTH),
        risk_items=risk_items,
        compliance_issues=compliance_issues or {},
    )


def _parse_risk_item(item: Any) -> RiskItem | None:
    if not isinstance(item, dict):
        log.warning("review_risk_item_skipped", value_type=type(item).__name__)
        return None
    clause_id = item.get("riskClauseId")
    origin_text = item.get("originContractText")
    return RiskItem(
        factor_name=str(item.get("factorName") or "未知风险"),
        risk_level=_risk_level(item.get("riskLevel"), RiskLevel.MEDIUM),
        risk_score=_bounded_float(item.get("riskScore"), 0.0, 100.0, 60.0, "risk_score"),
        confidence=_bounded_float(item.get("confidence"), 0.0, 1.0, 0.8, "confidence"),
        risk_summary=_truncate(item.get("riskSummary"), RISK_SUMMARY_MAX_LENGTH),
        recommendation=_truncate(item.get("recommendation"), RECOMMENDATION_MAX_LENGTH),
        risk_clause_id=None if clause_id is None else str(clause_id),
        origin_contract_text=(
            None if origin_text is None else _truncate(origin_text, ORIGIN_TEXT_MAX_LENGTH)
        ),
    )


def _risk_level(value: Any, default: RiskLevel) -> RiskLevel:
    if value is None:
        return default
    try:
        return RiskLevel(str(value).strip().upper())
    except ValueError:
        log.warning("review_risk_level_invalid", value=value, fallback=default.value)
        return default


def _bounded_float(
    value: Any,
    lower: float,
    upper: float,
    default: float,
    field: str,
) -> float:
    if value is None:
        return default
    try:
        number = float(value)
    except (TypeError, ValueError):
        log.warning("review_number_invalid", field=field, value=value, fallback=default)
        return default
    if not lower <= number <= upper:
        log.warning("review_number_out_of_range", field=field, value=number, fallback=default)
        return default
    return number


def _truncate(value: Any, limit: int) -> str:
    if value is None:
        return ""
    text = value if isinstance(value, str) else json.dumps(value, ensure_ascii=False)
    return text[:limit]


def _strip_code_fence(raw: str) -> str:
    text = raw.strip()
    if text.startswith("```"):
        text = text.split("\n", 1)[1] if "\n" in text else ""
        if text.rstrip().endswith("```"):
            text = text.rstrip()[:-3]
    return text
