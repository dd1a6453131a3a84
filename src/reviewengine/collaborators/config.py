"""CollaboratorConfig -- 外部协作方配置加载

从环境变量加载配置，不硬编码服务地址/模型名。
"""

import os
from typing import Literal

import structlog
from pydantic import BaseModel, Field, SecretStr

log = structlog.get_logger()


class CollaboratorConfig(BaseModel):
    """Collaborator 配置 -- 从环境变量加载

    环境变量:
        REVIEWENGINE_COLLABORATOR_MODE: 运行模式（remote/simulated）
        CLAUSE_SERVICE_URL: 条款抽取服务地址
        LITELLM_PROXY_URL: LiteLLM Proxy 地址（默认 http://localhost:4000）
        LITELLM_PROXY_KEY: Proxy 访问密钥
        REVIEWENGINE_REVIEW_MODEL: 模型审查使用的 model alias
        REVIEWENGINE_COLLABORATOR_TIMEOUT_S: 调用超时（秒，默认 30）
    """

    mode: Literal["remote", "simulated"] = Field(
        default="simulated",
        description="运行模式：remote 调用真实服务 / simulated 使用确定性模拟实现",
    )
    clause_service_url: str = Field(
        default="http://localhost:8081",
        description="条款抽取服务基础 URL",
    )
    proxy_base_url: str = Field(
        default="http://localhost:4000",
        description="LiteLLM Proxy 基础 URL",
    )
    proxy_api_key: SecretStr = Field(
        default=SecretStr(""),
        description="Proxy 访问密钥（不是 LLM provider API key）",
    )
    review_model: str = Field(
        default="main",
        description="模型审查使用的 model alias",
    )
    timeout_s: int = Field(
        default=30,
        ge=1,
        description="外部调用超时（秒）",
    )


def load_collaborator_config() -> CollaboratorConfig:
    """从环境变量加载 Collaborator 配置

    环境变量映射:
        REVIEWENGINE_COLLABORATOR_MODE -> mode (默认 "simulated")
        CLAUSE_SERVICE_URL -> clause_service_url
        LITELLM_PROXY_URL -> proxy_base_url (默认 "http://localhost:4000")
        LITELLM_PROXY_KEY -> proxy_api_key (默认 "")
        REVIEWENGINE_REVIEW_MODEL -> review_model (默认 "main")
        REVIEWENGINE_COLLABORATOR_TIMEOUT_S -> timeout_s (默认 30)

    Returns:
        CollaboratorConfig 实例
    """
    kwargs: dict = {}

    if val := os.environ.get("REVIEWENGINE_COLLABORATOR_MODE"):
        kwargs["mode"] = val

    if val := os.environ.get("CLAUSE_SERVICE_URL"):
        kwargs["clause_service_url"] = val

    if val := os.environ.get("LITELLM_PROXY_URL"):
        kwargs["proxy_base_url"] = val

    if val := os.environ.get("LITELLM_PROXY_KEY"):
        kwargs["proxy_api_key"] = SecretStr(val)

    if val := os.environ.get("REVIEWENGINE_REVIEW_MODEL"):
        kwargs["review_model"] = val

    if val := os.environ.get("REVIEWENGINE_COLLABORATOR_TIMEOUT_S"):
        try:
            kwargs["timeout_s"] = int(val)
        except ValueError:
            log.warning(
                "invalid_timeout_config",
                env_var="REVIEWENGINE_COLLABORATOR_TIMEOUT_S",
                value=val,
                fallback=30,
            )
            # 使用默认值，不阻塞启动

    return CollaboratorConfig(**kwargs)
