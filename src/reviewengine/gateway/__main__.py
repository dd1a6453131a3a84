"""服务入口 -- python -m reviewengine.gateway

环境变量:
    REVIEWENGINE_HOST: 监听地址（默认 127.0.0.1）
    REVIEWENGINE_PORT: 监听端口（默认 8000）
"""

import os

import uvicorn


def main() -> None:
    uvicorn.run(
        "reviewengine.gateway.main:app",
        host=os.environ.get("REVIEWENGINE_HOST", "127.0.0.1"),
        port=int(os.environ.get("REVIEWENGINE_PORT", "8000")),
        log_config=None,
    )


if __name__ == "__main__":
    main()
