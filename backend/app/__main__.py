from __future__ import annotations

import logging

import uvicorn

from backend.app.config import Settings


def main() -> None:
    """启动 HTTP 服务：`python -m backend.app` 或 `portfolio-insight`。"""
    settings = Settings.from_env()
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s %(message)s")
    uvicorn.run(
        "backend.app.http_api:create_app",
        factory=True,
        host=settings.api_host,
        port=settings.api_port,
    )


if __name__ == "__main__":
    main()
