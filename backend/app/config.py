from __future__ import annotations

import os
from dataclasses import dataclass


def _to_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    return value.strip().lower() in {"1", "true", "yes", "on"}


@dataclass(slots=True)
class Settings:
    """系统配置。

    API key 是否存在只决定功能是否可用（例如没有 LLM key 时走模板摘要），
    不改变数据源的回退顺序。
    """

    # 应用基础配置
    app_name: str = "portfolio-insight"
    env: str = "dev"
    cors_origins: tuple[str, ...] = ("http://127.0.0.1:5173", "http://localhost:5173")
    api_host: str = "127.0.0.1"
    api_port: int = 8000

    # 大模型配置：DeepSeek 优先，其次智谱
    deepseek_api_key: str = ""
    deepseek_base_url: str = "https://api.deepseek.com"
    deepseek_model: str = "deepseek-chat"
    zhipu_api_key: str = ""
    zhipu_base_url: str = "https://open.bigmodel.cn/api/paas/v4"
    zhipu_model: str = "glm-4"
    llm_request_timeout_seconds: float = 20.0
    # 置为 false 时个股分析强制使用模板摘要（例如限额用尽时）
    analysis_use_llm: bool = True

    # Datasource runtime controls used by backend.app.datasources factory.
    datasource_request_timeout_seconds: float = 8.0
    datasource_retry_count: int = 0
    datasource_retry_backoff_seconds: float = 0.3
    datasource_proxy_url: str = ""

    # 业务参数
    news_limit: int = 5
    backtest_initial_capital: float = 100000.0
    intelligence_refresh_seconds: float = 0.0
    intelligence_max_age_seconds: float = 3600.0

    @property
    def llm_enabled(self) -> bool:
        return bool(self.deepseek_api_key or self.zhipu_api_key)

    @classmethod
    def from_env(cls) -> "Settings":
        """从环境变量构建配置对象。"""
        origins_env = os.getenv("CORS_ORIGINS")
        origins = (
            tuple(x.strip() for x in origins_env.split(",") if x.strip())
            if origins_env
            else ("http://127.0.0.1:5173", "http://localhost:5173")
        )
        return cls(
            env=os.getenv("APP_ENV", "dev"),
            cors_origins=origins,
            api_host=os.getenv("APP_HOST", "127.0.0.1").strip() or "127.0.0.1",
            api_port=max(1, min(65535, int(os.getenv("APP_PORT", "8000")))),
            deepseek_api_key=os.getenv("DEEPSEEK_API_KEY", "").strip(),
            deepseek_base_url=os.getenv("DEEPSEEK_BASE_URL", "https://api.deepseek.com").strip(),
            deepseek_model=os.getenv("DEEPSEEK_MODEL", "deepseek-chat").strip() or "deepseek-chat",
            zhipu_api_key=os.getenv("ZHIPU_API_KEY", "").strip(),
            zhipu_base_url=os.getenv("ZHIPU_BASE_URL", "https://open.bigmodel.cn/api/paas/v4").strip(),
            zhipu_model=os.getenv("ZHIPU_MODEL", "glm-4").strip() or "glm-4",
            llm_request_timeout_seconds=max(1.0, float(os.getenv("LLM_REQUEST_TIMEOUT_SECONDS", "20"))),
            analysis_use_llm=_to_bool(os.getenv("ANALYSIS_USE_LLM"), True),
            datasource_request_timeout_seconds=max(
                0.1, float(os.getenv("DATASOURCE_REQUEST_TIMEOUT_SECONDS", "8.0"))
            ),
            datasource_retry_count=max(0, int(os.getenv("DATASOURCE_RETRY_COUNT", "0"))),
            datasource_retry_backoff_seconds=max(
                0.0, float(os.getenv("DATASOURCE_RETRY_BACKOFF_SECONDS", "0.3"))
            ),
            datasource_proxy_url=os.getenv("DATASOURCE_PROXY_URL", "").strip(),
            news_limit=max(1, min(20, int(os.getenv("NEWS_LIMIT", "5")))),
            backtest_initial_capital=max(1.0, float(os.getenv("BACKTEST_INITIAL_CAPITAL", "100000"))),
            intelligence_refresh_seconds=max(0.0, float(os.getenv("INTELLIGENCE_REFRESH_SECONDS", "0"))),
            intelligence_max_age_seconds=max(1.0, float(os.getenv("INTELLIGENCE_MAX_AGE_SECONDS", "3600"))),
        )

