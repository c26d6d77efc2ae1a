from __future__ import annotations

from pydantic import BaseModel, Field


class AnalyzeRequest(BaseModel):
    """个股分析请求 DTO（对应 `/api/portfolio/analyze`）。"""

    code: str = Field(min_length=1)


class BacktestRequest(BaseModel):
    """等权回测请求 DTO。"""

    symbols: list[str] = Field(default_factory=list)
    start: str | None = None
    end: str | None = None
    initial: float | None = None


class WatchlistEntryModel(BaseModel):
    code: str = Field(min_length=1)
    entryPrice: float | None = None
    entryDate: str = ""
    currency: str = ""
    weight: float = 0.0


class WatchlistValueRequest(BaseModel):
    """自选估值请求 DTO。"""

    entries: list[WatchlistEntryModel] = Field(default_factory=list)


class WatchlistAnalyzeRequest(BaseModel):
    """自选批量 AI 分析请求 DTO，最多 5 个代码（服务层校验）。"""

    codes: list[str] = Field(default_factory=list)
