from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any, Callable

from backend.app.llm.gateway import LLMNotConfiguredError
from backend.app.models import (
    AnalyzeRequest,
    BacktestRequest,
    WatchlistAnalyzeRequest,
    WatchlistValueRequest,
)
from backend.app.service import PortfolioInsightService

try:
    from fastapi import FastAPI, HTTPException
    from fastapi.middleware.cors import CORSMiddleware
except Exception as ex:  # pragma: no cover
    raise RuntimeError("FastAPI is not installed. Please install fastapi and uvicorn.") from ex


def _call(fn: Callable[..., Any], *args: Any, **kwargs: Any) -> Any:
    """Run a service call and map domain errors onto HTTP status codes."""
    try:
        return fn(*args, **kwargs)
    except LLMNotConfiguredError as ex:
        raise HTTPException(status_code=503, detail=str(ex)) from ex
    except ValueError as ex:
        raise HTTPException(status_code=400, detail=str(ex)) from ex


def create_app(service: PortfolioInsightService | None = None) -> FastAPI:
    svc = service or PortfolioInsightService()

    @asynccontextmanager
    async def lifespan(_app: FastAPI):
        svc.start_background_jobs()
        yield
        svc.close()

    app = FastAPI(title="Portfolio Insight API", lifespan=lifespan)
    # 允许前端本地开发跨域访问后端接口
    app.add_middleware(
        CORSMiddleware,
        allow_origins=list(svc.settings.cors_origins),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.get("/api/health")
    def health():
        return svc.health()

    # ---------------- Portfolio ----------------
    @app.get("/api/portfolio/quote/{symbol}")
    def portfolio_quote(symbol: str):
        result = _call(svc.quote, symbol)
        if result is None:
            raise HTTPException(status_code=404, detail=f"quote not available: {symbol}")
        return result

    @app.get("/api/portfolio/history/{symbol}")
    def portfolio_history(symbol: str, start: str | None = None, end: str | None = None):
        result = _call(svc.history_series, symbol, start=start, end=end)
        if result is None:
            raise HTTPException(status_code=404, detail=f"history not available: {symbol}")
        return result

    @app.get("/api/portfolio/financials/{symbol}")
    def portfolio_financials(symbol: str):
        return _call(svc.financial_summary, symbol)

    @app.get("/api/portfolio/news/{symbol}")
    def portfolio_news(symbol: str, limit: int | None = None):
        return _call(svc.topic_news, symbol, limit=limit)

    @app.post("/api/portfolio/analyze")
    def portfolio_analyze(payload: AnalyzeRequest):
        return _call(svc.analyze, payload.code)

    @app.post("/api/portfolio/backtest")
    def portfolio_backtest(payload: BacktestRequest):
        return _call(
            svc.backtest,
            payload.symbols,
            start=payload.start,
            end=payload.end,
            initial=payload.initial,
        )

    # ---------------- Watchlist ----------------
    @app.post("/api/watchlist/value")
    def watchlist_value(payload: WatchlistValueRequest):
        return _call(svc.watchlist_value, [e.model_dump() for e in payload.entries])

    @app.post("/api/watchlist/analyze")
    def watchlist_analyze(payload: WatchlistAnalyzeRequest):
        return _call(svc.watchlist_analyze, payload.codes)

    # ---------------- Intelligence ----------------
    @app.get("/api/intelligence/latest")
    def intelligence_latest():
        return _call(svc.intelligence_latest)

    @app.post("/api/intelligence/refresh")
    def intelligence_refresh():
        return _call(svc.intelligence_refresh)

    return app

