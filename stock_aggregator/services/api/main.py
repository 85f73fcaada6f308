"""FastAPI service exposing average-price and two-stock correlation endpoints."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

import httpx
from fastapi import Depends, FastAPI, HTTPException, Query, Request
from fastapi.middleware.cors import CORSMiddleware

from stock_aggregator.core.config import Settings, get_settings
from stock_aggregator.core.correlation import correlate_price_series
from stock_aggregator.core.errors import PriceSourceAuthError, PriceSourceError
from stock_aggregator.core.logging import configure_logging
from stock_aggregator.core.series import reduce_price_series
from stock_aggregator.services.api.cache import CachedPriceSource, TTLCache
from stock_aggregator.services.api.price_source import PriceSourceClient
from stock_aggregator.services.api.stock_data import StockDataService

settings = get_settings()
configure_logging(settings.LOG_LEVEL, service="api")
logger = logging.getLogger(__name__)

_SUPPORTED_AGGREGATION = "average"


def build_price_source_client(
    settings: Settings, transport: httpx.AsyncBaseTransport | None = None
) -> PriceSourceClient:
    """Create the price source client from configured endpoints and credentials."""

    return PriceSourceClient(
        base_url=settings.PRICE_SOURCE_BASE_URL,
        api_key=settings.PRICE_SOURCE_API_KEY,
        token_url=settings.price_source_token_url(),
        email=settings.PRICE_SOURCE_EMAIL,
        password=settings.PRICE_SOURCE_PASSWORD,
        timeout_s=settings.PRICE_SOURCE_TIMEOUT_S,
        transport=transport,
    )


def build_stock_data_service(settings: Settings, client: PriceSourceClient) -> StockDataService:
    """Wrap the client in the response cache and apply the mock-data policy."""

    cached = CachedPriceSource(
        client,
        TTLCache(default_ttl_s=settings.PRICE_CACHE_TTL_S, max_entries=settings.CACHE_MAX_ENTRIES),
        stocks_ttl_s=settings.STOCKS_CACHE_TTL_S,
        price_ttl_s=settings.PRICE_CACHE_TTL_S,
    )
    return StockDataService(
        cached,
        use_mock_data=settings.USE_MOCK_DATA,
        fallback_to_mock=settings.MOCK_FALLBACK_ON_ERROR,
    )


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Wire the price source and acquire a token when the configuration needs one."""

    client = build_price_source_client(settings)
    service = build_stock_data_service(settings, client)

    if settings.USE_MOCK_DATA:
        mode = "mock"
    elif settings.PRICE_SOURCE_API_KEY:
        mode = "api_key"
    elif settings.has_credentials():
        try:
            await client.authenticate()
            mode = "token"
        except PriceSourceAuthError as exc:
            logger.warning("price_source_auth_failed", extra={"error": str(exc)})
            service.use_mock_data = True
            mode = "mock"
    else:
        mode = "anonymous"

    app.state.stock_data_service = service
    logger.info(
        "api_startup",
        extra={
            "env": settings.ENV,
            "version": settings.VERSION,
            "price_source": settings.PRICE_SOURCE_BASE_URL,
            "mode": mode,
        },
    )
    try:
        yield
    finally:
        await client.aclose()
        logger.info("api_shutdown")


app = FastAPI(title=settings.APP_NAME, version=settings.VERSION, lifespan=lifespan)
app.add_middleware(
    CORSMiddleware,
    allow_origins=list(settings.cors_origins()),
    allow_methods=["GET", "POST"],
    allow_headers=["Content-Type", "Authorization"],
)


def get_stock_data_service(request: Request) -> StockDataService:
    """Return the data service created during startup."""

    return request.app.state.stock_data_service


def _requested_tickers(tickers: list[str] | None, ticker: list[str] | None) -> list[str]:
    if tickers:
        return [item.strip() for entry in tickers for item in entry.split(",")]
    return list(ticker or [])


@app.get("/health")
def health() -> dict[str, str]:
    """Return process liveness status."""

    return {"status": "ok"}


@app.get("/version")
def version() -> dict[str, str]:
    """Return application metadata from shared settings."""

    return {
        "name": settings.APP_NAME,
        "version": settings.VERSION,
        "env": settings.ENV,
    }


@app.get("/api/stocks")
async def list_stocks(
    service: StockDataService = Depends(get_stock_data_service),
) -> dict[str, Any]:
    """Return the exchange listing of company names to tickers."""

    try:
        stocks = await service.get_stocks()
    except PriceSourceError as exc:
        logger.error("list_stocks_failed", extra={"error": str(exc)})
        raise HTTPException(status_code=502, detail="Failed to fetch stocks from the exchange") from exc
    return {"stocks": stocks}


@app.get("/api/stock/correlation")
async def stock_correlation(
    minutes: int | None = Query(None, gt=0),
    tickers: list[str] | None = Query(None),
    ticker: list[str] | None = Query(None),
    service: StockDataService = Depends(get_stock_data_service),
) -> dict[str, Any]:
    """Return the Pearson correlation of two tickers over the requested window."""

    requested = _requested_tickers(tickers, ticker)
    if len(requested) != 2 or not all(requested):
        raise HTTPException(status_code=400, detail="Exactly two tickers must be provided")

    ticker_a, ticker_b = requested
    window = minutes or settings.DEFAULT_CORRELATION_MINUTES
    try:
        points_a, points_b = await service.get_price_histories(ticker_a, ticker_b, window)
    except PriceSourceError as exc:
        logger.error(
            "stock_correlation_failed",
            extra={"tickers": requested, "minutes": window, "error": str(exc)},
        )
        raise HTTPException(status_code=502, detail="Failed to calculate stock correlation") from exc

    result = correlate_price_series(ticker_a, points_a, ticker_b, points_b)
    return result.to_payload()


@app.get("/api/stock/{ticker}/price")
async def average_stock_price(
    ticker: str,
    minutes: int | None = Query(None, gt=0),
    aggregation: str | None = Query(None),
    service: StockDataService = Depends(get_stock_data_service),
) -> dict[str, Any]:
    """Return the average price and price history of one ticker."""

    if aggregation and aggregation != _SUPPORTED_AGGREGATION:
        raise HTTPException(status_code=400, detail="Only average aggregation is supported")

    try:
        points = await service.get_price_history(ticker, minutes)
    except PriceSourceError as exc:
        logger.error(
            "average_stock_price_failed",
            extra={"ticker": ticker, "minutes": minutes, "error": str(exc)},
        )
        raise HTTPException(status_code=502, detail="Failed to get average stock price") from exc

    return reduce_price_series(points).to_payload()
