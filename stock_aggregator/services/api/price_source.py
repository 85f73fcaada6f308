"""Async HTTP client for the remote stock exchange price source."""

import logging
from typing import Any

import httpx

from stock_aggregator.core.errors import PriceSourceAuthError, PriceSourceError
from stock_aggregator.core.types import PricePoint

logger = logging.getLogger(__name__)


class PriceSourceClient:
    """Fetches stock listings and price histories from the price source REST API."""

    def __init__(
        self,
        base_url: str,
        api_key: str = "",
        token_url: str = "",
        email: str = "",
        password: str = "",
        timeout_s: float = 5.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.api_key = api_key
        self.token_url = token_url
        self._email = email
        self._password = password
        self._token: str | None = None
        self._client = httpx.AsyncClient(timeout=timeout_s, transport=transport)

    @property
    def is_closed(self) -> bool:
        return self._client.is_closed

    @property
    def token(self) -> str | None:
        return self._token

    async def aclose(self) -> None:
        await self._client.aclose()

    def _headers(self) -> dict[str, str]:
        if self._token:
            return {"Authorization": f"Bearer {self._token}"}
        if self.api_key:
            return {"Authorization": self.api_key}
        return {}

    async def authenticate(self) -> str:
        """Exchange the configured credentials for a bearer token and keep it."""

        logger.info("price_source_auth_request", extra={"url": self.token_url})
        try:
            response = await self._client.post(
                self.token_url,
                json={"email": self._email, "password": self._password},
            )
            response.raise_for_status()
            body = response.json()
        except (httpx.HTTPError, ValueError) as exc:
            raise PriceSourceAuthError(f"token request failed: {exc}") from exc

        token = body.get("token") if isinstance(body, dict) else None
        if not isinstance(token, str) or not token:
            raise PriceSourceAuthError("token not found in response")

        self._token = token
        logger.info("price_source_auth_ok")
        return token

    async def _get_json(self, path: str, params: dict[str, Any] | None = None) -> Any:
        url = f"{self.base_url}{path}"
        logger.info("price_source_request", extra={"url": url, "params": params or {}})
        try:
            response = await self._client.get(url, params=params, headers=self._headers())
            response.raise_for_status()
            return response.json()
        except httpx.HTTPStatusError as exc:
            logger.warning(
                "price_source_bad_status",
                extra={"url": url, "status": exc.response.status_code},
            )
            raise PriceSourceError(
                f"price source returned {exc.response.status_code} for {path}"
            ) from exc
        except httpx.HTTPError as exc:
            logger.warning("price_source_unreachable", extra={"url": url, "error": str(exc)})
            raise PriceSourceError(f"price source request failed for {path}: {exc}") from exc
        except ValueError as exc:
            raise PriceSourceError(f"price source returned invalid JSON for {path}") from exc

    async def get_stocks(self) -> dict[str, str]:
        """Return the exchange listing as a mapping of company name to ticker."""

        body = await self._get_json("/stocks")
        stocks = body.get("stocks") if isinstance(body, dict) else None
        if not isinstance(stocks, dict):
            raise PriceSourceError("stock listing missing 'stocks' mapping")
        return {str(name): str(ticker) for name, ticker in stocks.items()}

    async def get_price_history(self, ticker: str, minutes: int | None = None) -> list[PricePoint]:
        """Return the price history for the last ``minutes``, or the latest point when None."""

        params = {"minutes": minutes} if minutes else None
        body = await self._get_json(f"/stocks/{ticker}", params=params)

        if minutes:
            raw_points = body
        else:
            stock = body.get("stock") if isinstance(body, dict) else None
            raw_points = [stock] if stock is not None else None

        if not isinstance(raw_points, list):
            raise PriceSourceError(f"unexpected price payload for {ticker}")

        try:
            points = [PricePoint.from_payload(raw) for raw in raw_points]
        except ValueError as exc:
            raise PriceSourceError(f"malformed price point for {ticker}: {exc}") from exc

        logger.info(
            "price_source_history",
            extra={"ticker": ticker, "minutes": minutes, "points": len(points)},
        )
        return points
