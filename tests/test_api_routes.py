"""HTTP contract of the average-price, correlation and listing endpoints."""

from datetime import datetime, timedelta, timezone
from typing import Iterator

import pytest
from fastapi.testclient import TestClient

from stock_aggregator.core.errors import PriceSourceError
from stock_aggregator.core.types import PricePoint
from stock_aggregator.services.api.main import app, get_stock_data_service, settings

T0 = datetime(2025, 5, 8, 4, 0, tzinfo=timezone.utc)

HISTORIES = {
    "NVDA": [10.0, 20.0, 30.0, 40.0],
    "PYPL": [5.0, 7.0, 9.0, 11.0],
    "AMD": [40.0, 30.0, 20.0, 10.0],
}


class FakeStockDataService:
    def __init__(self, fail: bool = False) -> None:
        self.fail = fail
        self.calls: list[tuple[str, ...]] = []

    def _points(self, ticker: str) -> list[PricePoint]:
        return [
            PricePoint(price=price, observed_at=T0 + timedelta(minutes=index))
            for index, price in enumerate(HISTORIES.get(ticker, []))
        ]

    async def get_stocks(self) -> dict[str, str]:
        if self.fail:
            raise PriceSourceError("down")
        return {"Nvidia Corporation": "NVDA", "PayPal Holdings, Inc.": "PYPL"}

    async def get_price_history(self, ticker: str, minutes: int | None) -> list[PricePoint]:
        self.calls.append(("history", ticker, str(minutes)))
        if self.fail:
            raise PriceSourceError("down")
        return self._points(ticker)

    async def get_price_histories(
        self, ticker_a: str, ticker_b: str, minutes: int | None
    ) -> tuple[list[PricePoint], list[PricePoint]]:
        self.calls.append(("histories", ticker_a, ticker_b, str(minutes)))
        if self.fail:
            raise PriceSourceError("down")
        return self._points(ticker_a), self._points(ticker_b)


@pytest.fixture
def service() -> Iterator[FakeStockDataService]:
    fake = FakeStockDataService()
    app.dependency_overrides[get_stock_data_service] = lambda: fake
    yield fake
    app.dependency_overrides.clear()


@pytest.fixture
def client(service: FakeStockDataService) -> TestClient:
    return TestClient(app)


def test_average_price(client: TestClient, service: FakeStockDataService) -> None:
    response = client.get("/api/stock/NVDA/price", params={"minutes": 30, "aggregation": "average"})

    assert response.status_code == 200
    body = response.json()
    assert body["averagePrice"] == 25.0
    assert body["priceHistory"][0] == {"price": 10.0, "lastUpdatedAt": "2025-05-08T04:00:00.000Z"}
    assert service.calls == [("history", "NVDA", "30")]


def test_average_price_latest_when_minutes_missing(
    client: TestClient, service: FakeStockDataService
) -> None:
    assert client.get("/api/stock/NVDA/price").status_code == 200
    assert service.calls == [("history", "NVDA", "None")]


def test_average_price_rejects_other_aggregations(client: TestClient) -> None:
    response = client.get("/api/stock/NVDA/price", params={"aggregation": "max"})
    assert response.status_code == 400


def test_average_price_rejects_non_positive_window(client: TestClient) -> None:
    assert client.get("/api/stock/NVDA/price", params={"minutes": 0}).status_code == 422


def test_correlation_with_repeated_ticker_params(
    client: TestClient, service: FakeStockDataService
) -> None:
    response = client.get(
        "/api/stock/correlation", params=[("minutes", "30"), ("ticker", "NVDA"), ("ticker", "AMD")]
    )

    assert response.status_code == 200
    body = response.json()
    assert body["correlation"] == -1.0
    assert body["stocks"]["NVDA"]["averagePrice"] == 25.0
    assert body["stocks"]["AMD"]["averagePrice"] == 25.0
    assert len(body["stocks"]["AMD"]["priceHistory"]) == 4
    assert service.calls == [("histories", "NVDA", "AMD", "30")]


def test_correlation_with_repeated_tickers_params(
    client: TestClient, service: FakeStockDataService
) -> None:
    response = client.get(
        "/api/stock/correlation", params=[("tickers", "NVDA"), ("tickers", "AMD")]
    )

    assert response.status_code == 200
    assert response.json()["correlation"] == -1.0
    assert service.calls == [
        ("histories", "NVDA", "AMD", str(settings.DEFAULT_CORRELATION_MINUTES))
    ]


def test_correlation_with_comma_separated_tickers(
    client: TestClient, service: FakeStockDataService
) -> None:
    response = client.get("/api/stock/correlation", params={"tickers": "NVDA,PYPL"})

    assert response.status_code == 200
    assert response.json()["correlation"] == 1.0
    assert service.calls == [
        ("histories", "NVDA", "PYPL", str(settings.DEFAULT_CORRELATION_MINUTES))
    ]


@pytest.mark.parametrize(
    "params",
    [
        [],
        [("ticker", "NVDA")],
        [("ticker", "NVDA"), ("ticker", "PYPL"), ("ticker", "AMD")],
        [("tickers", "NVDA,")],
        [("tickers", "NVDA,PYPL"), ("tickers", "AMD")],
    ],
)
def test_correlation_requires_exactly_two_tickers(
    client: TestClient, service: FakeStockDataService, params: list[tuple[str, str]]
) -> None:
    response = client.get("/api/stock/correlation", params=params)

    assert response.status_code == 400
    assert response.json() == {"detail": "Exactly two tickers must be provided"}
    assert service.calls == []


def test_correlation_with_unknown_ticker_is_neutral(client: TestClient) -> None:
    response = client.get("/api/stock/correlation", params={"tickers": "NVDA,XYZ"})

    assert response.status_code == 200
    body = response.json()
    assert body["correlation"] == 0.0
    assert body["stocks"]["XYZ"] == {"averagePrice": 0.0, "priceHistory": []}


def test_list_stocks(client: TestClient) -> None:
    response = client.get("/api/stocks")

    assert response.status_code == 200
    assert response.json()["stocks"]["Nvidia Corporation"] == "NVDA"


def test_upstream_failures_map_to_bad_gateway(
    client: TestClient, service: FakeStockDataService
) -> None:
    service.fail = True

    assert client.get("/api/stocks").status_code == 502
    assert client.get("/api/stock/NVDA/price").status_code == 502
    assert client.get("/api/stock/correlation", params={"tickers": "NVDA,PYPL"}).status_code == 502
