"""Fetch orchestration with the mock-data policy applied on top of the price source."""

import asyncio
import logging
import random

from stock_aggregator.core.errors import PriceSourceError
from stock_aggregator.core.types import PricePoint
from stock_aggregator.services.api.cache import PriceSource
from stock_aggregator.services.api.mock_data import generate_mock_history

logger = logging.getLogger(__name__)


class StockDataService:
    """Hand complete price histories to the statistics engine.

    A correlation pair is never partially live: if either fetch fails, the other is
    cancelled and both series come from mock data (when fallback is enabled) or the
    failure propagates.
    """

    def __init__(
        self,
        source: PriceSource,
        use_mock_data: bool = False,
        fallback_to_mock: bool = True,
        rng: random.Random | None = None,
    ) -> None:
        self.source = source
        self.use_mock_data = use_mock_data
        self.fallback_to_mock = fallback_to_mock
        self._rng = rng or random.Random()

    def _mock(self, ticker: str, minutes: int | None) -> list[PricePoint]:
        return generate_mock_history(ticker, minutes, rng=self._rng)

    async def get_stocks(self) -> dict[str, str]:
        return await self.source.get_stocks()

    async def get_price_history(self, ticker: str, minutes: int | None) -> list[PricePoint]:
        if self.use_mock_data:
            return self._mock(ticker, minutes)
        try:
            return await self.source.get_price_history(ticker, minutes)
        except PriceSourceError as exc:
            if not self.fallback_to_mock:
                raise
            logger.warning(
                "price_source_fallback_to_mock",
                extra={"tickers": [ticker], "error": str(exc)},
            )
            return self._mock(ticker, minutes)

    async def get_price_histories(
        self, ticker_a: str, ticker_b: str, minutes: int | None
    ) -> tuple[list[PricePoint], list[PricePoint]]:
        if self.use_mock_data:
            return self._mock(ticker_a, minutes), self._mock(ticker_b, minutes)
        try:
            async with asyncio.TaskGroup() as group:
                task_a = group.create_task(self.source.get_price_history(ticker_a, minutes))
                task_b = group.create_task(self.source.get_price_history(ticker_b, minutes))
        except ExceptionGroup as group_error:
            failures, others = group_error.split(PriceSourceError)
            if failures is None or others is not None:
                raise
            exc = failures.exceptions[0]
            if not self.fallback_to_mock:
                raise exc from group_error
            logger.warning(
                "price_source_fallback_to_mock",
                extra={"tickers": [ticker_a, ticker_b], "error": str(exc)},
            )
            return self._mock(ticker_a, minutes), self._mock(ticker_b, minutes)
        return task_a.result(), task_b.result()
