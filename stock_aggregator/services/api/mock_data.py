"""Random price histories served when the price source is disabled or unavailable."""

import logging
import random
from datetime import datetime, timedelta

from stock_aggregator.core.time_utils import utc_now
from stock_aggregator.core.types import PricePoint

_MAX_MOCK_POINTS = 10
_MAX_MOCK_PRICE = 1000.0
_MOCK_STEP = timedelta(minutes=1)

logger = logging.getLogger(__name__)


def generate_mock_history(
    ticker: str,
    minutes: int | None,
    rng: random.Random | None = None,
    now: datetime | None = None,
) -> list[PricePoint]:
    """Return one point for "latest" or up to ten one-minute-spaced points going back from now."""

    rng = rng or random.Random()
    now = now or utc_now()
    count = 1 if not minutes else min(_MAX_MOCK_POINTS, minutes)
    logger.info(
        "mock_history_generated",
        extra={"ticker": ticker, "minutes": minutes, "points": count},
    )
    return [
        PricePoint(price=rng.random() * _MAX_MOCK_PRICE, observed_at=now - index * _MOCK_STEP)
        for index in range(count)
    ]
