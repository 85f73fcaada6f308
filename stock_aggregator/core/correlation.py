"""Two-instrument correlation built from the reducer, the aligner and Pearson's r."""

import logging
from typing import Sequence

from stock_aggregator.core.series import align_by_time, reduce_price_series
from stock_aggregator.core.statistics import pearson_correlation
from stock_aggregator.core.types import CorrelationResult, PricePoint

logger = logging.getLogger(__name__)


def correlate_price_series(
    ticker_a: str,
    points_a: Sequence[PricePoint],
    ticker_b: str,
    points_b: Sequence[PricePoint],
) -> CorrelationResult:
    """Correlate two raw price histories over their aligned timeline.

    Fewer than two aligned pairs give a coefficient of 0.0. The coefficient is kept
    at full precision; the result rounds it only when serialized.
    """

    stock_a = reduce_price_series(points_a)
    stock_b = reduce_price_series(points_b)
    aligned = align_by_time(stock_a.price_history, stock_b.price_history)

    coefficient = 0.0
    if len(aligned) > 1:
        coefficient = pearson_correlation(aligned.series_a, aligned.series_b)

    logger.debug(
        "correlation_computed",
        extra={
            "ticker_a": ticker_a,
            "ticker_b": ticker_b,
            "points_a": len(stock_a.price_history),
            "points_b": len(stock_b.price_history),
            "aligned_points": len(aligned),
            "coefficient": coefficient,
        },
    )
    return CorrelationResult(
        coefficient=coefficient,
        ticker_a=ticker_a,
        stock_a=stock_a,
        ticker_b=ticker_b,
        stock_b=stock_b,
    )
