"""Per-instrument reduction and pairwise nearest-timestamp alignment."""

from datetime import datetime
from typing import Sequence, TypeVar

from stock_aggregator.core.statistics import mean
from stock_aggregator.core.time_utils import milliseconds_between
from stock_aggregator.core.types import AlignedSeriesPair, PricePoint, StockAggregate

_T = TypeVar("_T")


def reduce_price_series(points: Sequence[PricePoint]) -> StockAggregate:
    """Average all prices and keep the history in the order it was delivered."""

    history = tuple(points)
    if not history:
        return StockAggregate(average_price=0.0, price_history=())
    return StockAggregate(
        average_price=mean([point.price for point in history]),
        price_history=history,
    )


def nearest_value(
    timestamps: Sequence[datetime], values: Sequence[_T], target: datetime
) -> _T | None:
    """Return the value whose timestamp is closest to ``target``.

    Distance is absolute time difference in whole milliseconds. On equal distance
    the first entry in sequence order wins. Returns None for empty input.
    """

    if len(timestamps) != len(values):
        raise ValueError("timestamps and values must have the same length")

    closest: _T | None = None
    min_distance: int | None = None
    for timestamp, value in zip(timestamps, values):
        distance = milliseconds_between(timestamp, target)
        if min_distance is None or distance < min_distance:
            min_distance = distance
            closest = value
    return closest


def align_by_time(
    series_a: Sequence[PricePoint], series_b: Sequence[PricePoint]
) -> AlignedSeriesPair:
    """Put two independently sampled series on their shared, ascending timeline.

    The timeline is the union of distinct timestamps from both series. At every
    timeline instant each series contributes its own nearest observed price, so a
    pair does not necessarily share an exact timestamp. No values are interpolated.
    """

    if not series_a or not series_b:
        return AlignedSeriesPair(timestamps=(), series_a=(), series_b=())

    timeline = sorted({point.observed_at for point in (*series_a, *series_b)})

    timestamps_a = [point.observed_at for point in series_a]
    prices_a = [point.price for point in series_a]
    timestamps_b = [point.observed_at for point in series_b]
    prices_b = [point.price for point in series_b]

    aligned_timestamps: list[datetime] = []
    aligned_a: list[float] = []
    aligned_b: list[float] = []
    for timestamp in timeline:
        price_a = nearest_value(timestamps_a, prices_a, timestamp)
        price_b = nearest_value(timestamps_b, prices_b, timestamp)
        if price_a is None or price_b is None:
            continue
        aligned_timestamps.append(timestamp)
        aligned_a.append(price_a)
        aligned_b.append(price_b)

    return AlignedSeriesPair(
        timestamps=tuple(aligned_timestamps),
        series_a=tuple(aligned_a),
        series_b=tuple(aligned_b),
    )
