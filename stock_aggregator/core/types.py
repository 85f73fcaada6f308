"""Request-scoped value objects shared by the statistics engine and the API layer."""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Mapping

from stock_aggregator.core.time_utils import format_timestamp, parse_timestamp

_CORRELATION_DECIMALS = 4


@dataclass(frozen=True, slots=True)
class PricePoint:
    """A single observed price of one instrument at one instant."""

    price: float
    observed_at: datetime

    @classmethod
    def from_payload(cls, payload: Mapping[str, Any]) -> "PricePoint":
        """Build a point from the price source wire form ``{price, lastUpdatedAt}``."""

        try:
            raw_price = payload["price"]
            raw_timestamp = payload["lastUpdatedAt"]
        except (KeyError, TypeError) as exc:
            raise ValueError(f"malformed price point: {payload!r}") from exc

        if isinstance(raw_price, bool):
            raise ValueError(f"malformed price value: {raw_price!r}")
        try:
            price = float(raw_price)
        except (TypeError, ValueError) as exc:
            raise ValueError(f"malformed price value: {raw_price!r}") from exc

        return cls(price=price, observed_at=parse_timestamp(raw_timestamp))

    def to_payload(self) -> dict[str, Any]:
        return {"price": self.price, "lastUpdatedAt": format_timestamp(self.observed_at)}


@dataclass(frozen=True, slots=True)
class StockAggregate:
    """Average price of one instrument alongside its history in source order."""

    average_price: float
    price_history: tuple[PricePoint, ...]

    def to_payload(self) -> dict[str, Any]:
        return {
            "averagePrice": self.average_price,
            "priceHistory": [point.to_payload() for point in self.price_history],
        }


@dataclass(frozen=True, slots=True)
class AlignedSeriesPair:
    """Two price series placed on one ascending timeline by nearest-timestamp matching."""

    timestamps: tuple[datetime, ...]
    series_a: tuple[float, ...]
    series_b: tuple[float, ...]

    def __post_init__(self) -> None:
        if not len(self.timestamps) == len(self.series_a) == len(self.series_b):
            raise ValueError(
                "aligned series length mismatch: "
                f"timestamps={len(self.timestamps)} "
                f"a={len(self.series_a)} b={len(self.series_b)}"
            )

    def __len__(self) -> int:
        return len(self.timestamps)


@dataclass(frozen=True, slots=True)
class CorrelationResult:
    """Pearson coefficient between two instruments plus their per-instrument aggregates.

    ``coefficient`` keeps full precision; rounding happens only in ``to_payload``.
    """

    coefficient: float
    ticker_a: str
    stock_a: StockAggregate
    ticker_b: str
    stock_b: StockAggregate

    def rounded_coefficient(self) -> float:
        return round(self.coefficient, _CORRELATION_DECIMALS)

    def to_payload(self) -> dict[str, Any]:
        return {
            "correlation": self.rounded_coefficient(),
            "stocks": {
                self.ticker_a: self.stock_a.to_payload(),
                self.ticker_b: self.stock_b.to_payload(),
            },
        }
