"""Run the aggregation API under uvicorn with the shared settings."""

import uvicorn

from stock_aggregator.core.config import get_settings
from stock_aggregator.core.logging import configure_logging


def main() -> int:
    """Serve the API on the configured host and port."""

    settings = get_settings()
    configure_logging(settings.LOG_LEVEL, service="api")
    uvicorn.run(
        "stock_aggregator.services.api.main:app",
        host=settings.HOST,
        port=settings.PORT,
        log_config=None,
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
