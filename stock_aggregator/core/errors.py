"""Exceptions raised by the price source layer."""


class PriceSourceError(Exception):
    """Upstream price data could not be fetched or understood."""


class PriceSourceAuthError(PriceSourceError):
    """Token acquisition against the price source failed."""
