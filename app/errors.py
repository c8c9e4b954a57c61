"""Error taxonomy for a stock refresh cycle.

All three are fatal to the cycle that raised them and are caught, counted and
logged at the refresh cache boundary. Soft failures from the auxiliary sources
never surface as exceptions.
"""

from __future__ import annotations


class StockRelayError(RuntimeError):
    """Base class for errors that fail a refresh cycle."""


class SessionError(StockRelayError):
    """Browser-driven credential refresh failed (navigation timeout/failure)."""


class FetchError(StockRelayError):
    """Primary stock API returned a non-success status or was unreachable."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class DataError(StockRelayError):
    """Primary stock API answered but the payload is empty or invalid."""
