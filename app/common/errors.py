"""Error types shared by repositories and services."""

from __future__ import annotations


class DataAccessError(RuntimeError):
    """A fetch or persist call against Supabase failed.

    Raised by repositories and propagated unchanged by services; the HTTP
    layer is the only place that turns it into a response.
    """

    def __init__(self, op: str, message: str | None = None) -> None:
        self.op = op
        super().__init__(message or f"supabase_{op}_failed")


class ComputationError(ValueError):
    """Aggregation received input it cannot fold (never expected for well-typed rows)."""


__all__ = ["DataAccessError", "ComputationError"]
