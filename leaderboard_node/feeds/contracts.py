from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import Any, Literal

OutputShape = Literal["raw", "players"]


class FetchErrorKind(StrEnum):
    MISSING_CREDENTIALS = "MISSING_CREDENTIALS"
    NETWORK = "NETWORK"
    RATE_LIMITED = "RATE_LIMITED"
    SERVER_ERROR = "SERVER_ERROR"
    CLIENT_ERROR = "CLIENT_ERROR"
    MALFORMED_PAYLOAD = "MALFORMED_PAYLOAD"

    @property
    def retryable(self) -> bool:
        return self in (FetchErrorKind.RATE_LIMITED, FetchErrorKind.SERVER_ERROR)


@dataclass(frozen=True)
class FetchResult:
    """Outcome of one fetch call. Public callers only ever see `records`."""

    records: tuple[Any, ...] = ()
    error: FetchErrorKind | None = None
    status_code: int | None = None
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None

    @classmethod
    def failure(
        cls,
        error: FetchErrorKind,
        status_code: int | None = None,
        attempts: int = 0,
    ) -> "FetchResult":
        return cls(records=(), error=error, status_code=status_code, attempts=attempts)
