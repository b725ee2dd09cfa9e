"""Error taxonomy and the typed outcome used to keep silent and surfaced failures apart."""

from __future__ import annotations
from dataclasses import dataclass
from typing import Any, Optional


class CardError(Exception):
    """Base class for every failure raised by trainer_card."""


class UpstreamError(CardError):
    """A profile or species request returned a non-success response (or never got one)."""

    def __init__(self, message: str, status: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.status = status


class RateLimited(UpstreamError):
    """GitHub refused the request because the rate limit is exhausted."""


class InlineFailure(CardError):
    pass


class ActivityFetchFailure(CardError):
    pass


class ExportFailure(CardError):
    pass


OK = "ok"
SILENT = "silent"
SURFACED = "surfaced"


@dataclass(frozen=True)
class Outcome:
    """Result of one fetch, tagged with how a failure should be reported.

    ``silent`` failures degrade to an absent value, ``surfaced`` ones carry a
    message for the shared error line.
    """
    kind: str
    value: Any = None
    error: Optional[CardError] = None

    @classmethod
    def ok(cls, value: Any) -> "Outcome":
        return cls(OK, value=value)

    @classmethod
    def silent(cls, error: CardError) -> "Outcome":
        return cls(SILENT, error=error)

    @classmethod
    def surfaced(cls, error: CardError) -> "Outcome":
        return cls(SURFACED, error=error)

    @property
    def is_ok(self) -> bool:
        return self.kind == OK

    @property
    def message(self) -> Optional[str]:
        if self.kind != SURFACED or self.error is None:
            return None
        return str(self.error) or None
