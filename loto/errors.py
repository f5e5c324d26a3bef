"""Error taxonomy shared by the procedure engine, the exporters and the services.

Routes translate these into JSON error responses; the core never retries.
"""

from __future__ import annotations

from typing import List, Sequence


class LotoError(Exception):
    """Base class for every error raised on purpose by this package."""

    http_status = 400


class ValidationError(LotoError, ValueError):
    """Malformed filter, metadata or catalog input."""


class NotFoundError(LotoError, LookupError):
    """An operation referenced a point, entry or saved list that does not exist."""

    http_status = 404


class InvalidOrderError(LotoError, ValueError):
    """``reorder`` was called with something that is not a permutation."""

    def __init__(self, message: str, *, missing: Sequence[int] = (), unexpected: Sequence[int] = ()):
        super().__init__(message)
        self.missing: List[int] = list(missing)
        self.unexpected: List[int] = list(unexpected)


class EmptyProcedureError(LotoError, ValueError):
    """A document export was requested for a procedure without entries."""


class DroppedReferenceWarning(UserWarning):
    """Non-fatal: a saved list referenced points that are gone from the catalog.

    Never raised by the engine. It travels inside the hydration result so
    callers can surface the count.
    """

    def __init__(self, dropped_ids: Sequence[int]):
        self.dropped_ids: List[int] = list(dropped_ids)
        super().__init__(
            f"{len(self.dropped_ids)} isolation point(s) no longer exist in the catalog: "
            f"{self.dropped_ids}"
        )

    @property
    def count(self) -> int:
        return len(self.dropped_ids)
