# Rev 1.0.0
from __future__ import annotations

import logging
from typing import Callable, TypeVar

from src.models.errors import ConflictError

T = TypeVar("T")


def retry_on_conflict(fn: Callable[[], T], *, retries: int, log: logging.Logger, what: str) -> T:
    """Run `fn` (a full rescan + compare-and-swap write); rerun it on ConflictError."""
    attempt = 0
    while True:
        try:
            return fn()
        except ConflictError as exc:
            if attempt >= retries:
                log.error("%s: conflict persisted after %d retr%s: %s",
                          what, retries, "y" if retries == 1 else "ies", exc)
                raise
            attempt += 1
            log.warning("%s: %s; rescanning (retry %d/%d)", what, exc, attempt, retries)
