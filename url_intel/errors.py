"""Error taxonomy for url-intel.

- MalformedInput: the submitted URL cannot be parsed; the request is rejected.
- LookupFailed: one collection or enrichment source errored; the aggregator
  degrades that single field to null.
- StoreUnavailable: the record store cannot be reached at all.

"No record found" is not an error and has no exception type.
"""

from __future__ import annotations

from typing import Optional


class UrlIntelError(Exception):
    """Base class for url-intel errors."""


class MalformedInput(UrlIntelError, ValueError):
    def __init__(self, value: str, reason: str = "cannot be parsed as a URL"):
        self.value = value
        self.reason = reason
        super().__init__(f"{value!r}: {reason}")


class LookupFailed(UrlIntelError):
    def __init__(self, source: str, cause: Optional[BaseException] = None):
        self.source = source
        self.cause = cause
        detail = f": {cause}" if cause is not None else ""
        super().__init__(f"lookup failed for {source}{detail}")


class StoreUnavailable(UrlIntelError):
    """The record store connection is down (request-fatal)."""
