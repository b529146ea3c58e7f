"""Models for url-intel.

Plain dataclasses; the HTTP layer serializes them through `to_dict()`.

Wire shape of a lookup response:
- protocol, host, pathname: echoed from the normalized URL
- one field per configured collection: matched record or null
- one field per enricher (subdomains, reverseDns, ...): payload or null
- errors: only present when at least one lookup failed
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal, Optional

from .normalize import NormalizedURL

MatchStatus = Literal["match", "no_record", "lookup_failed"]
EnrichmentStatus = Literal["ok", "skipped", "failed"]


@dataclass(frozen=True)
class CollectionOutcome:
    """Result of matching one collection.

    "no_record" is ambiguous on purpose: the URL may be safe, or the dataset
    may simply not know about it.
    """

    status: MatchStatus
    record: Optional[dict[str, Any]] = None
    error: Optional[str] = None

    @property
    def matched(self) -> bool:
        return self.status == "match"


@dataclass(frozen=True)
class EnrichmentOutcome:
    status: EnrichmentStatus
    payload: Any = None
    error: Optional[str] = None


@dataclass(frozen=True)
class AggregatedResponse:
    url: NormalizedURL

    # Response field name -> outcome, in configured order.
    collections: dict[str, CollectionOutcome] = field(default_factory=dict)
    enrichment: dict[str, EnrichmentOutcome] = field(default_factory=dict)

    @property
    def errors(self) -> dict[str, str]:
        out: dict[str, str] = {}
        for name, c in self.collections.items():
            if c.status == "lookup_failed":
                out[name] = c.error or "lookup failed"
        for name, e in self.enrichment.items():
            if e.status == "failed":
                out[name] = e.error or "enrichment failed"
        return out

    def to_dict(self) -> dict[str, Any]:
        out: dict[str, Any] = {
            "protocol": self.url.protocol,
            "host": self.url.host,
            "pathname": self.url.pathname,
        }
        for name, c in self.collections.items():
            out[name] = c.record
        for name, e in self.enrichment.items():
            out[name] = e.payload if e.status == "ok" else None

        errors = self.errors
        if errors:
            out["errors"] = errors
        return out
