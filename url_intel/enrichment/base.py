"""Enrichment interface.

An Enricher is a best-effort adapter over a third-party source that adds
context about the URL's host. Enrichers must be safe to run in parallel.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional

from ..normalize import NormalizedURL


@dataclass(frozen=True)
class EnrichmentContext:
    timeout: float = 10.0
    retries: int = 1
    sonar_base_url: str = "https://sonar.omnisint.io"
    stackshare_key: Optional[str] = None


class Enricher:
    """Base interface for enrichers."""

    # Response field name.
    name: str

    def applies(self, url: NormalizedURL, ctx: EnrichmentContext) -> bool:
        """Whether the source makes sense for this URL.

        Inapplicable enrichers are skipped and reported as null, not as failures.
        """
        return bool(url.hostname)

    def enrich(self, url: NormalizedURL, ctx: EnrichmentContext) -> Any:
        """Return the source's JSON payload unmodified. Raise on failure."""
        raise NotImplementedError
