"""Running enrichers with per-source failure isolation."""

from __future__ import annotations

import logging

from ..models import EnrichmentOutcome
from ..normalize import NormalizedURL
from ..retry import RetryPolicy, retry_call
from .base import Enricher, EnrichmentContext

logger = logging.getLogger(__name__)


def run_enricher(enricher: Enricher, url: NormalizedURL, ctx: EnrichmentContext) -> EnrichmentOutcome:
    """Run one enricher. Never raises; failures become a "failed" outcome."""
    try:
        if not enricher.applies(url, ctx):
            return EnrichmentOutcome(status="skipped")
    except Exception as e:
        logger.warning("Enricher %s applicability check failed: %s", enricher.name, e)
        return EnrichmentOutcome(status="failed", error=str(e))

    try:
        payload = retry_call(
            lambda: enricher.enrich(url, ctx),
            policy=RetryPolicy(retries=ctx.retries),
        )
    except Exception as e:
        logger.warning("Enrichment %s failed for %s: %s", enricher.name, url.hostname, e)
        return EnrichmentOutcome(status="failed", error=str(e))

    return EnrichmentOutcome(status="ok", payload=payload)
