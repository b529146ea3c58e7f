"""Aggregation of reputation lookups and enrichment into one response.

Every collection lookup and every enricher is an independent branch. Branches
run concurrently and are all awaited; a failing branch degrades its own field
to null and never fails the request. The exception is total loss of the record
store, which is request-fatal.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from typing import Optional, Union

from .config import Settings
from .enrichment import DEFAULT_ENRICHERS, Enricher, EnrichmentContext, EnrichmentRegistry
from .enrichment.service import run_enricher
from .errors import StoreUnavailable
from .matcher import lookup_collection
from .models import AggregatedResponse, CollectionOutcome, EnrichmentOutcome
from .normalize import NormalizedURL, normalize_url
from .store import RecordStore

logger = logging.getLogger(__name__)

Outcome = Union[CollectionOutcome, EnrichmentOutcome]


class Aggregator:
    def __init__(
        self,
        store: RecordStore,
        collections: Mapping[str, str],
        enrichers: Iterable[Enricher] = (),
        *,
        ctx: Optional[EnrichmentContext] = None,
        max_workers: int = 8,
    ):
        self.store = store
        # Response field name -> collection name
        self.collections = dict(collections)
        self.enrichers = list(enrichers)
        self.ctx = ctx or EnrichmentContext()
        self.max_workers = max(1, max_workers)

    @classmethod
    def from_settings(
        cls,
        store: RecordStore,
        settings: Settings,
        registry: Optional[EnrichmentRegistry] = None,
    ) -> "Aggregator":
        registry = registry or EnrichmentRegistry.default()
        names = DEFAULT_ENRICHERS + [n for n in settings.extra_enrichers if n not in DEFAULT_ENRICHERS]
        ctx = EnrichmentContext(
            timeout=settings.enrich_timeout,
            retries=settings.enrich_retries,
            sonar_base_url=settings.sonar_base_url,
            stackshare_key=settings.stackshare_key,
        )
        return cls(
            store,
            settings.collections,
            registry.select(names),
            ctx=ctx,
            max_workers=settings.max_workers,
        )

    def lookup(self, raw_url: str) -> AggregatedResponse:
        """Normalize then aggregate. MalformedInput propagates before any lookup."""
        return self.aggregate(normalize_url(raw_url))

    def aggregate(self, url: NormalizedURL) -> AggregatedResponse:
        collection_results: dict[str, CollectionOutcome] = {}
        enrichment_results: dict[str, EnrichmentOutcome] = {}
        unavailable: list[str] = []

        branches = len(self.collections) + len(self.enrichers)
        with ThreadPoolExecutor(max_workers=min(self.max_workers, max(branches, 1))) as executor:
            futures: dict[Future[Outcome], tuple[str, str]] = {}
            for field_name, collection in self.collections.items():
                fut = executor.submit(lookup_collection, self.store, collection, url)
                futures[fut] = ("collection", field_name)
            for enricher in self.enrichers:
                fut = executor.submit(run_enricher, enricher, url, self.ctx)
                futures[fut] = ("enrichment", enricher.name)

            for future in as_completed(futures):
                kind, name = futures[future]
                try:
                    outcome = future.result()
                except StoreUnavailable as e:
                    unavailable.append(name)
                    logger.warning("Record store unavailable during %s lookup: %s", name, e)
                    outcome = CollectionOutcome(status="lookup_failed", error=f"store unavailable: {e}")
                except Exception as e:
                    logger.exception("Unexpected failure in %s lookup", name)
                    if kind == "collection":
                        outcome = CollectionOutcome(status="lookup_failed", error=str(e))
                    else:
                        outcome = EnrichmentOutcome(status="failed", error=str(e))

                if kind == "collection":
                    collection_results[name] = outcome  # type: ignore[assignment]
                else:
                    enrichment_results[name] = outcome  # type: ignore[assignment]

        if self.collections and len(unavailable) == len(self.collections):
            raise StoreUnavailable("record store unreachable for every collection")

        logger.debug(
            "Aggregated %s: %d/%d collections matched",
            url.hostname,
            sum(1 for c in collection_results.values() if c.matched),
            len(self.collections),
        )
        return AggregatedResponse(
            url=url,
            collections={n: collection_results[n] for n in self.collections},
            enrichment={e.name: enrichment_results[e.name] for e in self.enrichers},
        )
