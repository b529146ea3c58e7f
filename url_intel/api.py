"""
url-intel Web API
FastAPI front end: GET /?url=<url> returns reputation matches and host enrichment.
"""

from __future__ import annotations

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from typing import Any, Optional

from fastapi import FastAPI, Query, Request
from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse

from . import __version__
from .aggregator import Aggregator
from .config import Settings
from .enrichment import EnrichmentRegistry
from .errors import MalformedInput, StoreUnavailable
from .store import MongoRecordStore, RecordStore

logger = logging.getLogger(__name__)

RESPONSE_HEADERS = {"X-Clacks-Overhead": "GNU Terry Pratchett"}


def _json(content: Any, status_code: int = 200) -> JSONResponse:
    return JSONResponse(
        content=jsonable_encoder(content), status_code=status_code, headers=RESPONSE_HEADERS
    )


def create_app(
    store: Optional[RecordStore] = None,
    settings: Optional[Settings] = None,
    *,
    registry: Optional[EnrichmentRegistry] = None,
) -> FastAPI:
    """Build the app around one shared, read-only record store.

    When `store` is not given, a MongoDB store is opened at startup from
    `settings` and closed at shutdown.
    """
    settings = settings or Settings.from_env()

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        owned: Optional[RecordStore] = None
        if getattr(app.state, "aggregator", None) is None:
            owned = MongoRecordStore(
                settings.mongo_uri,
                settings.db_name,
                server_selection_timeout_ms=settings.store_timeout_ms,
            )
            app.state.aggregator = Aggregator.from_settings(owned, settings, registry)
        try:
            yield
        finally:
            if owned is not None:
                owned.close()

    app = FastAPI(
        title="url-intel",
        description="Threat-intelligence lookup and host enrichment for URLs",
        version=__version__,
        lifespan=lifespan,
    )
    app.state.aggregator = (
        Aggregator.from_settings(store, settings, registry) if store is not None else None
    )

    @app.get("/")
    def lookup(request: Request, url: Optional[str] = Query(None, description="URL to look up")):
        """Look up a URL in every configured collection and enrich its host."""
        if not url or not url.strip():
            # Existing clients key off the body, not the status.
            return _json({"error": "No valid query"})

        aggregator: Aggregator = request.app.state.aggregator
        try:
            result = aggregator.lookup(url)
        except MalformedInput as e:
            return _json({"error": "Malformed URL", "detail": e.reason}, status_code=400)
        except StoreUnavailable as e:
            logger.error("Rejecting lookup for %r: %s", url, e)
            return _json({"error": "Record store unavailable"}, status_code=503)

        return _json(result.to_dict())

    @app.get("/health")
    def health(request: Request):
        """Health check endpoint"""
        aggregator: Aggregator = request.app.state.aggregator
        store_ok = aggregator.store.ping()
        return _json(
            {
                "status": "ok" if store_ok else "degraded",
                "store": "ok" if store_ok else "unavailable",
                "timestamp": datetime.now(timezone.utc).isoformat(),
            }
        )

    return app
