"""Reputation matching against one threat-intelligence collection.

Collections are keyed by hostname. Records flagged with ``includesPath`` only
mark specific paths of a host as malicious, so a hostname hit on such a record
must be confirmed by a second, hostname+pathname query.
"""

from __future__ import annotations

import logging
from typing import Optional

from .errors import LookupFailed, StoreUnavailable
from .models import CollectionOutcome
from .normalize import NormalizedURL
from .store import Record, RecordStore

logger = logging.getLogger(__name__)


def match_collection(store: RecordStore, collection: str, url: NormalizedURL) -> Optional[Record]:
    """Return the matching record in `collection`, or None when no record matches.

    None means "no record", which is not the same as "safe".
    Raises LookupFailed on store errors, StoreUnavailable on connectivity loss.
    """
    try:
        record = store.find_one(collection, {"hostname": url.hostname})
        if record is None:
            return None

        if not record.get("includesPath"):
            return record

        return store.find_one(collection, {"hostname": url.hostname, "pathname": url.pathname})
    except (StoreUnavailable, LookupFailed):
        raise
    except Exception as e:
        raise LookupFailed(collection, e) from e


def lookup_collection(
    store: RecordStore, collection: str, url: NormalizedURL
) -> CollectionOutcome:
    """Three-way outcome wrapper around match_collection.

    StoreUnavailable is not captured here: the aggregator decides whether it is
    request-fatal.
    """
    try:
        record = match_collection(store, collection, url)
    except LookupFailed as e:
        logger.warning("Lookup in %s failed for %s: %s", collection, url.hostname, e.cause)
        return CollectionOutcome(status="lookup_failed", error=str(e))

    if record is None:
        return CollectionOutcome(status="no_record")
    return CollectionOutcome(status="match", record=record)
