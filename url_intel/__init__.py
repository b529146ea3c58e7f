"""url-intel - threat-intelligence lookup and host enrichment for URLs."""

__version__ = "1.0.0"

from .aggregator import Aggregator  # noqa: E402
from .errors import LookupFailed, MalformedInput, StoreUnavailable, UrlIntelError  # noqa: E402
from .matcher import lookup_collection, match_collection  # noqa: E402
from .normalize import NormalizedURL, is_ipv4, normalize_url  # noqa: E402

__all__ = [
    "Aggregator",
    "LookupFailed",
    "MalformedInput",
    "NormalizedURL",
    "StoreUnavailable",
    "UrlIntelError",
    "is_ipv4",
    "lookup_collection",
    "match_collection",
    "normalize_url",
]
