from .base import Enricher, EnrichmentContext
from .builtins import DEFAULT_ENRICHERS, builtin_enrichers
from .registry import EnrichmentRegistry
from .service import run_enricher

__all__ = [
    "DEFAULT_ENRICHERS",
    "Enricher",
    "EnrichmentContext",
    "EnrichmentRegistry",
    "builtin_enrichers",
    "run_enricher",
]
