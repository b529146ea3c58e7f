"""Enrichment registry.

Built-in enrichers plus plugins registered under the `url_intel.enrichers`
entry-point group.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from dataclasses import dataclass
from importlib import metadata
from typing import Optional

from .base import Enricher
from .builtins import builtin_enrichers

logger = logging.getLogger(__name__)

ENTRYPOINT_GROUP = "url_intel.enrichers"


def _iter_entry_points(group: str) -> list[metadata.EntryPoint]:
    eps = metadata.entry_points()
    select = getattr(eps, "select", None)
    if callable(select):
        return list(select(group=group))
    # importlib.metadata before 3.10 returns a dict of group -> entry points
    return list(eps.get(group, []))  # type: ignore[union-attr]


@dataclass
class EnrichmentRegistry:
    enrichers: dict[str, Enricher]

    @classmethod
    def default(cls, *, with_plugins: bool = True) -> "EnrichmentRegistry":
        enrichers = builtin_enrichers()
        if with_plugins:
            enrichers.update(cls.load_entrypoints())
        return cls(enrichers)

    @staticmethod
    def load_entrypoints(group: str = ENTRYPOINT_GROUP) -> dict[str, Enricher]:
        """Load Enricher plugins.

        - a broken plugin is logged and skipped
        - supports either an Enricher instance or a factory returning one
        - registers by `enricher.name`
        """
        loaded: dict[str, Enricher] = {}
        for ep in _iter_entry_points(group):
            try:
                obj = ep.load()
                enricher = obj() if callable(obj) else obj
            except Exception as e:
                logger.warning("Failed to load enricher plugin %s: %s", ep.name, e)
                continue
            if isinstance(enricher, Enricher):
                loaded[enricher.name] = enricher
            else:
                logger.warning("Entry point %s is not an Enricher, ignoring", ep.name)
        return loaded

    def list_names(self) -> list[str]:
        return sorted(self.enrichers.keys())

    def select(self, names: Optional[Iterable[str]] = None) -> list[Enricher]:
        if names is None:
            names = self.list_names()
        selected = []
        for n in names:
            if n in self.enrichers:
                selected.append(self.enrichers[n])
            else:
                logger.warning("Unknown enricher %r, ignoring", n)
        return selected
