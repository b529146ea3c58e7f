"""Built-in enrichers.

- subdomains: subdomain enumeration (Project Sonar API), any hostname
- reverseDns: reverse DNS (Project Sonar API), IPv4 hosts only
- geolocation: ip-api.com lookup, IPv4 hosts only (opt-in)
- stackshare: technology stack via the StackShare GraphQL API (opt-in, needs key)
"""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

from ..normalize import NormalizedURL, is_ipv4
from ..remote import get_json, post_json
from .base import Enricher, EnrichmentContext

DEFAULT_ENRICHERS = ["subdomains", "reverseDns"]

GEOLOCATION_URL = "http://ip-api.com/json/"
STACKSHARE_URL = "https://api.stackshare.io/graphql"

STACKSHARE_QUERY = """
query getData($hostname: String!, $results: Int!) {
  enrichment(domain: $hostname) {
    domain
    companyId
    companyName
    companyTools(first: $results, after: "") {
      count
      pageInfo {
        hasNextPage
        endCursor
      }
      edges {
        node {
          tool {
            id
            name
          }
          sourcesSummary
          sources
        }
      }
    }
  }
}
"""


class SubdomainsEnricher(Enricher):
    name = "subdomains"

    def enrich(self, url: NormalizedURL, ctx: EnrichmentContext) -> Any:
        target = f"{ctx.sonar_base_url}/subdomains/{quote(url.hostname, safe='')}"
        return get_json(target, timeout=ctx.timeout)


class ReverseDnsEnricher(Enricher):
    name = "reverseDns"

    def applies(self, url: NormalizedURL, ctx: EnrichmentContext) -> bool:
        return is_ipv4(url.hostname)

    def enrich(self, url: NormalizedURL, ctx: EnrichmentContext) -> Any:
        return get_json(f"{ctx.sonar_base_url}/reverse/{url.hostname}", timeout=ctx.timeout)


class GeolocationEnricher(Enricher):
    name = "geolocation"

    def applies(self, url: NormalizedURL, ctx: EnrichmentContext) -> bool:
        return is_ipv4(url.hostname)

    def enrich(self, url: NormalizedURL, ctx: EnrichmentContext) -> Any:
        return get_json(GEOLOCATION_URL + url.hostname, timeout=ctx.timeout)


class StackShareEnricher(Enricher):
    name = "stackshare"

    def __init__(self, results: int = 10):
        self.results = results

    def applies(self, url: NormalizedURL, ctx: EnrichmentContext) -> bool:
        return bool(ctx.stackshare_key) and bool(url.hostname) and not is_ipv4(url.hostname)

    def enrich(self, url: NormalizedURL, ctx: EnrichmentContext) -> Any:
        payload = {
            "query": STACKSHARE_QUERY,
            "variables": {"hostname": url.hostname, "results": self.results},
        }
        out = post_json(
            STACKSHARE_URL,
            payload,
            timeout=ctx.timeout,
            headers={"x-api-key": ctx.stackshare_key or ""},
        )
        if isinstance(out, dict) and out.get("errors") and not out.get("data"):
            raise RuntimeError(f"StackShare error: {out['errors']}")
        return out.get("data") if isinstance(out, dict) else out


def builtin_enrichers() -> dict[str, Enricher]:
    return {
        "subdomains": SubdomainsEnricher(),
        "reverseDns": ReverseDnsEnricher(),
        "geolocation": GeolocationEnricher(),
        "stackshare": StackShareEnricher(),
    }
