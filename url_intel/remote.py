"""Small urllib helpers for fetching remote JSON payloads."""

from __future__ import annotations

import json
import logging
import urllib.request
from collections.abc import Mapping
from typing import Any, Optional

from . import __version__

logger = logging.getLogger(__name__)

USER_AGENT = f"url-intel/{__version__}"


def _read_json(req: urllib.request.Request, timeout: float) -> Any:
    with urllib.request.urlopen(req, timeout=timeout) as response:
        body = response.read().decode("utf-8")
    return json.loads(body) if body.strip() else None


def get_json(
    url: str, *, timeout: float = 10.0, headers: Optional[Mapping[str, str]] = None
) -> Any:
    """GET `url` and decode its JSON body. Errors propagate to the caller."""
    req = urllib.request.Request(url, method="GET")
    req.add_header("User-Agent", USER_AGENT)
    req.add_header("Accept", "application/json")
    for k, v in (headers or {}).items():
        req.add_header(k, v)

    logger.debug("GET %s", url)
    return _read_json(req, timeout)


def post_json(
    url: str,
    payload: Any,
    *,
    timeout: float = 10.0,
    headers: Optional[Mapping[str, str]] = None,
) -> Any:
    data = json.dumps(payload).encode("utf-8")
    req = urllib.request.Request(url, data=data, method="POST")
    req.add_header("User-Agent", USER_AGENT)
    req.add_header("Content-Type", "application/json")
    req.add_header("Accept", "application/json")
    for k, v in (headers or {}).items():
        req.add_header(k, v)

    logger.debug("POST %s", url)
    return _read_json(req, timeout)
