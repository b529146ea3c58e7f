"""URL normalization.

Inputs are parsed strictly first; a bare host or host/path without a scheme is
retried with an assumed ``http://`` prefix.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from urllib.parse import quote, urlsplit

from .errors import MalformedInput

DEFAULT_SCHEME = "http"

DEFAULT_PORTS = {"http": 80, "https": 443, "ws": 80, "wss": 443, "ftp": 21}

# Schemes whose paths treat "\" as "/" (WHATWG "special" schemes).
SPECIAL_SCHEMES = frozenset({"http", "https", "ws", "wss", "ftp", "file"})

IPV4_RE = re.compile(
    r"(([0-9]|[1-9][0-9]|1[0-9]{2}|2[0-4][0-9]|25[0-5])\.){3}"
    r"([0-9]|[1-9][0-9]|1[0-9]{2}|2[0-4][0-9]|25[0-5])"
)

_FORBIDDEN_HOST_CHARS = re.compile(r"[\s<>^|%\\\"{}`]")

# Characters left as-is in a path; everything else (spaces, quotes, non-ASCII,
# ...) is percent-encoded as UTF-8, the way record pathnames are stored.
_PATH_SAFE = "/%!$&'()*+,;=:@~[]|^"

# "%2e" spells "." as far as browsers are concerned.
_DOT_SEGMENTS = {
    ".": ".",
    "%2e": ".",
    "..": "..",
    ".%2e": "..",
    "%2e.": "..",
    "%2e%2e": "..",
}


@dataclass(frozen=True)
class NormalizedURL:
    scheme: str
    host: str  # hostname plus non-default port
    hostname: str
    pathname: str

    @property
    def protocol(self) -> str:
        return f"{self.scheme}:"


def is_ipv4(hostname: str) -> bool:
    """Whether hostname is a dotted-decimal IPv4 literal."""
    return bool(IPV4_RE.fullmatch(hostname or ""))


def _to_punycode(hostname: str) -> str:
    if hostname.isascii():
        return hostname
    try:
        return hostname.encode("idna").decode("ascii")
    except UnicodeError as e:
        raise MalformedInput(hostname, f"invalid internationalized hostname ({e})") from e


def remove_dot_segments(path: str) -> str:
    """Resolve "." and ".." segments (RFC 3986 section 5.2.4).

    >>> remove_dot_segments("/a/b/../c/./d")
    '/a/c/d'
    """
    output: list[str] = []
    segments = path.split("/")[1:]
    for segment in segments:
        kind = _DOT_SEGMENTS.get(segment.lower())
        if kind == "..":
            if output:
                output.pop()
        elif kind is None:
            output.append(segment)

    resolved = "/" + "/".join(output)
    # "/a/.." and "/a/." name a directory: keep the trailing slash.
    if segments and segments[-1].lower() in _DOT_SEGMENTS and not resolved.endswith("/"):
        resolved += "/"
    return resolved


def canonical_path(path: str, scheme: str = DEFAULT_SCHEME) -> str:
    """Canonical form of a URL path, as stored in path-level records."""
    if scheme in SPECIAL_SCHEMES:
        path = path.replace("\\", "/")
    if not path.startswith("/"):
        path = "/" + path
    return quote(remove_dot_segments(path), safe=_PATH_SAFE)


def _backslashes_to_slashes(value: str) -> str:
    # Only before the query/fragment: "\" there is data, not a separator.
    if value.partition(":")[0].lower() not in SPECIAL_SCHEMES:
        return value
    cut = min((i for i in (value.find("?"), value.find("#")) if i >= 0), default=len(value))
    return value[:cut].replace("\\", "/") + value[cut:]


def _has_authority(value: str) -> bool:
    try:
        parts = urlsplit(value)
    except ValueError:
        return "://" in value
    return bool(parts.scheme and parts.netloc)


def _parse_strict(value: str) -> NormalizedURL:
    value = _backslashes_to_slashes(value)
    try:
        parts = urlsplit(value)
        port = parts.port
    except ValueError as e:
        raise MalformedInput(value, str(e)) from e

    if not parts.scheme or not parts.netloc:
        raise MalformedInput(value, "missing scheme or host")

    hostname = parts.hostname or ""
    if not hostname or _FORBIDDEN_HOST_CHARS.search(hostname):
        raise MalformedInput(value, "invalid host")
    hostname = _to_punycode(hostname.rstrip(".") or hostname)

    scheme = parts.scheme.lower()
    host = f"[{hostname}]" if ":" in hostname else hostname
    if port is not None and DEFAULT_PORTS.get(scheme) != port:
        host = f"{host}:{port}"

    return NormalizedURL(
        scheme=scheme,
        host=host,
        hostname=hostname,
        pathname=canonical_path(parts.path, scheme),
    )


def normalize_url(value: str) -> NormalizedURL:
    """Parse an arbitrary string into a NormalizedURL.

    Raises MalformedInput when the value cannot be parsed even with an assumed
    scheme.
    """
    raw = (value or "").strip()
    if not raw:
        raise MalformedInput(value or "", "empty input")

    # Inputs that already carry scheme://authority are not retried: prefixing
    # them would turn the original scheme into the hostname.
    if _has_authority(raw):
        return _parse_strict(raw)

    return _parse_strict(f"{DEFAULT_SCHEME}://{raw}")
