# -*- coding: utf-8 -*-
"""
URL extraction from message text and splitting into domain / path / protocol.
"""

from __future__ import annotations

import logging
import re
from typing import List, Set
from urllib.parse import urlsplit

from scubacheck.models import URLRecord

logger = logging.getLogger(__name__)

URL_RE = re.compile(r"https?://[^\s<>\"']+", re.IGNORECASE)

TRAILING_PUNCT = ".,;:!?)]}>"


def _normalize(u: str) -> str:
    return u.strip().rstrip(TRAILING_PUNCT)


def extract_urls_from_text(text: str) -> List[str]:
    """Unique http(s) URLs in first-seen order."""
    out: List[str] = []
    seen: Set[str] = set()
    for m in URL_RE.finditer(text or ""):
        u = _normalize(m.group(0))
        if u and u not in seen:
            seen.add(u)
            out.append(u)
    return out


def _split_manually(url: str) -> URLRecord:
    protocol = url.split("://")[0] or "http"
    without_protocol = re.sub(r"^.*?://", "", url, count=1)
    domain = without_protocol.split("/")[0]
    path = "/" + without_protocol.split("/", 1)[1] if "/" in without_protocol else "/"
    return URLRecord(url=url, domain=domain, path=path, protocol=protocol)


def extract_url_components(url: str) -> URLRecord:
    """
    Domain keeps its original case (mixed case is itself a signal).
    Falls back to a plain split when the URL cannot be parsed.
    """
    try:
        parts = urlsplit(url)
        parts.port  # raises ValueError for a malformed port
        netloc = parts.netloc.rsplit("@", 1)[-1]
        if netloc.startswith("["):
            domain = netloc[: netloc.index("]") + 1]
        else:
            domain = netloc.split(":")[0]
        if not parts.scheme or not domain:
            raise ValueError(f"no host in {url!r}")
    except ValueError as e:
        logger.debug("URL parse failed (%s), splitting manually", e)
        return _split_manually(url)

    path = parts.path or "/"
    if parts.query:
        path += "?" + parts.query
    if parts.fragment:
        path += "#" + parts.fragment
    return URLRecord(url=url, domain=domain, path=path, protocol=parts.scheme.lower())


def extract_url_records(text: str) -> List[URLRecord]:
    return [extract_url_components(u) for u in extract_urls_from_text(text)]
