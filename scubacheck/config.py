"""Runtime settings as a plain dict: defaults, then environment, then explicit overrides."""
from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

logger = logging.getLogger(__name__)

DEFAULT_CONFIG: Dict[str, Any] = {
    "http_timeout": 8.0,
    "max_workers": 8,
    "enrichment_enabled": True,
    "safe_browsing_api_key": "",
    "user_agent": (
        "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
        "AppleWebKit/537.36 (KHTML, like Gecko) "
        "Chrome/123.0.0.0 Safari/537.36"
    ),
    "whois_url": "https://whois.freeaiapi.xyz/",
    "urlscan_url": "https://urlscan.io/api/v1/search/",
    "safe_browsing_url": "https://safebrowsing.googleapis.com/v4/threatMatches:find",
    "ipapi_url": "https://ipapi.co/{ip}/json/",
}

FALSE_VALUES = ("0", "false", "no", "off")
NUMERIC_KEYS = {"http_timeout": float, "max_workers": int}


def _positive(name: str, raw, default, cast):
    try:
        value = cast(raw)
    except (TypeError, ValueError):
        logger.warning("Ignoring invalid %s=%r, using %r", name, raw, default)
        return default
    if value <= 0:
        logger.warning("Ignoring non-positive %s=%r, using %r", name, raw, default)
        return default
    return value


def _env_number(name: str, default, cast):
    raw = os.environ.get(name)
    if raw is None or raw.strip() == "":
        return default
    return _positive(name, raw, default, cast)


def load_config(overrides: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    config = dict(DEFAULT_CONFIG)

    config["http_timeout"] = _env_number("SCUBACHECK_HTTP_TIMEOUT", config["http_timeout"], float)
    config["max_workers"] = _env_number("SCUBACHECK_MAX_WORKERS", config["max_workers"], int)

    enrichment = os.environ.get("SCUBACHECK_ENRICHMENT")
    if enrichment is not None:
        config["enrichment_enabled"] = enrichment.strip().lower() not in FALSE_VALUES

    key = os.environ.get("SCUBACHECK_SAFE_BROWSING_KEY")
    if key:
        config["safe_browsing_api_key"] = key.strip()

    if overrides:
        for name, cast in NUMERIC_KEYS.items():
            if name in overrides:
                overrides = {**overrides, name: _positive(name, overrides[name], config[name], cast)}
        config.update(overrides)
    return config
