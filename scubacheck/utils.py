import math
import re

import tldextract

# Offline suffix list snapshot; never fetches the public suffix list at runtime.
_TLD_EXTRACT = tldextract.TLDExtract(suffix_list_urls=())

IPV4_RE = re.compile(r"\b(?:\d{1,3}\.){3}\d{1,3}\b")


def clamp(value: float, low: int = 0, high: int = 100) -> float:
    return max(low, min(high, value))


def round_half_up(value: float) -> int:
    # round() is banker's rounding; scores round .5 upwards
    return int(math.floor(value + 0.5))


def registered_domain(host: str) -> str:
    """example.co.uk for mail.example.co.uk; the host itself when no suffix matches."""
    host = (host or "").strip().lower().rstrip(".")
    if not host or IPV4_RE.fullmatch(host):
        return host
    ext = _TLD_EXTRACT(host)
    if ext.domain and ext.suffix:
        return f"{ext.domain}.{ext.suffix}"
    return host


def sender_domain(from_header: str) -> str:
    match = re.search(r"@([\w.-]+)", from_header or "")
    return match.group(1).lower().rstrip(".") if match else ""
