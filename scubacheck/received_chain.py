# -*- coding: utf-8 -*-
"""
Received-chain analysis: one hop per timed Received header, newest first,
plus relay latency between consecutive hops.
"""
from __future__ import annotations

import logging
import re
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import List, Optional

from scubacheck.eml_parser import extract_received_values
from scubacheck.models import HopLatency, ReceivedHop
from scubacheck.utils import IPV4_RE

logger = logging.getLogger(__name__)

FROM_RE = re.compile(r"^\s*from\s+([^\s;()]+)", re.IGNORECASE)
FROM_PAREN_RE = re.compile(r"^\s*from\s+[^\s;()]+[^();]*?\(([^)]*)\)", re.IGNORECASE)
BY_RE = re.compile(r"\bby\s+([^\s;()]+)", re.IGNORECASE)
WITH_RE = re.compile(r"\bwith\s+([^\s;()]+)", re.IGNORECASE)
TIMESTAMP_RE = re.compile(r";\s*([^;]+?)\s*$")

HIGH_LATENCY_SECONDS = 300
MODERATE_LATENCY_SECONDS = 60


def _group(pattern: re.Pattern, value: str) -> str:
    match = pattern.search(value)
    return match.group(1) if match else ""


def _parse_timestamp(text: str) -> Optional[datetime]:
    try:
        ts = parsedate_to_datetime(text)
    except (TypeError, ValueError, IndexError, OverflowError):
        return None
    if ts is None:
        return None
    if ts.tzinfo is None:
        ts = ts.replace(tzinfo=timezone.utc)
    return ts


def parse_received_value(value: str) -> Optional[ReceivedHop]:
    """One unfolded Received value -> hop, or None when it carries no usable timestamp."""
    stamp = _group(TIMESTAMP_RE, value)
    if not stamp:
        return None
    timestamp = _parse_timestamp(stamp)
    if timestamp is None:
        logger.debug("Dropping Received hop with unparseable timestamp %r", stamp)
        return None

    from_host = _group(FROM_RE, value)
    paren = _group(FROM_PAREN_RE, value)
    ip_match = IPV4_RE.search(paren) or IPV4_RE.search(from_host)

    return ReceivedHop(
        from_=from_host,
        by=_group(BY_RE, value),
        protocol=_group(WITH_RE, value),
        timestamp=timestamp,
        ip=ip_match.group(0) if ip_match else None,
    )


def parse_received_chain(header_block: str) -> List[ReceivedHop]:
    hops = []
    for value in extract_received_values(header_block):
        hop = parse_received_value(value)
        if hop is not None:
            hops.append(hop)
    return sorted(hops, key=lambda h: h.timestamp, reverse=True)


def classify_latency(seconds: float) -> str:
    if seconds > HIGH_LATENCY_SECONDS:
        return "high"
    if seconds > MODERATE_LATENCY_SECONDS:
        return "moderate"
    return "normal"


def calculate_latencies(hops: List[ReceivedHop]) -> List[HopLatency]:
    """Gap between each hop and the newer hop before it, in seconds."""
    latencies = []
    for newer, older in zip(hops, hops[1:]):
        seconds = (newer.timestamp - older.timestamp).total_seconds()
        latencies.append(HopLatency(
            from_=older.from_,
            to=newer.from_,
            seconds=seconds,
            level=classify_latency(seconds),
        ))
    return latencies
