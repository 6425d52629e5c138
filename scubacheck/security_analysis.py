# -*- coding: utf-8 -*-
"""
Security Analysis Module.
- Parse Authentication-Results headers (SPF, DKIM, DMARC)
- Fall back to Received-SPF for the connecting IP

Example header:
Authentication-Results: mx.google.com;
   dkim=pass header.d=example.com header.s=selector1;
   spf=pass (google.com: domain of a@example.com designates 203.0.113.7 as permitted sender) client-ip=203.0.113.7;
   dmarc=pass (p=REJECT sp=REJECT dis=NONE) header.from=example.com
"""
from __future__ import annotations

import logging
import re
from dataclasses import replace
from functools import reduce
from typing import Callable, Dict, List, Optional, Sequence

from scubacheck.models import AuthenticationFacts, DkimResult, DmarcResult, MISSING, SpfResult

logger = logging.getLogger(__name__)

AUTH_RESULTS_RE = re.compile(r"^Authentication-Results:([^\n]*(?:\n[ \t]+[^\n]*)*)", re.IGNORECASE | re.MULTILINE)
RECEIVED_SPF_RE = re.compile(r"^Received-SPF:([^\n]*(?:\n[ \t]+[^\n]*)*)", re.IGNORECASE | re.MULTILINE)

PAREN_IP_RE = re.compile(r"\((\d{1,3}(?:\.\d{1,3}){3})\)")


def _first(value: str, *patterns: str) -> Optional[str]:
    """First capture of the first pattern that matches, in priority order."""
    for pattern in patterns:
        match = re.search(pattern, value, re.IGNORECASE)
        if match:
            return match.group(1)
    return None


def _status(value: str, mechanism: str) -> str:
    token = _first(value, rf"\b{mechanism}=(\w+)")
    return token.lower() if token else MISSING


def _spf_ip(value: str) -> Optional[str]:
    ip = _first(value, r"client-ip=([^;\s]+)", r"\bip=([^;\s]+)")
    if ip:
        return ip
    match = PAREN_IP_RE.search(value)
    return match.group(1) if match else None


def _parse_dkim(value: str) -> DkimResult:
    return DkimResult(
        status=_status(value, "dkim"),
        domain=_first(value, r"\bd=([^;\s]+)"),
        selector=_first(value, r"\bs=([^;\s]+)"),
    )


def _parse_dmarc(value: str) -> DmarcResult:
    return DmarcResult(
        status=_status(value, "dmarc"),
        policy=_first(value, r"\bp=([^;\s)]+)"),
        alignment=_first(value, r"\badkim=([^;\s]+)"),
    )


def _parse_spf(value: str) -> SpfResult:
    return SpfResult(
        status=_status(value, "spf"),
        domain=_first(value, r"\bdomain=([^;\s]+)"),
        ip=_spf_ip(value),
    )


# mechanism -> parser; a mechanism is only reported when its result token is present
MECHANISMS: Dict[str, Callable[[str], object]] = {
    "dkim": _parse_dkim,
    "dmarc": _parse_dmarc,
    "spf": _parse_spf,
}


def authentication_results_values(header_block: str) -> List[str]:
    return [m.group(1) for m in AUTH_RESULTS_RE.finditer(header_block or "")]


def received_spf_values(header_block: str) -> List[str]:
    return [m.group(1) for m in RECEIVED_SPF_RE.finditer(header_block or "")]


def parse_occurrence(value: str) -> Dict[str, object]:
    """Facts reported by one Authentication-Results value."""
    return {
        name: parser(value)
        for name, parser in MECHANISMS.items()
        if re.search(rf"\b{name}=", value, re.IGNORECASE)
    }


def merge_facts(facts: AuthenticationFacts, occurrence: Dict[str, object]) -> AuthenticationFacts:
    """Later occurrences overwrite earlier ones (last write wins)."""
    return replace(facts, **occurrence)


def _received_spf_ip(values: Sequence[str]) -> Optional[str]:
    for value in values:
        ip = _first(value, r"\bip=([^;\s]+)", r"client-ip=([^;\s]+)")
        if not ip:
            match = PAREN_IP_RE.search(value)
            ip = match.group(1) if match else None
        if ip:
            return ip
    return None


def parse_authentication_results(header_block: str) -> AuthenticationFacts:
    """
    Fold every Authentication-Results occurrence into one set of facts.

    Missing or malformed headers leave the mechanism at status "missing".
    """
    try:
        occurrences = [parse_occurrence(v) for v in authentication_results_values(header_block)]
        facts = reduce(merge_facts, occurrences, AuthenticationFacts())

        if not facts.spf.ip or facts.spf.ip == "unknown":
            ip = _received_spf_ip(received_spf_values(header_block))
            if ip:
                facts = replace(facts, spf=replace(facts.spf, ip=ip))

        return facts
    except Exception:
        logger.exception("Error parsing authentication headers")
        return AuthenticationFacts()
