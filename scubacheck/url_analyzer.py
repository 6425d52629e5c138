# -*- coding: utf-8 -*-
"""
URL reputation.

Local scoring is a pure pass over a rule table (no I/O). Enrichment fans every
URL out to the reputation providers on a thread pool; each lookup settles as
data or as a skipped source, and a URL is aggregated once all its lookups
have settled. Lookups are keyed by (source, key), so URLs sharing a domain
share the domain lookups and nothing is queried twice per call.
"""
from __future__ import annotations

import logging
import re
import threading
from concurrent.futures import Executor, Future, ThreadPoolExecutor
from dataclasses import dataclass, replace
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from scubacheck.models import (
    ENRICHED,
    ENRICHMENT_PARTIAL,
    LOCALLY_SCORED,
    Reputation,
    URLRecord,
)
from scubacheck.osint.base import LookupResult, ReputationProvider, Verdict
from scubacheck.utils import clamp

logger = logging.getLogger(__name__)

LOCAL_SOURCE = "Local Analysis"


@dataclass(frozen=True)
class UrlRule:
    target: str                 # "domain" | "path"
    pattern: re.Pattern
    points: int
    reason: str
    category: Optional[str] = None


def _domain(pattern: str, points: int, reason: str, category: Optional[str] = None, flags=re.IGNORECASE) -> UrlRule:
    return UrlRule("domain", re.compile(pattern, flags), points, reason, category)


def _path(pattern: str, points: int, reason: str) -> UrlRule:
    return UrlRule("path", re.compile(pattern), points, reason)


URL_RULES: Tuple[UrlRule, ...] = (
    _domain(r"\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3}", 25, "IP address used as domain"),
    _domain(r"bit\.ly|tinyurl\.com|goo\.gl|t\.co|is\.gd|cli\.gs|ow\.ly|buff\.ly|adf\.ly|bit\.do|mcaf\.ee",
            25, "URL shortener service detected"),
    _domain(r"[^a-z0-9.-]", 25, "Non-standard characters in domain"),
    _domain(r"\.(xyz|top|work|loan|click|party|gq|ml|ga|cf|pw)$", 25, "Suspicious top-level domain"),

    _path(r"login|verify|account|secure|banking|security|update|password", 20, "Sensitive keywords in URL path"),
    _path(r"\.(exe|zip|rar|7z|msi|bat|ps1|vbs)$", 20, "Suspicious file type in URL"),
    _path(r"[^\x20-\x7E]", 20, "Non-ASCII characters in URL path"),

    _domain(r"paypal|apple|microsoft|google|facebook|instagram|twitter|amazon|netflix|bank|secure|login|verify|account",
            15, "Common phishing keywords in domain", "Potential Phishing"),

    _domain(r"\d{8,}", 10, "Long numeric sequence in domain"),
    _domain(r"[a-zA-Z0-9]{25,}", 10, "Very long alphanumeric sequence in domain"),
    _domain(r"-{2,}|_{2,}", 10, "Repeated hyphens or underscores in domain"),

    _domain(r"[A-Z]", 15, "Mixed case characters in domain (possible typosquatting)",
            "Potential Typosquatting", flags=0),
    _domain(r"^.{31,}$", 10, "Unusually long domain name", flags=re.DOTALL),
)


def evaluate_rules(record: URLRecord) -> List[UrlRule]:
    hits = []
    for rule in URL_RULES:
        subject = record.domain if rule.target == "domain" else record.path
        if rule.pattern.search(subject or ""):
            hits.append(rule)
    return hits


def _assemble(
    record: URLRecord,
    hits: Sequence[UrlRule],
    verdicts: Sequence[Tuple[str, Verdict]],
    state: str,
) -> URLRecord:
    points = sum(h.points for h in hits) + sum(v.points for _, v in verdicts)
    reasons = [h.reason for h in hits]
    categories = {h.category for h in hits if h.category}
    for _, verdict in verdicts:
        reasons.extend(verdict.reasons)
        categories |= verdict.categories

    return replace(
        record,
        suspicious=bool(hits) or any(v.points for _, v in verdicts),
        reasons=reasons,
        reputation=Reputation(
            score=int(clamp(points)),
            categories=categories,
            source=", ".join([LOCAL_SOURCE] + [label for label, _ in verdicts]),
        ),
        state=state,
    )


def score_locally(record: URLRecord) -> URLRecord:
    """Synchronous heuristics only; reputation source is "Local Analysis"."""
    return _assemble(record, evaluate_rules(record), (), LOCALLY_SCORED)


def aggregate(record: URLRecord, lookups: Iterable[Tuple[ReputationProvider, LookupResult]]) -> URLRecord:
    lookups = list(lookups)
    if not lookups:
        return score_locally(record)

    verdicts = []
    skipped = False
    for provider, result in lookups:
        if not result.ok:
            skipped = True
            continue
        verdicts.append((provider.label, provider.evaluate(result.data)))
    state = ENRICHMENT_PARTIAL if skipped else ENRICHED
    return _assemble(record, evaluate_rules(record), verdicts, state)


class URLReputationEngine:
    def __init__(self, providers: Sequence[ReputationProvider], max_workers: int = 8,
                 cancelled: Optional[threading.Event] = None):
        self.providers = list(providers)
        self.max_workers = max_workers
        self.cancelled = cancelled or threading.Event()

    def _lookup(self, provider: ReputationProvider, key: str) -> LookupResult:
        if self.cancelled.is_set():
            return LookupResult(provider.name, key, ok=False, error="cancelled")
        try:
            result = provider.check(key)
        except Exception as e:
            # a provider bug must not take sibling lookups down with it
            logger.exception("%s lookup failed for %s", provider.label, key)
            return LookupResult(provider.name, key, ok=False, error=f"{type(e).__name__}: {e}")
        if self.cancelled.is_set():
            logger.debug("Discarding %s result for %s after cancel", provider.label, key)
            return LookupResult(provider.name, key, ok=False, error="cancelled")
        return result

    def submit(self, records: Sequence[URLRecord], executor: Executor) -> List[Tuple[URLRecord, List[Tuple[ReputationProvider, Future]]]]:
        """Schedule every lookup for every record; one future per (source, key)."""
        tasks: Dict[Tuple[str, str], Future] = {}
        plan = []
        for record in records:
            lookups = []
            for provider in self.providers:
                if not provider.available():
                    continue
                key = provider.key_for(record)
                task_key = (provider.name, key)
                if task_key not in tasks:
                    tasks[task_key] = executor.submit(self._lookup, provider, key)
                lookups.append((provider, tasks[task_key]))
            plan.append((record, lookups))
        return plan

    @staticmethod
    def collect(plan) -> List[URLRecord]:
        """Aggregate each record once all of its lookups have settled."""
        return [
            aggregate(record, [(provider, future.result()) for provider, future in lookups])
            for record, lookups in plan
        ]

    def enrich(self, records: Sequence[URLRecord], executor: Optional[Executor] = None) -> List[URLRecord]:
        if not records:
            return []
        if executor is not None:
            return self.collect(self.submit(records, executor))
        with ThreadPoolExecutor(max_workers=self.max_workers, thread_name_prefix="reputation") as pool:
            return self.collect(self.submit(records, pool))
