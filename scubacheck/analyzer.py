# -*- coding: utf-8 -*-
"""
Analysis pipeline.

raw text -> split -> {headers, authentication, attachments}
         -> {received chain, content score, attachment risk, URL reputation}
         -> security score

Parsing and scoring are pure. The only I/O is enrichment (URL reputation and
SPF IP geolocation), which runs on one thread pool per call and is cached per
AnalysisSession.
"""
from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import replace
from pathlib import Path
from typing import List, Optional

from scubacheck.brand_detector import detect_brand_impersonation
from scubacheck.cache import ReputationCache
from scubacheck.config import load_config
from scubacheck.eml_parser import extract_attachments, extract_header_fields, read_message, split_message
from scubacheck.http_client import HttpClient
from scubacheck.models import AnalysisResult, AuthenticationFacts, URLRecord
from scubacheck.osint import build_geolocator, build_providers
from scubacheck.received_chain import calculate_latencies, parse_received_chain
from scubacheck.scoring import assess_attachments, assess_content, calculate_security_score
from scubacheck.security_analysis import parse_authentication_results
from scubacheck.url_analyzer import URLReputationEngine, score_locally
from scubacheck.url_extractor import extract_url_records
from scubacheck.utils import IPV4_RE

logger = logging.getLogger(__name__)


class AnalysisSession:
    """
    Owns everything that must not leak between unrelated analyses: the lookup
    cache, the HTTP session and the cancellation flag.
    """

    def __init__(self, config: Optional[dict] = None, providers=None, geolocator=None,
                 http: Optional[HttpClient] = None):
        self.config = load_config(config)
        self.cache = ReputationCache()
        self.http = http or HttpClient(timeout=self.config["http_timeout"], user_agent=self.config["user_agent"])
        self.providers = providers if providers is not None else build_providers(self.config, self.http, self.cache)
        self.geolocator = geolocator if geolocator is not None else build_geolocator(self.config, self.http, self.cache)
        self._cancelled = threading.Event()
        self.engine = URLReputationEngine(self.providers, self.config["max_workers"], self._cancelled)

    @property
    def cancelled(self) -> bool:
        return self._cancelled.is_set()

    def cancel(self) -> None:
        """Abandon in-flight enrichment; lookups not yet started are skipped."""
        self._cancelled.set()

    def reset(self) -> None:
        self._cancelled.clear()

    def close(self) -> None:
        self.cancel()
        self.http.close()

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


def _geolocate(session: AnalysisSession, ip: str):
    if session.cancelled:
        return None
    try:
        return session.geolocator.resolve(ip)
    except Exception:
        logger.exception("Error resolving IP %s", ip)
        return None


def enrich(session: AnalysisSession, auth: AuthenticationFacts,
           urls: List[URLRecord]) -> tuple[AuthenticationFacts, List[URLRecord]]:
    """URL reputation and SPF IP geolocation, concurrently, on one pool."""
    ip = auth.spf.ip if auth.spf.ip and IPV4_RE.fullmatch(auth.spf.ip) else None

    with ThreadPoolExecutor(max_workers=session.config["max_workers"], thread_name_prefix="enrich") as pool:
        geo_future = pool.submit(_geolocate, session, ip) if ip else None
        plan = session.engine.submit(urls, pool)
        enriched = session.engine.collect(plan)
        ip_info = geo_future.result() if geo_future else None

    if ip_info is not None:
        auth = replace(auth, spf=replace(auth.spf, ip_info=ip_info))
    return auth, enriched


def analyze_message(raw: str, session: Optional[AnalysisSession] = None,
                    enrich_results: Optional[bool] = None) -> AnalysisResult:
    """
    Best-effort analysis of one raw message. Never raises for malformed input;
    missing facts fall back to their defaults.
    """
    raw = raw or ""
    header_block, body = split_message(raw)

    headers = extract_header_fields(header_block)
    auth = parse_authentication_results(header_block)
    attachments = extract_attachments(raw)

    hops = parse_received_chain(header_block)
    latencies = calculate_latencies(hops)

    content = assess_content(body, headers.from_, headers.subject)
    attachment_risk = assess_attachments(attachments)
    urls = [score_locally(r) for r in extract_url_records(body)]
    brands = detect_brand_impersonation(body)

    if enrich_results is None:
        enrich_results = session is not None and session.config["enrichment_enabled"]
    if enrich_results and session is not None and not session.cancelled:
        auth, urls = enrich(session, auth, urls)

    score = calculate_security_score(auth, content.score, attachment_risk.score)
    logger.info(
        "Analyzed %r: overall=%d auth=%d content=%d attachments=%d urls=%d",
        headers.subject, score.overall, score.authentication, score.content, score.attachments, len(urls),
    )

    return AnalysisResult(
        headers=headers,
        auth=auth,
        security_score=score,
        content_assessment=content,
        attachment_assessment=attachment_risk,
        body=body,
        urls=urls,
        attachments=attachments,
        received_hops=hops,
        hop_latencies=latencies,
        brand_matches=brands,
    )


def analyze_file(path: str | Path, session: Optional[AnalysisSession] = None) -> AnalysisResult:
    return analyze_message(read_message(path), session=session)
