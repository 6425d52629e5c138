import threading
import unittest

from scubacheck.cache import ReputationCache
from scubacheck.models import ENRICHED, ENRICHMENT_PARTIAL, LOCALLY_SCORED
from scubacheck.osint.base import ReputationProvider, Verdict
from scubacheck.http_client import SourceUnavailable
from scubacheck.url_analyzer import URLReputationEngine, score_locally
from scubacheck.url_extractor import extract_url_components, extract_url_records, extract_urls_from_text


class StubProvider(ReputationProvider):
    """Answers from a fixed table; records every key it is asked for."""

    def __init__(self, name, label, answers, by_url=False, cache=None):
        super().__init__({}, None, cache or ReputationCache())
        self.name = name
        self.label = label
        self.answers = answers
        self.by_url = by_url
        self.calls = []
        self._lock = threading.Lock()

    def key_for(self, record):
        return record.url if self.by_url else record.domain

    def fetch(self, key):
        with self._lock:
            self.calls.append(key)
        answer = self.answers.get(key, 0)
        if isinstance(answer, Exception):
            raise answer
        return answer

    def evaluate(self, data):
        if not data:
            return Verdict()
        return Verdict(points=data, reasons=[f"{self.label} flagged"], categories={f"{self.label} category"})


class TestUrlExtraction(unittest.TestCase):
    def test_unique_in_order_without_trailing_punctuation(self):
        text = (
            'See https://example.com/a, then <a href="http://example.org/b?x=1">here</a>. '
            "Again: https://example.com/a."
        )
        self.assertEqual(extract_urls_from_text(text), ["https://example.com/a", "http://example.org/b?x=1"])

    def test_no_urls(self):
        self.assertEqual(extract_urls_from_text("ftp://example.com nothing here"), [])
        self.assertEqual(extract_url_records(""), [])

    def test_components(self):
        record = extract_url_components("http://192.168.1.1/verify-login.exe")
        self.assertEqual(record.domain, "192.168.1.1")
        self.assertEqual(record.path, "/verify-login.exe")
        self.assertEqual(record.protocol, "http")

    def test_query_fragment_and_port(self):
        record = extract_url_components("https://user@Example.com:8443/p?q=1#top")
        self.assertEqual(record.domain, "Example.com")
        self.assertEqual(record.path, "/p?q=1#top")
        self.assertEqual(record.protocol, "https")

    def test_empty_path_defaults_to_root(self):
        self.assertEqual(extract_url_components("https://example.com").path, "/")

    def test_unparseable_url_falls_back(self):
        record = extract_url_components("http://[::1/path")
        self.assertEqual(record.protocol, "http")
        self.assertEqual(record.domain, "[::1")
        self.assertEqual(record.path, "/path")


class TestLocalScoring(unittest.TestCase):
    def test_ip_literal_with_executable(self):
        record = score_locally(extract_url_components("http://192.168.1.1/verify-login.exe"))
        self.assertTrue(record.suspicious)
        self.assertGreaterEqual(record.reputation.score, 65)
        self.assertIn("IP address used as domain", record.reasons)
        self.assertIn("Sensitive keywords in URL path", record.reasons)
        self.assertIn("Suspicious file type in URL", record.reasons)
        self.assertEqual(record.reputation.source, "Local Analysis")
        self.assertEqual(record.state, LOCALLY_SCORED)

    def test_clean_url(self):
        record = score_locally(extract_url_components("https://example.com/"))
        self.assertFalse(record.suspicious)
        self.assertEqual(record.reputation.score, 0)
        self.assertEqual(record.reasons, [])

    def test_shortener(self):
        self.assertEqual(score_locally(extract_url_components("https://bit.ly/abc")).reputation.score, 25)

    def test_phishing_keyword_and_tld(self):
        record = score_locally(extract_url_components("http://paypal-login.xyz/"))
        self.assertEqual(record.reputation.score, 40)
        self.assertEqual(record.reputation.categories, {"Potential Phishing"})

    def test_mixed_case_domain(self):
        record = score_locally(extract_url_components("http://PayPal.com/"))
        self.assertEqual(record.reputation.score, 30)
        self.assertEqual(record.reputation.categories, {"Potential Phishing", "Potential Typosquatting"})

    def test_score_is_clamped(self):
        url = "http://PAYPAL--secure-login-verify-account-1234567890.xyz/login/update.exe"
        self.assertEqual(score_locally(extract_url_components(url)).reputation.score, 100)

    def test_deterministic(self):
        url = "http://198.51.100.7/secure/update.zip"
        first = score_locally(extract_url_components(url))
        second = score_locally(extract_url_components(url))
        self.assertEqual(first.reputation.score, second.reputation.score)
        self.assertEqual(first.reasons, second.reasons)


class TestEnrichment(unittest.TestCase):
    def setUp(self):
        self.whois = StubProvider("whois", "WHOIS", {"example.net": 25})
        self.scan = StubProvider("urlscan", "URLScan.io", {})
        self.sb = StubProvider("safebrowsing", "Google Safe Browsing", {"http://example.net/x": 50}, by_url=True)
        self.engine = URLReputationEngine([self.whois, self.scan, self.sb], max_workers=4)

    def _records(self, *urls):
        return [score_locally(extract_url_components(u)) for u in urls]

    def test_all_sources_answer(self):
        record = self.engine.enrich(self._records("http://example.net/x"))[0]
        self.assertEqual(record.state, ENRICHED)
        self.assertEqual(record.reputation.source, "Local Analysis, WHOIS, URLScan.io, Google Safe Browsing")
        self.assertEqual(record.reputation.score, 75)
        self.assertEqual(record.reputation.categories, {"WHOIS category", "Google Safe Browsing category"})
        self.assertTrue(record.suspicious)

    def test_unavailable_source_is_skipped(self):
        self.scan.answers = {"example.net": SourceUnavailable("HTTP 429", status_code=429, rate_limited=True)}
        record = self.engine.enrich(self._records("http://example.net/x"))[0]
        self.assertEqual(record.state, ENRICHMENT_PARTIAL)
        self.assertEqual(record.reputation.source, "Local Analysis, WHOIS, Google Safe Browsing")
        self.assertEqual(record.reputation.score, 75)

    def test_provider_bug_is_isolated(self):
        self.whois.answers = {"example.net": RuntimeError("boom")}
        record = self.engine.enrich(self._records("http://example.net/x"))[0]
        self.assertEqual(record.state, ENRICHMENT_PARTIAL)
        self.assertNotIn("WHOIS", record.reputation.source)
        self.assertEqual(record.reputation.score, 50)

    def test_shared_domain_is_queried_once(self):
        records = self.engine.enrich(self._records("http://example.net/x", "http://example.net/y"))
        self.assertEqual(self.whois.calls, ["example.net"])
        self.assertEqual(sorted(self.sb.calls), ["http://example.net/x", "http://example.net/y"])
        self.assertEqual([r.reputation.score for r in records], [75, 25])

    def test_cache_prevents_second_query(self):
        self.engine.enrich(self._records("http://example.net/x"))
        record = self.engine.enrich(self._records("http://example.net/x"))[0]
        self.assertEqual(self.whois.calls, ["example.net"])
        self.assertEqual(self.scan.calls, ["example.net"])
        self.assertEqual(record.reputation.score, 75)

    def test_failed_lookup_is_not_cached(self):
        self.scan.answers = {"example.net": SourceUnavailable("timeout")}
        self.engine.enrich(self._records("http://example.net/x"))
        self.scan.answers = {}
        record = self.engine.enrich(self._records("http://example.net/x"))[0]
        self.assertEqual(self.scan.calls, ["example.net", "example.net"])
        self.assertEqual(record.state, ENRICHED)

    def test_cancelled_engine_keeps_local_results(self):
        self.engine.cancelled.set()
        record = self.engine.enrich(self._records("http://192.168.1.1/verify-login.exe"))[0]
        self.assertEqual(self.whois.calls, [])
        self.assertEqual(record.reputation.source, "Local Analysis")
        self.assertEqual(record.reputation.score, 65)
        self.assertEqual(record.state, ENRICHMENT_PARTIAL)

    def test_result_arriving_after_cancel_is_discarded(self):
        engine = URLReputationEngine([self.whois], max_workers=1)
        original_fetch = self.whois.fetch

        def fetch_then_cancel(key):
            data = original_fetch(key)
            engine.cancelled.set()
            return data

        self.whois.fetch = fetch_then_cancel
        record = engine.enrich(self._records("http://example.net/x"))[0]
        self.assertEqual(self.whois.calls, ["example.net"])
        self.assertEqual(record.state, ENRICHMENT_PARTIAL)
        self.assertEqual(record.reputation.source, "Local Analysis")
        self.assertEqual(record.reputation.score, 0)

    def test_unavailable_provider_is_not_consulted(self):
        self.sb.available = lambda: False
        record = self.engine.enrich(self._records("http://example.net/x"))[0]
        self.assertEqual(self.sb.calls, [])
        self.assertEqual(record.state, ENRICHED)
        self.assertEqual(record.reputation.source, "Local Analysis, WHOIS, URLScan.io")

    def test_no_providers_means_local_only(self):
        record = URLReputationEngine([]).enrich(self._records("http://example.net/x"))[0]
        self.assertEqual(record.state, LOCALLY_SCORED)

    def test_empty_input(self):
        self.assertEqual(self.engine.enrich([]), [])


if __name__ == "__main__":
    unittest.main()
