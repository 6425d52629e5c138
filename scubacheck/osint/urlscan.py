from __future__ import annotations

from typing import Any, Dict

from scubacheck.http_client import SourceUnavailable
from scubacheck.osint.base import ReputationProvider, Verdict

MALICIOUS_POINTS = 40


class UrlScanProvider(ReputationProvider):
    """Passive scan history for a domain from the urlscan.io search API."""
    name = "urlscan"
    label = "URLScan.io"

    def key_for(self, record) -> str:
        return record.domain.lower()

    def fetch(self, key: str) -> Dict[str, Any]:
        data = self.http.get_json(self.config["urlscan_url"], params={"q": f'domain:"{key}"', "size": 10})
        if not isinstance(data, dict):
            raise SourceUnavailable(f"unexpected URLScan payload for {key}")

        results = data.get("results") or []
        malicious = False
        categories = []
        for result in results:
            overall = (result.get("verdicts") or {}).get("overall") or {}
            if overall.get("malicious"):
                malicious = True
            for tag in result.get("tags") or []:
                if tag not in categories:
                    categories.append(tag)
            for threat in overall.get("threats") or []:
                tag = threat.get("tag") if isinstance(threat, dict) else threat
                if tag and tag not in categories:
                    categories.append(tag)

        last_seen = (results[0].get("task") or {}).get("time") if results else None
        return {"malicious": malicious, "categories": categories, "last_seen": last_seen}

    def evaluate(self, data: Dict[str, Any]) -> Verdict:
        verdict = Verdict(categories=set(data.get("categories") or []))
        if data.get("malicious"):
            verdict.points = MALICIOUS_POINTS
            verdict.reasons.append(f"Reported as malicious by {self.label}")
        return verdict
