from __future__ import annotations

from scubacheck.http_client import SourceUnavailable
from scubacheck.osint.base import ReputationProvider, Verdict

FLAGGED_POINTS = 50

THREAT_TYPES = ["MALWARE", "SOCIAL_ENGINEERING", "UNWANTED_SOFTWARE", "POTENTIALLY_HARMFUL_APPLICATION"]


class SafeBrowsingProvider(ReputationProvider):
    """Google Safe Browsing v4 threat match for the full URL."""
    name = "safebrowsing"
    label = "Google Safe Browsing"

    def key_for(self, record) -> str:
        return record.url

    def available(self) -> bool:
        return bool(self.config.get("safe_browsing_api_key"))

    def fetch(self, key: str) -> bool:
        api_key = self.config.get("safe_browsing_api_key")
        if not api_key:
            raise SourceUnavailable("no Safe Browsing API key configured")

        payload = {
            "client": {"clientId": "scuba-check", "clientVersion": "1.0.0"},
            "threatInfo": {
                "threatTypes": THREAT_TYPES,
                "platformTypes": ["ANY_PLATFORM"],
                "threatEntryTypes": ["URL"],
                "threatEntries": [{"url": key}],
            },
        }
        data = self.http.post_json(self.config["safe_browsing_url"], payload, params={"key": api_key})
        if not isinstance(data, dict):
            raise SourceUnavailable("unexpected Safe Browsing payload")
        return bool(data.get("matches"))

    def evaluate(self, data: bool) -> Verdict:
        if data:
            return Verdict(
                points=FLAGGED_POINTS,
                reasons=[f"URL is flagged as malicious by {self.label}"],
                categories={f"Flagged by {self.label}"},
            )
        return Verdict()
