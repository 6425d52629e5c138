from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from dateutil import parser as date_parser

from scubacheck.http_client import SourceUnavailable
from scubacheck.osint.base import ReputationProvider, Verdict
from scubacheck.utils import registered_domain

RECENT_DOMAIN_DAYS = 30
RECENT_DOMAIN_POINTS = 25


def _parse_creation_date(value: Any) -> Optional[datetime]:
    if isinstance(value, list):
        dates = [d for d in (_parse_creation_date(v) for v in value) if d]
        return min(dates) if dates else None
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(value, tz=timezone.utc)
    if not isinstance(value, str) or not value.strip():
        return None

    try:
        parsed = date_parser.parse(value.strip())
    except (ValueError, OverflowError):
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


class WhoisAgeProvider(ReputationProvider):
    """Domain age in days from a WHOIS-style JSON service."""
    name = "whois"
    label = "WHOIS"

    def key_for(self, record) -> str:
        return registered_domain(record.domain)

    def fetch(self, key: str) -> int:
        data = self.http.get_json(self.config["whois_url"], params={"domain": key})
        if not isinstance(data, dict):
            raise SourceUnavailable(f"unexpected WHOIS payload for {key}")

        created = _parse_creation_date(
            data.get("creation_date") or data.get("created") or data.get("createdDate")
        )
        if created is None:
            raise SourceUnavailable(f"no creation date for {key}")
        return (datetime.now(timezone.utc) - created).days

    def evaluate(self, data: int) -> Verdict:
        if data < RECENT_DOMAIN_DAYS:
            return Verdict(
                points=RECENT_DOMAIN_POINTS,
                reasons=[f"Domain registered less than {RECENT_DOMAIN_DAYS} days ago"],
                categories={"Recently Registered Domain"},
            )
        return Verdict()
