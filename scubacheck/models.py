from __future__ import annotations

import base64
import json
from dataclasses import dataclass, field, fields, is_dataclass
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional, Set


MISSING = "missing"

# URL record lifecycle
UNCHECKED = "unchecked"
LOCALLY_SCORED = "locally-scored"
ENRICHED = "enriched"
ENRICHMENT_PARTIAL = "enrichment-partial"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class IPInfo:
    country: Optional[str] = None
    country_code: Optional[str] = None
    region: Optional[str] = None
    region_name: Optional[str] = None
    city: Optional[str] = None
    zip: Optional[str] = None
    lat: Optional[float] = None
    lon: Optional[float] = None
    timezone: Optional[str] = None
    isp: Optional[str] = None
    org: Optional[str] = None
    asn: Optional[str] = None
    asname: Optional[str] = None


@dataclass(frozen=True)
class SpfResult:
    status: str = MISSING
    domain: Optional[str] = None
    ip: Optional[str] = None
    ip_info: Optional[IPInfo] = None


@dataclass(frozen=True)
class DkimResult:
    status: str = MISSING
    domain: Optional[str] = None
    selector: Optional[str] = None


@dataclass(frozen=True)
class DmarcResult:
    status: str = MISSING
    policy: Optional[str] = None
    alignment: Optional[str] = None


@dataclass(frozen=True)
class AuthenticationFacts:
    """SPF/DKIM/DMARC verdicts. Every status defaults to "missing"."""
    spf: SpfResult = field(default_factory=SpfResult)
    dkim: DkimResult = field(default_factory=DkimResult)
    dmarc: DmarcResult = field(default_factory=DmarcResult)


@dataclass
class EmailHeaders:
    subject: str = "No Subject"
    from_: str = "Unknown Sender"
    to: str = "Unknown Recipient"
    date: str = "Unknown Date"
    received: str = ""               # raw header block, source of the Received chain
    received_values: List[str] = field(default_factory=list)


@dataclass
class Attachment:
    filename: str
    size: int = 0                    # decoded bytes
    content_type: Optional[str] = None
    content: Optional[bytes] = None


@dataclass(frozen=True)
class ReceivedHop:
    from_: str
    by: str
    protocol: str
    timestamp: datetime
    ip: Optional[str] = None


@dataclass(frozen=True)
class HopLatency:
    from_: str
    to: str
    seconds: float
    level: str                       # high | moderate | normal


@dataclass
class Reputation:
    score: int = 0
    categories: Set[str] = field(default_factory=set)
    source: str = ""
    last_checked: datetime = field(default_factory=_utcnow)


@dataclass
class URLRecord:
    url: str
    domain: str
    path: str
    protocol: str
    suspicious: bool = False
    reasons: List[str] = field(default_factory=list)
    reputation: Optional[Reputation] = None
    state: str = UNCHECKED


@dataclass(frozen=True)
class BrandMatch:
    brand_name: str
    confidence: float
    location: str
    reasons: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class ContentFinding:
    tier: str                        # phrase | shipping | subject | markup | links | script | sender
    label: str
    penalty: int


@dataclass
class ContentAssessment:
    score: int = 100
    findings: List[ContentFinding] = field(default_factory=list)


@dataclass
class AttachmentRisk:
    filename: str
    size_mb: float
    risk_level: str
    base_penalty: int
    size_penalty: int
    reason: str
    size_reason: str
    recommendations: List[str] = field(default_factory=list)

    @property
    def total_penalty(self) -> int:
        return self.base_penalty + self.size_penalty


@dataclass
class AttachmentAssessment:
    score: int = 100
    details: List[AttachmentRisk] = field(default_factory=list)
    combination_penalty: int = 0
    combination_reasons: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class SecurityScore:
    """Four 0-100 integers. Built by scoring.calculate_security_score only."""
    authentication: int
    content: int
    attachments: int
    overall: int


@dataclass
class AnalysisResult:
    headers: EmailHeaders
    auth: AuthenticationFacts
    security_score: SecurityScore
    content_assessment: ContentAssessment
    attachment_assessment: AttachmentAssessment
    body: str = ""
    urls: List[URLRecord] = field(default_factory=list)
    attachments: List[Attachment] = field(default_factory=list)
    received_hops: List[ReceivedHop] = field(default_factory=list)
    hop_latencies: List[HopLatency] = field(default_factory=list)
    brand_matches: List[BrandMatch] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return _to_plain(self)

    def to_json(self, indent: int = 2) -> str:
        return json.dumps(self.to_dict(), indent=indent)


def _to_plain(value: Any) -> Any:
    """Turn dataclasses, sets, datetimes and bytes into JSON-friendly values."""
    if is_dataclass(value) and not isinstance(value, type):
        return {f.name.rstrip("_"): _to_plain(getattr(value, f.name)) for f in fields(value)}
    if isinstance(value, datetime):
        return value.isoformat()
    if isinstance(value, bytes):
        return base64.b64encode(value).decode("ascii")
    if isinstance(value, (set, frozenset)):
        return sorted(_to_plain(v) for v in value)
    if isinstance(value, (list, tuple)):
        return [_to_plain(v) for v in value]
    if isinstance(value, dict):
        return {k: _to_plain(v) for k, v in value.items()}
    return value
