# -*- coding: utf-8 -*-
"""
Heuristic scoring.

- Content: phishing / shipping-scam phrase tiers, subject-line tier, flat penalties
- Attachments: extension risk tiers, size penalties, combination penalties
- Security score: weighted combination of authentication, content and attachments

All scores start at 100, subtract penalties and are clamped to [0, 100].
"""
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List, Sequence, Tuple

from scubacheck.models import (
    Attachment,
    AttachmentAssessment,
    AttachmentRisk,
    AuthenticationFacts,
    ContentAssessment,
    ContentFinding,
    SecurityScore,
)
from scubacheck.utils import clamp, round_half_up, sender_domain


@dataclass(frozen=True)
class PatternRule:
    pattern: re.Pattern
    penalty: int
    label: str


def _rule(pattern: str, penalty: int, label: str) -> PatternRule:
    return PatternRule(re.compile(pattern, re.IGNORECASE), penalty, label)


# =========================================================
# Content
# =========================================================

PHISHING_PHRASES: Tuple[PatternRule, ...] = (
    _rule(r"urgent|immediate action|account suspended", 15, "Urgency language"),
    _rule(r"verify.*(account|identity)", 15, "Account/identity verification request"),
    _rule(r"click.*link|download.*attachment", 15, "Click/download prompt"),
    _rule(r"password|credit card|ssn|social security", 15, "Credential or financial data request"),
    _rule(r"lottery|winner|prize|inheritance", 15, "Lottery/prize lure"),
    _rule(r"bitcoin|cryptocurrency|wire transfer", 15, "Cryptocurrency/wire transfer request"),
    _rule(r"invoice|payment|statement|document", 15, "Invoice/payment bait"),
    _rule(r"attachment.*enclosed|please.*review", 15, "Review-the-attachment prompt"),
)

SHIPPING_PHRASES: Tuple[PatternRule, ...] = (
    _rule(r"shipping.*update|delivery.*status|package.*notification", 25, "Common shipping scam phrases"),
    _rule(r"track.*package|track.*shipment|delivery.*tracking", 20, "Package tracking lure"),
    _rule(r"package.*delayed|delivery.*failed|shipping.*problem", 30, "Delivery problem scam"),
    _rule(r"customs.*fee|import.*duty|shipping.*fee", 35, "Customs/fee scam"),
    _rule(r"ups|fedex|dhl|usps", 15, "Courier service impersonation"),
)

SUBJECT_PHRASES: Tuple[PatternRule, ...] = (
    _rule(r"urgent|immediate|asap|action.*required", 30, "Urgency in subject line"),
    _rule(r"account.*suspend|account.*limit|security.*alert", 35, "Account threat in subject"),
    _rule(r"\$|€|£|money|payment|refund|tax", 25, "Financial terms in subject"),
)

MARKUP_RE = re.compile(r"<script|<html|<img|href=", re.IGNORECASE)
BODY_URL_RE = re.compile(r"https?://[^\s]+")
NON_LATIN_RE = re.compile(r"[\u0400-\u04FF\u0600-\u06FF\u0900-\u097F]")

MARKUP_PENALTY = 20
LINK_COUNT_LIMIT = 3
LINK_COUNT_PENALTY = 15
NON_LATIN_PENALTY = 20
FREE_MAIL_DOMAINS = frozenset({"gmail.com"})
FREE_MAIL_PENALTY = 25


def _matching(rules: Iterable[PatternRule], text: str, tier: str) -> List[ContentFinding]:
    return [ContentFinding(tier, r.label, r.penalty) for r in rules if r.pattern.search(text)]


def assess_content(body: str, sender: str = "", subject: str = "") -> ContentAssessment:
    body = body or ""
    findings = []
    findings += _matching(PHISHING_PHRASES, body, "phrase")
    findings += _matching(SHIPPING_PHRASES, body, "shipping")
    findings += _matching(SUBJECT_PHRASES, subject or "", "subject")

    if MARKUP_RE.search(body):
        findings.append(ContentFinding("markup", "HTML/script markup in body", MARKUP_PENALTY))

    links = BODY_URL_RE.findall(body)
    if len(links) > LINK_COUNT_LIMIT:
        findings.append(ContentFinding("links", f"Many links in body ({len(links)})", LINK_COUNT_PENALTY))

    if NON_LATIN_RE.search(body):
        findings.append(ContentFinding("script", "Cyrillic/Arabic/Devanagari characters", NON_LATIN_PENALTY))

    domain = sender_domain(sender)
    if domain in FREE_MAIL_DOMAINS:
        findings.append(ContentFinding("sender", f"Sent from personal webmail ({domain})", FREE_MAIL_PENALTY))

    score = clamp(100 - sum(f.penalty for f in findings))
    return ContentAssessment(score=round_half_up(score), findings=findings)


def calculate_content_score(body: str, sender: str = "", subject: str = "") -> int:
    return assess_content(body, sender, subject).score


# =========================================================
# Attachments
# =========================================================

EXECUTABLE_RE = re.compile(r"^(exe|bat|cmd|ps1|vbs|js|wsf|msi|dll|sh|bash|jar)$")
MACRO_RE = re.compile(r"^(docm|xlsm|pptm)$")


@dataclass(frozen=True)
class RiskTier:
    pattern: re.Pattern
    level: str
    penalty: int
    reason: str
    recommendations: Tuple[str, ...]


RISK_TIERS: Tuple[RiskTier, ...] = (
    RiskTier(
        EXECUTABLE_RE, "Critical", 100,
        "Executable files can contain malware and pose an extreme security risk",
        ("Never open executable files from unknown senders",
         "Use antivirus software to scan attachments",
         "Verify the sender through alternative channels"),
    ),
    RiskTier(
        MACRO_RE, "High", 40,
        "Macro-enabled Office documents are commonly used to deliver malware",
        ("Disable macros by default",
         "Only enable macros for trusted sources",
         "Use protected view when opening"),
    ),
    RiskTier(
        re.compile(r"^pdf$"), "Medium", 30,
        "PDFs can contain malicious JavaScript or exploit vulnerabilities",
        ("Use a secure PDF viewer",
         "Disable JavaScript in PDF reader",
         "Keep PDF software updated"),
    ),
    RiskTier(
        re.compile(r"^(doc|xls|ppt|zip|rar|7z)$"), "Medium", 25,
        "Office documents and archives can contain hidden threats",
        ("Use protected view for Office documents",
         "Scan archives before extracting",
         "Be cautious with password-protected archives"),
    ),
    RiskTier(
        re.compile(r"^(jpg|jpeg|png|gif)$"), "Low", 5,
        "Image files generally pose lower risk but can still contain malicious code",
        ("Keep image viewers updated",
         "Use trusted image viewing software",
         "Be cautious of unusual image sizes"),
    ),
    RiskTier(
        re.compile(r"^(txt|csv|md)$"), "Low", 5,
        "Text files are generally safe but verify content before opening",
        ("Use a simple text editor",
         "Check for unusual encodings",
         "Be cautious of very large text files"),
    ),
)

UNKNOWN_TIER = RiskTier(
    re.compile(r".*"), "Unknown", 15,
    "Unknown file type, exercise caution",
    ("Verify file type before opening",
     "Use antivirus software to scan",
     "Contact sender to verify purpose"),
)

MB = 1024 * 1024
PER_EXTRA_ATTACHMENT_PENALTY = 10
PDF_EXECUTABLE_PENALTY = 25
PDF_MACRO_PENALTY = 20
EXECUTABLE_MACRO_PENALTY = 30


def file_extension(filename: str) -> str:
    return (filename or "").rsplit(".", 1)[-1].lower()


def classify_extension(ext: str) -> RiskTier:
    for tier in RISK_TIERS:
        if tier.pattern.match(ext):
            return tier
    return UNKNOWN_TIER


def _size_penalty(size_mb: float) -> Tuple[int, str]:
    if size_mb > 10:
        return 20, "Large file size (>10MB) increases risk of hidden malicious content"
    if size_mb > 5:
        return 10, "Moderate file size (>5MB) warrants caution"
    return 0, "File size within normal range"


def assess_attachments(attachments: Sequence[Attachment] = ()) -> AttachmentAssessment:
    if not attachments:
        return AttachmentAssessment(score=100)

    details = []
    extensions = set()
    for att in attachments:
        ext = file_extension(att.filename)
        extensions.add(ext)
        tier = classify_extension(ext)
        size_mb = (att.size or 0) / MB
        size_penalty, size_reason = _size_penalty(size_mb)
        details.append(AttachmentRisk(
            filename=att.filename,
            size_mb=round(size_mb, 2),
            risk_level=tier.level,
            base_penalty=tier.penalty,
            size_penalty=size_penalty,
            reason=tier.reason,
            size_reason=size_reason,
            recommendations=list(tier.recommendations),
        ))

    has_pdf = "pdf" in extensions
    has_executable = any(EXECUTABLE_RE.match(e) for e in extensions)
    has_macro = any(MACRO_RE.match(e) for e in extensions)

    combination_penalty = 0
    reasons = []
    if len(attachments) > 1:
        penalty = PER_EXTRA_ATTACHMENT_PENALTY * (len(attachments) - 1)
        combination_penalty += penalty
        reasons.append(f"Multiple attachments ({len(attachments)}) increase overall risk: -{penalty}%")
    if has_pdf and has_executable:
        combination_penalty += PDF_EXECUTABLE_PENALTY
        reasons.append(f"PDF combined with executable files suggests potential malware delivery: -{PDF_EXECUTABLE_PENALTY}%")
    if has_pdf and has_macro:
        combination_penalty += PDF_MACRO_PENALTY
        reasons.append(f"PDF combined with macro-enabled documents indicates possible multi-stage attack: -{PDF_MACRO_PENALTY}%")
    if has_executable and has_macro:
        combination_penalty += EXECUTABLE_MACRO_PENALTY
        reasons.append(f"Executable files with macro-enabled documents suggest sophisticated attack: -{EXECUTABLE_MACRO_PENALTY}%")

    score = 100 - sum(d.total_penalty for d in details) - combination_penalty
    return AttachmentAssessment(
        score=round_half_up(clamp(score)),
        details=details,
        combination_penalty=combination_penalty,
        combination_reasons=reasons,
    )


def calculate_attachment_score(attachments: Sequence[Attachment] = ()) -> int:
    return assess_attachments(attachments).score


# =========================================================
# Security score
# =========================================================

SPF_SHARE = 33.34
DKIM_SHARE = 33.33
DMARC_SHARE = 33.33

AUTH_WEIGHT = 0.3
CONTENT_WEIGHT = 0.3
ATTACHMENT_WEIGHT = 0.4


def authentication_points(auth: AuthenticationFacts) -> float:
    points = 0.0
    if auth.dkim.status in ("pass", "present"):
        points += DKIM_SHARE
    if auth.dmarc.status == "pass":
        points += DMARC_SHARE
    if auth.spf.status == "pass":
        points += SPF_SHARE
    return points


def calculate_security_score(auth: AuthenticationFacts, content: float, attachments: float) -> SecurityScore:
    """Overall weighs the unrounded authentication points, attachments the heaviest."""
    auth_points = clamp(authentication_points(auth))
    content = clamp(content)
    attachments = clamp(attachments)
    overall = auth_points * AUTH_WEIGHT + content * CONTENT_WEIGHT + attachments * ATTACHMENT_WEIGHT
    return SecurityScore(
        authentication=round_half_up(auth_points),
        content=round_half_up(content),
        attachments=round_half_up(attachments),
        overall=round_half_up(clamp(overall)),
    )
