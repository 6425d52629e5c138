# -*- coding: utf-8 -*-
"""
Brand impersonation hints from <img> tags in HTML bodies.
Informational only: nothing here feeds the security score.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import List, Tuple

from bs4 import BeautifulSoup

from scubacheck.models import BrandMatch

logger = logging.getLogger(__name__)

REPORT_THRESHOLD = 0.5


@dataclass(frozen=True)
class Brand:
    name: str
    patterns: Tuple[str, ...]
    logo_patterns: Tuple[str, ...]


BRANDS: Tuple[Brand, ...] = (
    Brand("UPS", ("ups", "united parcel service", "ups.com"),
          ("ups-logo", "ups_logo", "ups-shield", "ups_shield", "ups-brand")),
    Brand("PayPal", ("paypal", "pay-pal"), ("paypal-logo", "pp-logo")),
    Brand("Microsoft", ("microsoft", "ms-logo", "microsoft365", "office365"), ("ms-logo", "microsoft-logo")),
    Brand("Google", ("google", "gmail"), ("google-logo", "gmail-logo")),
    Brand("Apple", ("apple", "icloud"), ("apple-logo", "icloud-logo")),
    Brand("Amazon", ("amazon", "aws"), ("amazon-logo", "aws-logo")),
    Brand("Facebook", ("facebook", "fb"), ("fb-logo", "facebook-logo")),
    Brand("LinkedIn", ("linkedin", "linked-in"), ("linkedin-logo", "li-logo")),
    Brand("Twitter", ("twitter", "x.com"), ("twitter-logo", "x-logo")),
    Brand("Bank of America", ("bankofamerica", "bofa", "bank of america"), ("bofa-logo", "bankofamerica-logo")),
    Brand("Chase", ("chase", "jpmorgan", "jp morgan"), ("chase-logo", "jpmc-logo")),
)


def _int_attr(img, name: str) -> int:
    try:
        return int(str(img.get(name) or "0").strip().rstrip("px"))
    except ValueError:
        return 0


def _attr_text(img, name: str) -> str:
    value = img.get(name) or ""
    if isinstance(value, list):  # bs4 returns class as a list
        value = " ".join(value)
    return value.lower()


def _score_brand(brand: Brand, attrs: List[str], src: str, width: int, height: int) -> Tuple[float, List[str]]:
    confidence = 0.0
    reasons = []
    is_ups = brand.name == "UPS"
    all_attrs = attrs + [src]

    name_hits = [p for p in brand.patterns if any(p in a or (is_ups and "shield" in a) for a in all_attrs)]
    if name_hits:
        confidence += 0.4
        reasons.extend(f'Brand name "{p}" found in image attributes' for p in name_hits)

    logo_hits = [p for p in brand.logo_patterns if any(p in a or (is_ups and "brown" in a) for a in all_attrs)]
    if logo_hits:
        confidence += 0.3
        reasons.extend(f'Logo pattern "{p}" found in image attributes' for p in logo_hits)

    if width > 0 and height > 0 and 0.5 <= width / height <= 2.0:
        confidence += 0.1
        reasons.append("Image dimensions match typical logo proportions")

    if is_ups:
        if any("brown" in a for a in attrs):
            confidence += 0.1
            reasons.append("UPS brand color detected")
        if any("shield" in a for a in attrs):
            confidence += 0.1
            reasons.append("UPS shield shape detected")

    return confidence, reasons


def detect_brand_impersonation(html: str) -> List[BrandMatch]:
    results: List[BrandMatch] = []
    if not html or "<img" not in html.lower():
        return results

    try:
        soup = BeautifulSoup(html, "html.parser")
        for img in soup.find_all("img"):
            src = _attr_text(img, "src")
            if not src or src.startswith("data:") or not src.startswith(("http://", "https://")):
                continue

            attrs = [_attr_text(img, n) for n in ("alt", "class", "id", "title", "aria-label")]
            width, height = _int_attr(img, "width"), _int_attr(img, "height")

            for brand in BRANDS:
                confidence, reasons = _score_brand(brand, attrs, src, width, height)
                if confidence > REPORT_THRESHOLD:
                    results.append(BrandMatch(
                        brand_name=brand.name,
                        confidence=round(min(confidence, 1.0), 2),
                        location=img.get("src"),
                        reasons=reasons,
                    ))
    except Exception:
        logger.exception("Error detecting brand impersonation")

    return results
