# -*- coding: utf-8 -*-
"""
Tolerant raw-message parser.
- Split header block / body on the first blank line
- Pull the singular header fields and the Received values
- Extract attachments by MIME boundary, or by a single-pass scan when no boundary is declared

Nothing here raises on malformed input; every extractor falls back to a default.
"""
from __future__ import annotations

import base64
import binascii
import logging
import re
from pathlib import Path
from typing import List, Optional, Tuple

from scubacheck.models import Attachment, EmailHeaders

logger = logging.getLogger(__name__)

SUPPORTED_EXTENSIONS = (".eml", ".msg", ".mbox", ".mbx", ".mbs", ".mht", ".mhtml")

BLANK_LINE_RE = re.compile(r"\r?\n\r?\n")
BOUNDARY_RE = re.compile(r'boundary="?([^";\r\n]+)"?', re.IGNORECASE)
RECEIVED_RE = re.compile(r"^Received:[ \t]*(.*(?:\r?\n[ \t]+.*)*)", re.IGNORECASE | re.MULTILINE)

HEADER_FIELDS = {
    "subject": "Subject",
    "from_": "From",
    "to": "To",
    "date": "Date",
}

# Attachment part patterns
DISPOSITION_RE = re.compile(r"Content-Disposition:\s*attachment", re.IGNORECASE)
FILENAME_RE = re.compile(r'filename="([^"]+)"')
CONTENT_TYPE_RE = re.compile(r"Content-Type:\s*([^\r\n;]+)", re.IGNORECASE)
PAYLOAD_RE = re.compile(r"\r?\n\r?\n([A-Za-z0-9+/=\s]+)\Z")
FALLBACK_ATTACHMENT_RE = re.compile(
    r'Content-Type: (.+?)\r?\nContent-Disposition:.*?filename="([^"]+)"',
    re.DOTALL,
)


def _decode_bytes(b: bytes, charset: str = None) -> str:
    """Helper to decode bytes with fallback strategies."""
    if not b:
        return ""

    encodings = []
    if charset:
        encodings.append(charset)
    encodings.extend(["utf-8", "latin-1"])

    for enc in encodings:
        try:
            return b.decode(enc)
        except (LookupError, UnicodeDecodeError):
            continue

    return b.decode("utf-8", errors="replace")


def read_message(path: str | Path) -> str:
    """Read a message file as text. Raises before any analysis happens."""
    p = Path(path)
    if not p.exists():
        raise FileNotFoundError(f"File not found: {p}")
    if p.suffix.lower() not in SUPPORTED_EXTENSIONS:
        raise ValueError(
            f"Unsupported file type {p.suffix!r}. Please use one of: {', '.join(SUPPORTED_EXTENSIONS)}"
        )
    return _decode_bytes(p.read_bytes())


def split_message(raw: str) -> Tuple[str, str]:
    """Header block and body. No blank line means the whole input is headers."""
    parts = BLANK_LINE_RE.split(raw or "", maxsplit=1)
    if len(parts) < 2:
        return raw or "", ""
    return parts[0], parts[1]


def _unfold(value: str) -> str:
    return re.sub(r"\r?\n[ \t]+", " ", value).strip()


def _header_value(header_block: str, name: str) -> Optional[str]:
    match = re.search(rf"^{re.escape(name)}:[ \t]*([^\r\n]+)", header_block, re.IGNORECASE | re.MULTILINE)
    if not match:
        return None
    value = match.group(1).strip()
    return value or None


def extract_received_values(header_block: str) -> List[str]:
    """Every Received: value, unfolded, in header order (topmost first)."""
    return [_unfold(m.group(1)) for m in RECEIVED_RE.finditer(header_block or "")]


def extract_header_fields(header_block: str) -> EmailHeaders:
    headers = EmailHeaders(received=header_block or "")
    for attr, name in HEADER_FIELDS.items():
        value = _header_value(header_block or "", name)
        if value is not None:
            setattr(headers, attr, value)
    headers.received_values = extract_received_values(header_block)
    return headers


def _parse_attachment_part(part: str) -> Attachment:
    att = Attachment(filename="")

    filename_match = FILENAME_RE.search(part)
    if filename_match:
        att.filename = filename_match.group(1).strip()

    ctype_match = CONTENT_TYPE_RE.search(part)
    if ctype_match:
        att.content_type = ctype_match.group(1).strip()

    payload_match = PAYLOAD_RE.search(part)
    if payload_match:
        encoded = re.sub(r"\s", "", payload_match.group(1))
        att.size = len(encoded) * 3 // 4
        try:
            att.content = base64.b64decode(encoded, validate=False)
        except (binascii.Error, ValueError):
            logger.debug("Attachment %r payload is not valid base64", att.filename)
            att.content = None

    return att


def _extract_by_boundary(body: str, boundary: str) -> List[Attachment]:
    attachments = []
    for part in body.split("--" + boundary):
        if not DISPOSITION_RE.search(part):
            continue
        att = _parse_attachment_part(part)
        if att.filename:
            attachments.append(att)
    return attachments


def _extract_by_scan(raw: str) -> List[Attachment]:
    attachments = []
    for match in FALLBACK_ATTACHMENT_RE.finditer(raw):
        # the lazy type capture may run over intervening lines; keep the first line's type
        ctype = match.group(1).splitlines()[0].split(";")[0].strip()
        attachments.append(Attachment(
            filename=match.group(2).strip(),
            size=0,
            content_type=ctype or None,
        ))
    return attachments


def extract_attachments(raw: str) -> List[Attachment]:
    header_block, body = split_message(raw)
    boundary_match = BOUNDARY_RE.search(header_block)
    if boundary_match:
        return _extract_by_boundary(body, boundary_match.group(1).strip())

    logger.debug("No MIME boundary in header block, scanning for attachment headers")
    return _extract_by_scan(raw or "")
