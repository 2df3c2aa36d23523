"""
URL normalization for citation identity.

Two citations that differ only in tracking parameters, fragment or the
case of their scheme/host point at the same content and must share a key.
Domain extraction uses tldextract so multi-part suffixes (.co.uk) are
handled correctly.
"""

import re
from urllib.parse import parse_qsl, urlencode, urlsplit, urlunsplit

import tldextract

from competitive_report.constants import TRACKING_PARAM_PATTERN

# Loose domain finder for free text ("per reuters.com, ...")
DOMAIN_IN_TEXT_PATTERN = re.compile(r"\b(?:[a-z0-9-]+\.)+[a-z]{2,}\b", re.IGNORECASE)
BARE_DOMAIN_PATTERN = re.compile(r"^(?:[a-z0-9-]+\.)+[a-z]{2,}(?:/\S*)?$", re.IGNORECASE)


def normalize_url(url: str | None) -> str:
    """
    Normalize a URL for use in a dedupe key.

    - Drops the #fragment
    - Drops tracking query parameters (utm_*, fbclid, gclid, mc_cid, mc_eid, ref, ref_src)
    - Lowercases scheme and host

    Strings that do not parse as an absolute URL are returned trimmed.

    Examples:
        "HTTPS://Example.com/a?utm_source=x#top" -> "https://example.com/a"
        "https://example.com/a?id=1&gclid=z"     -> "https://example.com/a?id=1"
    """
    if not url:
        return ""
    raw = str(url).strip()
    try:
        parts = urlsplit(raw)
    except ValueError:
        return raw
    if not parts.scheme or not parts.netloc:
        return raw

    query = [
        (key, value)
        for key, value in parse_qsl(parts.query, keep_blank_values=True)
        if not TRACKING_PARAM_PATTERN.search(key)
    ]
    return urlunsplit(
        (
            parts.scheme.lower(),
            parts.netloc.lower(),
            parts.path,
            urlencode(query),
            "",
        )
    )


def coerce_url(value: str | None) -> str:
    """
    Turn a bare domain into an https URL; leave anything else as-is.

    Examples:
        "reuters.com"          -> "https://reuters.com"
        "http://reuters.com/x" -> "http://reuters.com/x"
        "some notes"           -> "some notes"
    """
    if not value:
        return ""
    text = str(value).strip()
    if re.match(r"^[a-z][a-z0-9+.-]*://", text, re.IGNORECASE):
        return text
    if BARE_DOMAIN_PATTERN.match(text):
        return f"https://{text}"
    return text


def domain_of(url: str | None) -> str | None:
    """
    Registered domain of a URL (or bare host).

    Returns:
        e.g. "example.co.uk" for "https://www.news.example.co.uk/x", or None
    """
    if not url:
        return None
    host = re.sub(r"^[a-z][a-z0-9+.-]*://", "", str(url).strip().lower())
    host = host.split("/")[0].split("?")[0].split("#")[0]
    if not host:
        return None

    ext = tldextract.extract(host)
    if ext.domain and ext.suffix:
        return f"{ext.domain}.{ext.suffix}"
    return None


def find_domain_in_text(text: str | None) -> str | None:
    """First thing in free text that looks like a domain name, lowercased."""
    if not text:
        return None
    match = DOMAIN_IN_TEXT_PATTERN.search(str(text))
    return match.group(0).lower() if match else None
