"""
Company name normalization.

Upstream steps spell the same competitor many ways ("The Venetian Resort",
"Venetian", "venetian resort & casino"). These helpers give the keys used
to match them up:

- base_name(): case, punctuation and leading "the" removed
- grouping_key(): base_name() with trailing corporate/venue suffixes dropped
- build_canonicalizer(): maps names onto a whitelist of canonical spellings
"""

import logging
import re
import unicodedata
from collections.abc import Callable, Iterable

from competitive_report.constants import COMPANY_SUFFIXES, PLACEHOLDER_COMPANY_NAMES

logger = logging.getLogger(__name__)

_SUFFIX_PATTERN = re.compile(r"(?:\s+(?:" + "|".join(COMPANY_SUFFIXES) + r"))+$")


def base_name(name: str | None) -> str:
    """
    Normalize a company name to a comparable base form.

    Examples:
        "The Venetian Resort" -> "venetian resort"
        "Wynn & Encore"       -> "wynn and encore"
        "Caesars, Inc."       -> "caesars inc"
    """
    if name is None:
        return ""
    text = unicodedata.normalize("NFKC", str(name)).lower().strip()
    text = re.sub(r"^the\s+", "", text)
    text = text.replace("&", "and")
    text = re.sub(r"[^a-z0-9\s]", "", text)
    return re.sub(r"\s+", " ", text).strip()


def grouping_key(name: str | None) -> str:
    """
    Key used to aggregate a competitor across scenarios.

    Trailing suffixes such as "Resort", "Hotels", "Inc" are dropped, but a
    name that is nothing but a suffix keeps its base form.

    Examples:
        "Wynn Resorts, Ltd."      -> "wynn"
        "MGM Resorts"             -> "mgm"
        "Company"                 -> "company"
    """
    base = base_name(name)
    stripped = _SUFFIX_PATTERN.sub("", base).strip()
    return stripped or base


def is_placeholder_company(name: object) -> bool:
    """True for empty or generic names like "Report" or "Unknown Company"."""
    if not isinstance(name, str):
        return True
    return name.strip().lower() in PLACEHOLDER_COMPANY_NAMES


def build_canonicalizer(whitelist: Iterable[str] | None) -> Callable[[str], str]:
    """
    Build a function that maps a company name onto its whitelist spelling.

    Matching is tried in order: exact (case-insensitive), base_name() equality,
    then base-name containment in either direction. Names with no match
    are returned trimmed but otherwise unchanged.

    Args:
        whitelist: Canonical company names; duplicates and blanks are ignored

    Returns:
        canonicalize(name) -> str

    Example:
        >>> canon = build_canonicalizer(["The Venetian Resort"])
        >>> canon("venetian resort")
        'The Venetian Resort'
    """
    exact: dict[str, str] = {}
    by_base: dict[str, str] = {}
    for entry in dict.fromkeys(w.strip() for w in (whitelist or []) if w and str(w).strip()):
        exact[entry.lower()] = entry
        key = base_name(entry)
        if key and key not in by_base:
            by_base[key] = entry

    def canonicalize(name: str) -> str:
        raw = "" if name is None else str(name).strip()
        if not raw or not exact:
            return raw
        if raw.lower() in exact:
            return exact[raw.lower()]
        key = base_name(raw)
        if key in by_base:
            return by_base[key]
        if key:
            for candidate_key, canonical in by_base.items():
                if candidate_key in key or key in candidate_key:
                    logger.debug(f"Matched '{raw}' to '{canonical}' by containment")
                    return canonical
        return raw

    return canonicalize
