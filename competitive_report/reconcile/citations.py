"""
Citation consolidation and the sources table.

Citations arrive from several containers, sometimes as bare strings,
sometimes with the URL in a different field or as a bare domain. They are
coerced into one shape, de-duplicated by (claim text, normalized URL), and
given defaults for any field that is missing. Running consolidation over
its own output returns the same citations.
"""

import logging
from dataclasses import fields
from typing import Any

from competitive_report.constants import (
    CITATION_CONTAINERS,
    CITATION_DEFAULTS,
    DEFAULT_CITATION_TAGS,
    SOURCE_ORIGINS,
    VERIFICATION_STATUSES,
)
from competitive_report.domain.models import Citation, Scenario, SourceRow
from competitive_report.normalization.urls import (
    coerce_url,
    domain_of,
    find_domain_in_text,
    normalize_url,
)
from competitive_report.reconcile.competitors import coerce_score, first_present, is_absent

logger = logging.getLogger(__name__)

CITATION_FIELDS = frozenset(f.name for f in fields(Citation)) - {"extra"}
CLAIM_KEYS = ("claim_text", "claim", "title", "source_title", "text")
URL_KEYS = ("source_url", "url", "link")
PUBLISHER_KEYS = ("publisher", "outlet", "domain", "source_domain")


def collect_citations(fragments: list[dict]) -> list[Any]:
    """
    Gather raw citation entries from every fragment, in arrival order.

    Looks in enhanced_citations, source_citations, scraping_results,
    research_results and data_sources, and treats a fragment that is
    itself a claim (claim_text or source_url) as one citation.
    """
    raw: list[Any] = []
    for fragment in fragments:
        if not isinstance(fragment, dict):
            continue
        for key in CITATION_CONTAINERS:
            entries = fragment.get(key)
            if isinstance(entries, list) and entries:
                logger.debug(f"Found {len(entries)} {key}")
                raw.extend(entries)
        if not is_absent(fragment.get("claim_text")) or not is_absent(fragment.get("source_url")):
            raw.append(fragment)
    return raw


def _source_url(value: Any) -> str:
    """URL field value as a URL; free text falls back to the domain it mentions."""
    url = coerce_url(None if value is None else str(value))
    if not url or "://" in url:
        return url
    domain = find_domain_in_text(url)
    return f"https://{domain.removeprefix('www.')}" if domain else ""


def coerce_citation(raw: Any) -> dict[str, Any] | None:
    """
    Coerce one raw entry into a citation dict.

    Strings become the claim text, with any domain they mention as the
    source domain and URL. Bare domains in URL fields become https URLs
    with their path kept.

    Returns:
        Citation dict, or None if the entry has neither claim nor URL
    """
    if isinstance(raw, str):
        text = raw.strip()
        if not text:
            return None
        citation: dict[str, Any] = {"claim_text": text}
        domain = find_domain_in_text(text)
        if domain:
            citation["source_domain"] = domain.removeprefix("www.")
            citation["source_url"] = f"https://{citation['source_domain']}"
        return citation

    if not isinstance(raw, dict):
        return None

    citation = dict(raw)
    claim = first_present(citation, CLAIM_KEYS, "")
    citation["claim_text"] = str(claim).strip()

    url_value = first_present(citation, URL_KEYS) or citation.get("source_domain")
    citation["source_url"] = _source_url(url_value)
    if is_absent(citation.get("source_domain")) and citation["source_url"]:
        citation["source_domain"] = domain_of(citation["source_url"]) or ""

    if not citation["claim_text"] and not citation["source_url"]:
        return None
    return citation


def citation_key(citation: dict[str, Any]) -> str:
    """Identity key: lowercased claim text + "§" + normalized URL."""
    claim = str(citation.get("claim_text") or "").strip().lower()
    return f"{claim}§{normalize_url(citation.get('source_url'))}"


def _clamp_int(value: Any, low: int, high: int, default: int, name: str) -> int:
    number = coerce_score(value)
    if number is None:
        logger.warning(f"Unparsable {name} {value!r}; using {default}")
        return default
    return int(min(max(round(number), low), high))


def _clamp_float(value: Any, low: float, high: float, default: float, name: str) -> float:
    number = coerce_score(value)
    if number is None:
        logger.warning(f"Unparsable {name} {value!r}; using {default}")
        return default
    return float(min(max(number, low), high))


def _enum(value: Any, allowed: frozenset[str], default: str, name: str) -> str:
    text = str(value).strip().lower()
    if text in allowed:
        return text
    logger.warning(f"Unknown {name} {value!r}; using {default}")
    return default


def apply_defaults(citation: dict[str, Any]) -> dict[str, Any]:
    """
    Fill absent fields with defaults and bring present ones into range.

    Present values are never replaced by defaults; out-of-range numbers
    are clamped and unknown enum values fall back to the default.
    """
    filled = dict(citation)
    for key, default in CITATION_DEFAULTS.items():
        if is_absent(filled.get(key)):
            filled[key] = default

    if is_absent(filled.get("supporting_evidence")):
        evidence = first_present(filled, ("notes", "description"))
        if evidence is not None:
            filled["supporting_evidence"] = evidence
    if is_absent(filled.get("publication_date")):
        filled["publication_date"] = str(first_present(filled, ("published", "date"), ""))
    if is_absent(filled.get("source_title")):
        filled["source_title"] = str(first_present(filled, ("title",), ""))
    if is_absent(filled.get("tags")):
        filled["tags"] = list(DEFAULT_CITATION_TAGS)
    filled.setdefault("source_domain", "")

    filled["authority_score"] = _clamp_int(
        filled["authority_score"], 1, 10, CITATION_DEFAULTS["authority_score"], "authority_score"
    )
    filled["influence_weight"] = _clamp_float(
        filled["influence_weight"],
        0.0,
        1.0,
        CITATION_DEFAULTS["influence_weight"],
        "influence_weight",
    )
    filled["verification_status"] = _enum(
        filled["verification_status"],
        VERIFICATION_STATUSES,
        CITATION_DEFAULTS["verification_status"],
        "verification_status",
    )
    filled["source_origin"] = _enum(
        filled["source_origin"], SOURCE_ORIGINS, CITATION_DEFAULTS["source_origin"], "source_origin"
    )
    return filled


def to_citation(citation: dict[str, Any]) -> Citation:
    """Split a filled citation dict into the dataclass fields and extras."""
    known = {}
    for key in CITATION_FIELDS:
        if key not in citation:
            continue
        value = citation[key]
        if key == "tags":
            value = [str(t) for t in value] if isinstance(value, list) else [str(value)]
        elif key not in ("authority_score", "influence_weight"):
            value = "" if value is None else str(value)
        known[key] = value
    extra = {k: v for k, v in citation.items() if k not in CITATION_FIELDS}
    return Citation(**known, extra=extra)


def consolidate_citations(raw_entries: list[Any]) -> list[Citation]:
    """
    Coerce, de-duplicate and default a list of raw citation entries.

    The first entry seen for a key keeps its values; later duplicates only
    fill fields the first one lacked. Order follows first appearance.

    Args:
        raw_entries: Strings, dicts, or Citation.to_dict() output

    Returns:
        Unique Citation objects
    """
    by_key: dict[str, dict[str, Any]] = {}
    for raw in raw_entries:
        citation = coerce_citation(raw)
        if citation is None:
            continue
        key = citation_key(citation)
        existing = by_key.get(key)
        if existing is None:
            by_key[key] = citation
            continue
        for field_name, value in citation.items():
            if is_absent(existing.get(field_name)) and not is_absent(value):
                existing[field_name] = value

    duplicates = len(raw_entries) - len(by_key)
    if duplicates > 0:
        logger.info(f"Consolidated {len(raw_entries)} citation entries into {len(by_key)}")
    return [to_citation(apply_defaults(c)) for c in by_key.values()]


def _authority_or_none(value: Any) -> int | None:
    number = coerce_score(value)
    return None if number is None else int(round(number))


def _row_from_source(source: dict[str, Any], default_origin: str) -> SourceRow:
    return SourceRow(
        title=str(first_present(source, ("title", "name", "source", "claim_text"), "")),
        url=str(first_present(source, ("url", "link", "source_url"), "")),
        publisher=str(first_present(source, PUBLISHER_KEYS, "")),
        published=str(first_present(source, ("published", "date", "publication_date"), "")),
        reliability=str(first_present(source, ("reliability", "confidence_level"), "")),
        authority=_authority_or_none(first_present(source, ("authority", "authority_score"))),
        author=str(first_present(source, ("author", "byline"), "")),
        notes=str(first_present(source, ("notes", "note", "supporting_evidence"), "")),
        source_origin=str(source.get("source_origin") or default_origin),
        verification_status=str(source.get("verification_status") or "unverified"),
    )


def _row_from_citation(citation: Citation) -> SourceRow:
    extra = citation.extra
    return SourceRow(
        title=citation.claim_text or citation.source_title or "No claim text",
        url=citation.source_url,
        publisher=citation.source_domain or str(extra.get("publisher") or ""),
        published=citation.publication_date,
        reliability=citation.confidence_level,
        authority=citation.authority_score,
        author=citation.author,
        notes=str(extra.get("supporting_evidence") or ""),
        source_origin=citation.source_origin,
        verification_status=citation.verification_status,
    )


def build_sources_table(
    citations: list[Citation],
    scenarios: list[Scenario],
    extra_rows: list[Any] | None = None,
) -> list[SourceRow]:
    """
    Build the report's sources table.

    Rows come from consolidated citations, then from each scenario's
    sources (plain strings are scenario references), then from any
    pre-built table rows. Rows are unique on (title, url, publisher).
    """
    rows = [_row_from_citation(c) for c in citations]
    for scenario in scenarios:
        for source in scenario.sources:
            if isinstance(source, str) and source.strip():
                rows.append(SourceRow(title=source.strip(), source_origin="scenario_reference"))
            elif isinstance(source, dict):
                rows.append(_row_from_source(source, "scenario_reference"))
    for source in extra_rows or []:
        if isinstance(source, dict):
            rows.append(_row_from_source(source, "unknown"))

    unique: dict[tuple[str, str, str], SourceRow] = {}
    for row in rows:
        if not row.title and not row.url:
            continue
        unique.setdefault((row.title, row.url, row.publisher), row)
    return list(unique.values())
