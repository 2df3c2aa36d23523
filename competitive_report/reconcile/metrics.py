"""
Evidence and quality metrics.

Per-scenario evidence quality drives the confidence badge; report-level
quality metrics and the top-publisher list summarise the citation set.
"""

from collections import Counter
from typing import Any

from competitive_report.constants import (
    REPORT_HIGH_AUTHORITY,
    SCENARIO_HIGH_AUTHORITY,
    TOP_PUBLISHERS_LIMIT,
)
from competitive_report.domain.models import Citation, SourceRow
from competitive_report.normalization.urls import domain_of, find_domain_in_text


def _authority(value: Any) -> float:
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def _source_domain(source: Any) -> str | None:
    if isinstance(source, str):
        return find_domain_in_text(source)
    if isinstance(source, dict):
        domain = source.get("source_domain") or source.get("domain")
        if isinstance(domain, str) and domain.strip():
            return domain.strip().lower()
        return domain_of(source.get("source_url") or source.get("url"))
    return None


def scenario_evidence(sources: list[Any]) -> tuple[dict[str, int], str]:
    """
    Evidence quality for one scenario's sources.

    Returns:
        (evidence_quality dict, confidence_level) where confidence is
        "high" with two or more verified or high-authority sources,
        "medium" with any source at all, otherwise "pending"
    """
    dict_sources = [s for s in sources if isinstance(s, dict)]
    domains = {d for d in (_source_domain(s) for s in sources) if d}
    evidence = {
        "total_citations": len(sources),
        "verified_sources": sum(
            1 for s in dict_sources if s.get("verification_status") == "verified"
        ),
        "high_authority_sources": sum(
            1
            for s in dict_sources
            if _authority(s.get("authority_score", s.get("authority"))) >= SCENARIO_HIGH_AUTHORITY
        ),
        "domains_represented": len(domains),
    }

    if evidence["verified_sources"] >= 2 or evidence["high_authority_sources"] >= 2:
        confidence = "high"
    elif evidence["total_citations"] >= 1 or evidence["domains_represented"] >= 1:
        confidence = "medium"
    else:
        confidence = "pending"
    return evidence, confidence


def quality_metrics(citations: list[Citation]) -> dict[str, Any]:
    """
    Report-level citation quality.

    Example:
        {"total_citations": 4, "high_authority_citations": 1,
         "verified_citations": 2, "real_time_sources": 1,
         "citation_authority_avg": 6.25, "verification_rate": 50.0}
    """
    total = len(citations)
    verified = sum(1 for c in citations if c.verification_status == "verified")
    return {
        "total_citations": total,
        "high_authority_citations": sum(
            1 for c in citations if c.authority_score >= REPORT_HIGH_AUTHORITY
        ),
        "verified_citations": verified,
        "real_time_sources": sum(1 for c in citations if c.source_origin == "real_time_search"),
        "citation_authority_avg": (
            round(sum(c.authority_score for c in citations) / total, 2) if total else 0.0
        ),
        "verification_rate": round(verified / total * 100, 1) if total else 0.0,
    }


def evidence_summary(
    sources_table: list[SourceRow],
) -> tuple[dict[str, int], list[dict[str, Any]]]:
    """
    Evidence summary and top publishers over the sources table.

    Returns:
        (summary, top_publishers) where top_publishers lists up to five
        {"domain", "citation_count"} entries, most cited first
    """
    domain_counts: Counter[str] = Counter()
    for row in sources_table:
        domain = domain_of(row.publisher) or domain_of(row.url)
        if domain:
            domain_counts[domain] += 1

    summary = {
        "total_citations": len(sources_table),
        "verified_citations": sum(1 for r in sources_table if r.verification_status == "verified"),
        "high_authority_citations": sum(
            1 for r in sources_table if (r.authority or 0) >= SCENARIO_HIGH_AUTHORITY
        ),
        "unique_domains": len(domain_counts),
    }
    top = [
        {"domain": domain, "citation_count": count}
        for domain, count in domain_counts.most_common(TOP_PUBLISHERS_LIMIT)
    ]
    return summary, top
