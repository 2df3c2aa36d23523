"""
Competitor row normalization.

Upstream prompts name the same fields differently (score / rating / value,
rationale / reasoning / explanation / notes, rank / position) and sometimes
skip the ranked list entirely, leaving only per-company analysis_details.
This module turns all of those into RankedCompetitor rows and enforces
unique names and contiguous ranks within a scenario.
"""

import logging
import math
from collections.abc import Callable, Iterable
from dataclasses import replace
from typing import Any

from competitive_report.domain.models import RankedCompetitor
from competitive_report.normalization.company_names import base_name

logger = logging.getLogger(__name__)

COMPANY_KEYS = ("company", "name")
SCORE_KEYS = ("score", "rating", "value")
RATIONALE_KEYS = ("rationale", "reasoning", "explanation", "notes")
RANK_KEYS = ("rank", "position")
METRICS_KEYS = ("detailed_metrics", "metrics")


def is_absent(value: Any) -> bool:
    """None, blank strings and empty containers count as missing."""
    if value is None:
        return True
    if isinstance(value, str):
        return not value.strip()
    if isinstance(value, (list, tuple, dict, set)):
        return len(value) == 0
    return False


def first_present(data: dict, keys: Iterable[str], default: Any = None) -> Any:
    """Value of the first key in keys that is present and non-empty."""
    if not isinstance(data, dict):
        return default
    for key in keys:
        value = data.get(key)
        if not is_absent(value):
            return value
    return default


def coerce_score(value: Any) -> float | None:
    """Parse a score; anything non-numeric becomes None."""
    if value is None or isinstance(value, bool):
        return None
    try:
        score = float(value)
    except (TypeError, ValueError):
        return None
    return score if math.isfinite(score) else None


def coerce_rank(value: Any) -> int | None:
    score = coerce_score(value)
    if score is None or score < 1:
        return None
    return int(score)


def round1(value: float) -> float:
    """Round half away from zero to one decimal."""
    return math.floor(value * 10 + 0.5) / 10


def numeric_metrics(metrics: Any) -> dict[str, float]:
    """Keep only the numeric entries of a metrics mapping."""
    if not isinstance(metrics, dict):
        return {}
    result = {}
    for key, value in metrics.items():
        number = coerce_score(value)
        if number is not None:
            result[str(key)] = number
    return result


def _analysis_entry(analysis_details: Any, *names: str) -> dict | None:
    if not isinstance(analysis_details, dict):
        return None
    for name in names:
        entry = analysis_details.get(name)
        if isinstance(entry, dict):
            return entry
    return None


def _summary_parts(entry: dict) -> list[str]:
    parts = []
    summary = entry.get("summary")
    if isinstance(summary, str) and summary.strip():
        parts.append(summary.strip())
    highlights = entry.get("highlights")
    if isinstance(highlights, list):
        joined = "; ".join(str(h).strip() for h in highlights if str(h).strip())
        if joined:
            parts.append(joined)
    return parts


def normalize_competitor(
    row: Any,
    position: int,
    canonicalize: Callable[[str], str] = str.strip,
    analysis_details: Any = None,
) -> RankedCompetitor | None:
    """
    Normalize one upstream competitor row.

    Args:
        row: Dict row, or a bare company-name string
        position: 1-based position in the upstream list (rank fallback)
        canonicalize: Maps raw names onto canonical spellings
        analysis_details: Optional per-company details used to enrich the row

    Returns:
        RankedCompetitor, or None if the row names no company
    """
    if isinstance(row, str):
        row = {"company": row}
    if not isinstance(row, dict):
        return None

    raw_name = first_present(row, COMPANY_KEYS)
    if not isinstance(raw_name, str) or not raw_name.strip():
        return None
    company = canonicalize(raw_name)

    rationale = first_present(row, RATIONALE_KEYS, "")
    rationale = rationale.strip() if isinstance(rationale, str) else str(rationale)
    metrics = numeric_metrics(first_present(row, METRICS_KEYS, {}))

    entry = _analysis_entry(analysis_details, company, raw_name.strip())
    if entry is not None:
        if isinstance(entry.get("metrics"), dict):
            metrics = {**metrics, **numeric_metrics(entry["metrics"])}
        parts = _summary_parts(entry)
        if parts:
            rationale = " | ".join([*parts, rationale] if rationale else parts)

    return RankedCompetitor(
        company=company,
        score=coerce_score(first_present(row, SCORE_KEYS)),
        rank=coerce_rank(first_present(row, RANK_KEYS)) or position,
        rationale=rationale,
        metrics=metrics,
    )


def normalize_competitors(
    rows: Any,
    canonicalize: Callable[[str], str] = str.strip,
    analysis_details: Any = None,
) -> list[RankedCompetitor]:
    """Normalize a list of upstream rows, skipping unusable ones."""
    if not isinstance(rows, list):
        return []
    competitors = []
    for position, row in enumerate(rows, start=1):
        competitor = normalize_competitor(row, position, canonicalize, analysis_details)
        if competitor is None:
            logger.debug(f"Skipping competitor row without a company: {row!r}")
            continue
        competitors.append(competitor)
    return competitors


def competitors_from_analysis(
    analysis_details: Any,
    canonicalize: Callable[[str], str] = str.strip,
) -> list[RankedCompetitor]:
    """
    Derive ranked competitors from per-company analysis details.

    Score is the mean of the numeric metrics rounded to one decimal.
    Rationale is "summary | highlight; highlight". Rows are ordered by
    score (highest first) and ranked 1..N.

    Example:
        {"Acme": {"metrics": {"quality": 8, "value": 6}, "summary": "Solid"}}
        -> [RankedCompetitor("Acme", 7.0, 1, "Solid", {...})]
    """
    if not isinstance(analysis_details, dict):
        return []

    competitors = []
    for position, (name, entry) in enumerate(analysis_details.items(), start=1):
        if not isinstance(entry, dict) or not str(name).strip():
            continue
        metrics = numeric_metrics(entry.get("metrics"))
        score = round1(sum(metrics.values()) / len(metrics)) if metrics else None
        competitors.append(
            RankedCompetitor(
                company=canonicalize(str(name)),
                score=score,
                rank=position,
                rationale=" | ".join(_summary_parts(entry)),
                metrics=metrics,
            )
        )
    return rank_by_score(competitors)


def findings_from_analysis(analysis_details: Any) -> list[str]:
    """Key findings built from per-company summaries and highlights."""
    if not isinstance(analysis_details, dict):
        return []
    findings = []
    for name, entry in analysis_details.items():
        if not isinstance(entry, dict):
            continue
        summary = entry.get("summary")
        if isinstance(summary, str) and summary.strip():
            findings.append(f"{name}: {summary.strip()}")
        highlights = entry.get("highlights")
        if isinstance(highlights, list) and highlights:
            findings.append(f"{name} highlights: {', '.join(str(h) for h in highlights)}")
    return findings


def sources_from_analysis(analysis_details: Any) -> list[Any]:
    """All sources listed under any company's analysis details."""
    if not isinstance(analysis_details, dict):
        return []
    sources = []
    for entry in analysis_details.values():
        if isinstance(entry, dict) and isinstance(entry.get("sources"), list):
            sources.extend(entry["sources"])
    return sources


def rank_by_score(competitors: list[RankedCompetitor]) -> list[RankedCompetitor]:
    """
    Order competitors by score and assign contiguous ranks 1..N.

    Only for rows derived from analysis_details, which carry no upstream
    order. Order: score descending (missing scores last), then the rank
    they arrived with, then first-seen.
    """
    indexed = list(enumerate(competitors))
    indexed.sort(
        key=lambda pair: (
            pair[1].score is None,
            -(pair[1].score or 0.0),
            pair[1].rank,
            pair[0],
        )
    )
    return [replace(c, rank=i) for i, (_, c) in enumerate(indexed, start=1)]


def close_rank_gaps(competitors: list[RankedCompetitor]) -> list[RankedCompetitor]:
    """
    Keep the upstream order and renumber ranks 1..N.

    Order: the rank each row arrived with, then first-seen. Scores never
    reorder an explicit ranking.
    """
    indexed = sorted(enumerate(competitors), key=lambda pair: (pair[1].rank, pair[0]))
    return [replace(c, rank=i) for i, (_, c) in enumerate(indexed, start=1)]



def _merge_rationale(first: str, second: str) -> str:
    parts = []
    for text in (first, second):
        for part in (text or "").split(" | "):
            part = part.strip()
            if part and part not in parts:
                parts.append(part)
    return " | ".join(parts)


def _merge_metrics(first: dict[str, float], second: dict[str, float]) -> dict[str, float]:
    merged = dict(first)
    for key, value in second.items():
        if key not in merged or value > merged[key]:
            merged[key] = value
    return merged


def dedupe_competitors(
    competitors: list[RankedCompetitor],
    canonicalize: Callable[[str], str] = str.strip,
) -> list[RankedCompetitor]:
    """
    Collapse rows naming the same company, then close rank gaps.

    Duplicates keep the best (lowest) rank, the highest score, the union of
    their rationales and the larger value of each metric.
    """
    by_company: dict[str, RankedCompetitor] = {}
    for competitor in competitors:
        name = canonicalize(competitor.company)
        if not name:
            continue
        key = base_name(name) or name
        existing = by_company.get(key)
        if existing is None:
            by_company[key] = replace(competitor, company=name)
            continue

        scores = [s for s in (existing.score, competitor.score) if s is not None]
        by_company[key] = RankedCompetitor(
            company=existing.company,
            score=max(scores) if scores else None,
            rank=min(existing.rank, competitor.rank),
            rationale=_merge_rationale(existing.rationale, competitor.rationale),
            metrics=_merge_metrics(existing.metrics, competitor.metrics),
        )
        logger.debug(f"Merged duplicate competitor row for {name}")

    return close_rank_gaps(list(by_company.values()))
