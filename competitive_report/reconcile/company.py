"""
Target company resolution.

The company a report is about is taken from, in order:

1. The caller's ReconcileContext
2. The first fragment with a usable company field (company, company_name,
   target_company, business_context.company, report_metadata.company)
3. Inference from the scenarios: the competitor with the highest
   mentions * 2 + average score - average rank * 0.5
4. The first scenario's top competitor
5. "Unknown Company"

Placeholder names such as "Report" or "Unknown Company" never count as usable.
"""

import logging
from collections import defaultdict

from competitive_report.constants import COMPANY_FIELDS, NESTED_COMPANY_FIELDS, UNKNOWN_COMPANY
from competitive_report.domain.models import Scenario
from competitive_report.normalization.company_names import is_placeholder_company

logger = logging.getLogger(__name__)


def explicit_company(fragments: list[dict]) -> tuple[str, str] | None:
    """
    First usable company named by any fragment.

    Returns:
        (company, field path) or None
    """
    for fragment in fragments:
        if not isinstance(fragment, dict):
            continue
        for field_name in COMPANY_FIELDS:
            value = fragment.get(field_name)
            if not is_placeholder_company(value):
                return value.strip(), field_name
        for parent, child in NESTED_COMPANY_FIELDS:
            nested = fragment.get(parent)
            if isinstance(nested, dict) and not is_placeholder_company(nested.get(child)):
                return nested[child].strip(), f"{parent}.{child}"
    return None


def infer_company(scenarios: list[Scenario]) -> str | None:
    """
    Guess the target company from how competitors rank across scenarios.

    Each competitor scores mentions * 2 + average score - average rank * 0.5
    (missing scores count as 0). Only a strictly positive composite can
    win, so callers fall back to the top competitor otherwise; ties keep
    the competitor seen first.

    Example:
        "Acme Hotels" rank 1 in three scenarios, "Beta Resorts" rank 2 in
        the same three -> "Acme Hotels"
    """
    stats: dict[str, dict[str, list[float]]] = defaultdict(lambda: {"scores": [], "ranks": []})
    for scenario in scenarios:
        for competitor in scenario.ranked_competitors:
            if is_placeholder_company(competitor.company):
                continue
            entry = stats[competitor.company]
            entry["scores"].append(competitor.score or 0.0)
            entry["ranks"].append(competitor.rank)

    best_company, best_score = None, 0.0
    for company, entry in stats.items():
        mentions = len(entry["ranks"])
        avg_score = sum(entry["scores"]) / mentions
        avg_rank = sum(entry["ranks"]) / mentions
        composite = mentions * 2 + avg_score - avg_rank * 0.5
        if composite > best_score:
            best_company, best_score = company, composite

    if best_company:
        logger.info(f"Inferred company {best_company} (composite score {best_score:.1f})")
    return best_company


def resolve_company(
    fragments: list[dict],
    scenarios: list[Scenario],
    known_company: str | None = None,
) -> tuple[str, str]:
    """
    Resolve the report's target company.

    Args:
        fragments: Flattened input fragments
        scenarios: Merged scenarios (used for inference)
        known_company: Company supplied by the caller, if any

    Returns:
        (company, source) where source is "context", the field path it was
        read from, "inferred", "top_competitor" or "default"
    """
    if not is_placeholder_company(known_company):
        return known_company.strip(), "context"

    found = explicit_company(fragments)
    if found:
        logger.info(f"Company {found[0]} taken from {found[1]}")
        return found

    inferred = infer_company(scenarios)
    if inferred:
        return inferred, "inferred"

    for scenario in scenarios:
        if scenario.ranked_competitors:
            top = scenario.ranked_competitors[0].company
            if not is_placeholder_company(top):
                return top, "top_competitor"

    logger.warning("No company could be resolved; using placeholder")
    return UNKNOWN_COMPANY, "default"
