"""
Scenario merge.

Several fragments usually describe the same scenario. Candidates are
grouped by scenario_id and one winner per group is chosen:

1. High-priority candidates (from scenario_rankings) beat everything else
2. A descriptive title beats a generic "Scenario 3"
3. More competitors + sources beats fewer
4. Otherwise the first-seen candidate stays

The winner then borrows what it is missing from its siblings (title,
competitors), gets a description if it has none, and has its competitor
list de-duplicated and renumbered in upstream rank order.
"""

import logging
from collections.abc import Callable
from dataclasses import replace

from competitive_report.constants import (
    DERIVED_TITLE_WORDS,
    GENERIC_TITLE_PATTERN,
    MAX_DERIVED_TITLE_LENGTH,
    MIN_GOOD_TITLE_LENGTH,
)
from competitive_report.domain.models import Scenario
from competitive_report.reconcile.competitors import dedupe_competitors
from competitive_report.reconcile.metrics import scenario_evidence

logger = logging.getLogger(__name__)

GENERIC_DESCRIPTION = (
    "Comprehensive competitive analysis evaluating market positioning and performance metrics."
)


def is_good_title(title: str | None) -> bool:
    """A title that says something: not "Scenario N" and longer than 10 chars."""
    if not title:
        return False
    title = title.strip()
    return not GENERIC_TITLE_PATTERN.match(title) and len(title) > MIN_GOOD_TITLE_LENGTH


def _rank_key(candidate: Scenario) -> tuple[bool, bool, int]:
    return (candidate.high_priority, is_good_title(candidate.title), candidate.completeness)


def select_winner(candidates: list[Scenario]) -> Scenario:
    """
    Pick the best candidate for one scenario_id.

    Comparison is strict, so ties keep the earlier candidate.
    """
    best = candidates[0]
    for candidate in candidates[1:]:
        if _rank_key(candidate) > _rank_key(best):
            best = candidate
    return best


def derive_title(scenario: Scenario, siblings: list[Scenario]) -> str:
    """
    Title for a scenario whose own title is generic.

    Prefers a good sibling title, then the first words of the first key
    finding, then "Competitive Analysis - Scenario N".
    """
    for sibling in siblings:
        if is_good_title(sibling.title):
            return sibling.title.strip()

    if scenario.key_findings:
        words = " ".join(scenario.key_findings[0].split()[:DERIVED_TITLE_WORDS])
        if len(words) > MAX_DERIVED_TITLE_LENGTH:
            words = words[:MAX_DERIVED_TITLE_LENGTH] + "..."
        if words:
            return words

    return f"Competitive Analysis - Scenario {scenario.scenario_id}"


def derive_description(scenario: Scenario) -> str:
    """Description for a scenario that has none."""
    if scenario.key_findings:
        return scenario.key_findings[0]
    if scenario.ranked_competitors:
        top = scenario.ranked_competitors[0].company
        return f"Analysis of {top} performance and competitive positioning."
    return GENERIC_DESCRIPTION


def _finalize(
    winner: Scenario,
    siblings: list[Scenario],
    canonicalize: Callable[[str], str],
) -> Scenario:
    competitors = winner.ranked_competitors
    if not competitors:
        donors = [s for s in siblings if s.ranked_competitors]
        if donors:
            donor = max(donors, key=lambda s: len(s.ranked_competitors))
            competitors = donor.ranked_competitors
            logger.info(
                f"Scenario {winner.scenario_id} borrowed {len(competitors)} competitors "
                f"from its {donor.origin} candidate"
            )

    key_findings = winner.key_findings
    if not key_findings:
        key_findings = next((s.key_findings for s in siblings if s.key_findings), [])

    scenario = replace(
        winner,
        ranked_competitors=dedupe_competitors(competitors, canonicalize),
        key_findings=list(key_findings),
    )

    if not is_good_title(scenario.title):
        title = derive_title(scenario, siblings)
        if title != scenario.title:
            logger.debug(f"Scenario {scenario.scenario_id}: generic title replaced with '{title}'")
        scenario = replace(scenario, title=title)

    if not scenario.description:
        scenario = replace(scenario, description=derive_description(scenario))

    evidence, confidence = scenario_evidence(scenario.sources)
    return replace(scenario, evidence_quality=evidence, confidence_level=confidence)


def merge_scenarios(
    candidates: list[Scenario],
    canonicalize: Callable[[str], str] = str.strip,
) -> list[Scenario]:
    """
    Merge scenario candidates into one scenario per scenario_id.

    Args:
        candidates: Candidates from all fragments, in arrival order
        canonicalize: Company-name canonicalizer for competitor de-duplication

    Returns:
        Merged scenarios sorted by scenario_id
    """
    groups: dict[int, list[Scenario]] = {}
    for candidate in candidates:
        groups.setdefault(candidate.scenario_id, []).append(candidate)

    merged = []
    for scenario_id, group in groups.items():
        winner = select_winner(group)
        if len(group) > 1:
            logger.debug(
                f"Scenario {scenario_id}: {len(group)} candidates, "
                f"selected {winner.origin} '{winner.title}'"
            )
        siblings = [c for c in group if c is not winner]
        merged.append(_finalize(winner, siblings, canonicalize))

    merged.sort(key=lambda s: s.scenario_id)
    return merged
