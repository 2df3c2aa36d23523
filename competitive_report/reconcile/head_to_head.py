"""
Head-to-head aggregate across scenarios.

Competitor appearances are grouped by grouping_key() so "Wynn Resorts"
and "Wynn" land in one row. The row keeps the first spelling seen.
"""

from competitive_report.domain.models import HeadToHeadRow, Scenario
from competitive_report.normalization.company_names import grouping_key


def build_head_to_head(scenarios: list[Scenario]) -> list[HeadToHeadRow]:
    """
    Wins, appearances, average position and win rate per competitor.

    A competitor is counted once per scenario, at its best rank there.
    Rows are sorted by win rate (highest first), then average position
    (lowest first), then name.
    """
    names: dict[str, str] = {}
    positions: dict[str, list[int]] = {}

    for scenario in scenarios:
        best_in_scenario: dict[str, int] = {}
        for competitor in scenario.ranked_competitors:
            key = grouping_key(competitor.company)
            if not key:
                continue
            names.setdefault(key, competitor.company)
            current = best_in_scenario.get(key)
            if current is None or competitor.rank < current:
                best_in_scenario[key] = competitor.rank
        for key, rank in best_in_scenario.items():
            positions.setdefault(key, []).append(rank)

    rows = []
    for key, ranks in positions.items():
        wins = sum(1 for r in ranks if r == 1)
        rows.append(
            HeadToHeadRow(
                name=names[key],
                wins=wins,
                scenarios=len(ranks),
                avg_position=round(sum(ranks) / len(ranks), 2),
                win_rate=wins / len(ranks),
            )
        )

    rows.sort(key=lambda r: (-r.win_rate, r.avg_position, r.name.lower()))
    return rows
