"""
Report reconciliation.

reconcile() turns the fragments produced by every upstream branch of a
run into one ReportDocument:

1. Unwrap {"json": ...} items and flatten nested "data" arrays
2. Extract scenario candidates with the adapter set
3. Merge candidates by scenario_id
4. Consolidate citations and build the sources table
5. Resolve the target company
6. Build the head-to-head table and summary metrics

The function is pure: inputs are not modified and the same inputs (and
clock) give the same document.
"""

import logging
from typing import Any

from competitive_report.constants import NO_SCENARIOS_PLACEHOLDER
from competitive_report.domain.models import ReportDocument, ReportMetadata
from competitive_report.reconcile.adapters import (
    DEFAULT_ADAPTERS,
    FragmentAdapter,
    extract_scenarios,
)
from competitive_report.reconcile.citations import (
    build_sources_table,
    collect_citations,
    consolidate_citations,
)
from competitive_report.reconcile.company import resolve_company
from competitive_report.reconcile.context import ReconcileContext
from competitive_report.reconcile.head_to_head import build_head_to_head
from competitive_report.reconcile.metrics import evidence_summary, quality_metrics
from competitive_report.reconcile.scenarios import merge_scenarios

logger = logging.getLogger(__name__)


def unwrap_items(items: Any) -> list[Any]:
    """Accept workflow items ({"json": fragment}), bare fragments, or one dict."""
    if isinstance(items, dict):
        items = [items]
    if not isinstance(items, list):
        return []
    fragments = []
    for item in items:
        if isinstance(item, dict) and isinstance(item.get("json"), dict):
            fragments.append(item["json"])
        else:
            fragments.append(item)
    return fragments


def flatten_fragments(fragments: list[Any]) -> list[dict]:
    """
    Depth-first list of fragments with nested "data" arrays expanded.

    A merge step may wrap its inputs as {"data": [fragment, ...]}; each
    nested fragment follows its parent.
    """
    flat: list[dict] = []

    def visit(fragment: Any) -> None:
        if not isinstance(fragment, dict):
            return
        flat.append(fragment)
        nested = fragment.get("data")
        if isinstance(nested, list):
            for child in nested:
                visit(child)

    for fragment in fragments:
        visit(fragment)
    return flat


def _fragment_whitelist(fragments: list[dict]) -> list[str]:
    names: list[str] = []
    for fragment in fragments:
        whitelist = fragment.get("whitelist")
        if isinstance(whitelist, list):
            names.extend(str(w) for w in whitelist if isinstance(w, str) and w.strip())
    return names


def _prebuilt_source_rows(fragments: list[dict]) -> list[Any]:
    rows: list[Any] = []
    for fragment in fragments:
        table = fragment.get("data_sources_table")
        if isinstance(table, list):
            rows.extend(table)
    return rows


def reconcile(
    items: Any,
    context: ReconcileContext | None = None,
    adapters: tuple[FragmentAdapter, ...] = DEFAULT_ADAPTERS,
) -> ReportDocument:
    """
    Reconcile upstream fragments into a ReportDocument.

    Malformed fragments contribute nothing rather than failing the run.
    With no usable scenarios the document carries
    metadata.placeholder = "No scenarios available".

    Args:
        items: Workflow items or bare fragments
        context: Per-run context (company, whitelist, clock)
        adapters: Fragment adapter set

    Returns:
        ReportDocument

    Example:
        >>> doc = reconcile([{"json": {"scenario_rankings": [...]}}])
        >>> doc.scenarios[0].ranked_competitors[0].rank
        1
    """
    context = context or ReconcileContext()
    fragments = flatten_fragments(unwrap_items(items))
    logger.info(f"Reconciling {len(fragments)} fragments")

    canonicalize = context.canonicalizer(_fragment_whitelist(fragments))

    candidates = [
        scenario
        for fragment in fragments
        for scenario in extract_scenarios(fragment, canonicalize, adapters)
    ]
    scenarios = merge_scenarios(candidates, canonicalize)
    logger.info(f"Merged {len(candidates)} scenario candidates into {len(scenarios)} scenarios")

    citations = consolidate_citations(collect_citations(fragments))
    sources_table = build_sources_table(citations, scenarios, _prebuilt_source_rows(fragments))

    company, company_source = resolve_company(fragments, scenarios, context.company)
    head_to_head = build_head_to_head(scenarios)
    summary, top_publishers = evidence_summary(sources_table)

    competitors_analyzed = list(
        dict.fromkeys(c.company for s in scenarios for c in s.ranked_competitors)
    )

    placeholder = None
    if not scenarios:
        placeholder = NO_SCENARIOS_PLACEHOLDER
        logger.warning(f"No usable scenarios in {len(fragments)} fragments")

    metadata = ReportMetadata(
        total_scenarios=len(scenarios),
        competitors_analyzed=competitors_analyzed,
        company_source=company_source,
        generated_at=context.now().isoformat(),
        evidence_summary=summary,
        quality_metrics=quality_metrics(citations),
        top_publishers=top_publishers,
        placeholder=placeholder,
    )

    logger.info(
        f"✓ Report for {company}: {len(scenarios)} scenarios, "
        f"{len(citations)} citations, {len(sources_table)} sources"
    )
    return ReportDocument(
        company=company,
        scenarios=scenarios,
        citations=citations,
        sources_table=sources_table,
        head_to_head=head_to_head,
        metadata=metadata,
    )


def reconcile_items(items: Any, context: ReconcileContext | None = None) -> list[dict]:
    """Workflow-shaped wrapper: returns [{"json": document}]."""
    return [{"json": reconcile(items, context).to_dict()}]
