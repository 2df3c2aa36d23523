"""
Report reconciliation.

Normalizes heterogeneous upstream fragments into one ReportDocument.
"""

from competitive_report.reconcile.adapters import (
    DEFAULT_ADAPTERS,
    FragmentAdapter,
    extract_scenarios,
)
from competitive_report.reconcile.citations import (
    build_sources_table,
    citation_key,
    collect_citations,
    consolidate_citations,
)
from competitive_report.reconcile.company import infer_company, resolve_company
from competitive_report.reconcile.context import ReconcileContext
from competitive_report.reconcile.head_to_head import build_head_to_head
from competitive_report.reconcile.reconciler import reconcile, reconcile_items
from competitive_report.reconcile.scenarios import merge_scenarios, select_winner

__all__ = [
    "DEFAULT_ADAPTERS",
    "FragmentAdapter",
    "ReconcileContext",
    "build_head_to_head",
    "build_sources_table",
    "citation_key",
    "collect_citations",
    "consolidate_citations",
    "extract_scenarios",
    "infer_company",
    "merge_scenarios",
    "reconcile",
    "reconcile_items",
    "resolve_company",
    "select_winner",
]
