#!/usr/bin/env python3
"""
Reconcile upstream analysis fragments into one competitive report document.

This script:
1. Reads workflow items (scenario rankings, analysis results, citations,
   research fragments) from one or more JSON files
2. Merges scenarios by scenario_id, de-duplicates competitors and citations,
   resolves the target company and builds the head-to-head table
3. Writes the ReportDocument as JSON (execute mode only)

Usage:
    python scripts/reconcile_report.py fragments/*.json                # Dry-run (summary only)
    python scripts/reconcile_report.py fragments/*.json --execute      # Write report JSON
    python scripts/reconcile_report.py a.json --company "Acme Hotels" --whitelist "Wynn Resorts" \\
        --execute -o reports/acme.json
"""

import argparse
import sys

from competitive_report.cli import (
    InputError,
    add_execute_argument,
    add_input_arguments,
    load_items,
    print_dry_run_header,
    print_execute_header,
    setup_logging,
    write_json,
)
from competitive_report.reconcile import ReconcileContext, reconcile
from competitive_report.report import report_path


def log_document_summary(document, logger):
    """Log the headline numbers of a reconciled document."""
    metadata = document.metadata
    logger.info(f"Company: {document.company} (source: {metadata.company_source})")
    logger.info(f"Scenarios: {metadata.total_scenarios}")
    for scenario in document.scenarios:
        top = scenario.ranked_competitors[0].company if scenario.ranked_competitors else "-"
        logger.info(
            f"  {scenario.scenario_id}. {scenario.title} "
            f"({len(scenario.ranked_competitors)} competitors, top: {top})"
        )
    logger.info(f"Citations: {len(document.citations)}")
    logger.info(f"Sources table rows: {len(document.sources_table)}")
    if document.head_to_head:
        logger.info("Head-to-head:")
        for row in document.head_to_head[:5]:
            logger.info(
                f"  {row.name}: {row.wins}/{row.scenarios} wins, "
                f"avg position {row.avg_position:.2f}"
            )
    if metadata.placeholder:
        logger.warning(f"⚠ {metadata.placeholder}")


def main():
    """Run the report reconciliation script."""
    parser = argparse.ArgumentParser(
        description="Reconcile analysis fragments into a competitive report document"
    )
    add_input_arguments(parser)
    add_execute_argument(parser)
    parser.add_argument(
        "--company",
        default=None,
        help="Target company, when already known (skips resolution)",
    )
    parser.add_argument(
        "--whitelist",
        action="append",
        default=[],
        help="Canonical competitor name (repeatable)",
    )
    args = parser.parse_args()

    logger = setup_logging("reconcile_report", execute=args.execute)

    try:
        items = load_items(args.inputs)
    except InputError as e:
        logger.error(f"✗ {e}")
        sys.exit(1)

    context = ReconcileContext(company=args.company, whitelist=tuple(args.whitelist))
    document = reconcile(items, context)

    if not args.execute:
        print_dry_run_header("Report Reconciliation", logger)
        logger.info(f"Input files: {len(args.inputs)}, items: {len(items)}")
        log_document_summary(document, logger)
        logger.info("")
        logger.info("To write the report, run with --execute")
        return

    print_execute_header("Report Reconciliation", logger)
    log_document_summary(document, logger)
    output = args.output or report_path(document.company)
    try:
        write_json({"json": document.to_dict()}, output)
    except OSError as e:
        logger.error(f"✗ Cannot write {output}: {e}")
        sys.exit(1)
    logger.info(f"✓ Report written to {output}")


if __name__ == "__main__":
    main()
