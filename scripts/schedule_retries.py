#!/usr/bin/env python3
"""
Classify failed upstream requests and schedule retries.

Reads a batch of workflow items, decides per item whether the error is
retryable (429, 502, 503, 504, 529), and emits retry records carrying a
jittered exponential delay. Items without an error, with a permanent error,
or past their retry limit pass through unchanged.

Usage:
    python scripts/schedule_retries.py batch.json                 # Dry-run (decisions only)
    python scripts/schedule_retries.py batch.json --execute       # Write output items
    python scripts/schedule_retries.py batch.json --execute -o retries.json --seed 7
"""

import argparse
import random
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
from competitive_report.config import get_report_output_dir
from competitive_report.retry import RetryOutcome, process_batch

DEFAULT_OUTPUT_NAME = "retry_items.json"


def log_batch_summary(result, logger):
    """Log per-item decisions and batch counts."""
    for index, decision in enumerate(result.decisions, start=1):
        if decision.outcome == RetryOutcome.NO_ERROR:
            continue
        status = decision.error.http_status if decision.error else None
        delay = f", delay {decision.delay_ms:,} ms" if decision.delay_ms is not None else ""
        logger.info(f"  item {index}: HTTP {status} -> {decision.outcome.value}{delay}")

    summary = result.summary
    logger.info(f"Total items: {summary.total}")
    logger.info(f"  Scheduled for retry: {summary.retried}")
    logger.info(f"  No error: {summary.no_error}")
    logger.info(f"  Not retryable: {summary.not_retryable}")
    logger.info(f"  Retries exhausted: {summary.exhausted}")
    logger.info(f"  Held back by global cap: {summary.global_cap}")


def main():
    """Run the retry scheduling script."""
    parser = argparse.ArgumentParser(
        description="Classify failed items and schedule retries with backoff"
    )
    add_input_arguments(parser)
    add_execute_argument(parser)
    parser.add_argument(
        "--seed",
        type=int,
        default=None,
        help="Seed for the jitter random source (reproducible delays)",
    )
    args = parser.parse_args()

    logger = setup_logging("schedule_retries", execute=args.execute)

    try:
        items = load_items(args.inputs)
    except InputError as e:
        logger.error(f"✗ {e}")
        sys.exit(1)

    rng = random.Random(args.seed) if args.seed is not None else None
    result = process_batch(items, rng=rng)

    if not args.execute:
        print_dry_run_header("Retry Scheduling", logger)
        log_batch_summary(result, logger)
        logger.info("")
        logger.info("To write the output items, run with --execute")
        return

    print_execute_header("Retry Scheduling", logger)
    log_batch_summary(result, logger)
    output = args.output or get_report_output_dir() / DEFAULT_OUTPUT_NAME
    try:
        write_json(result.items, output)
    except OSError as e:
        logger.error(f"✗ Cannot write {output}: {e}")
        sys.exit(1)
    logger.info(f"✓ {len(result.items)} items written to {output}")


if __name__ == "__main__":
    main()
