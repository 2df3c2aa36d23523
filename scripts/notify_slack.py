#!/usr/bin/env python3
"""
Post a "report ready" notification to Slack.

Reads the final workflow items (the deployed report URL and company name),
builds the Slack message and, in execute mode, posts it to SLACK_WEBHOOK_URL.

Usage:
    python scripts/notify_slack.py deploy.json              # Dry-run (show payload)
    python scripts/notify_slack.py deploy.json --execute    # Post to Slack
"""

import argparse
import json
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
from competitive_report.config import get_settings, is_webhook_configured
from competitive_report.notify import build_notification, send_slack_notification


def main():
    """Run the Slack notification script."""
    parser = argparse.ArgumentParser(description="Notify Slack that a report is ready")
    add_input_arguments(parser)
    add_execute_argument(parser)
    args = parser.parse_args()

    logger = setup_logging("notify_slack", execute=args.execute)

    try:
        items = load_items(args.inputs)
    except InputError as e:
        logger.error(f"✗ {e}")
        sys.exit(1)

    settings = get_settings()
    notification = build_notification(items, settings)

    if not args.execute:
        print_dry_run_header("Slack Notification", logger)
        logger.info(json.dumps(notification["slack_payload"], indent=2, ensure_ascii=False))
        if not is_webhook_configured(settings.slack_webhook_url):
            logger.info("")
            logger.info("⚠ SLACK_WEBHOOK_URL is not set; --execute would skip posting")
        logger.info("")
        logger.info("To post the notification, run with --execute")
        return

    print_execute_header("Slack Notification", logger)
    if args.output:
        write_json({"json": notification}, args.output)
        logger.info(f"Notification record written to {args.output}")

    if not send_slack_notification(notification["slack_payload"], settings.slack_webhook_url):
        logger.error("✗ Notification was not delivered")
        sys.exit(1)
    logger.info("✓ Complete!")


if __name__ == "__main__":
    main()
