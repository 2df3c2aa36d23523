"""
Slack notification for a finished report.

Reads the company and deployed report URL out of the final workflow items,
builds an incoming-webhook payload and, when a real webhook is configured,
posts it.
"""

import logging
from datetime import datetime, timezone
from typing import Any

import requests

from competitive_report.config import Settings, get_settings, is_webhook_configured
from competitive_report.constants import UNKNOWN_COMPANY

logger = logging.getLogger(__name__)

COMPANY_KEYS = ("company", "brand_name", "name", "entity_name", "brand")
REPORT_URL_KEYS = ("deploymentUrl", "pageUrl", "url", "deployment_url")
SCENARIO_INDICATORS = ("scenario_title", "scenario_id", "scenario", "analysis_type")
SCENARIO_TABLE_NAMES = frozenset(
    {"Executive Summary", "Entity Analysis", "Ai Insights", "Comprehensive Sentiment"}
)
URL_NOT_AVAILABLE = "URL not available"
MESSAGE_TEXT = "📊 Competitive Analysis Report Ready"


def _item_data(item: Any) -> dict:
    if isinstance(item, dict):
        data = item.get("json", item)
        if isinstance(data, dict):
            return data
    return {}


def _first_value(data: dict, keys: tuple[str, ...]) -> str | None:
    for key in keys:
        value = data.get(key)
        if isinstance(value, str) and value.strip():
            return value.strip()
    return None


def extract_report_info(items: list[Any]) -> tuple[str, str]:
    """
    Find the company name and report URL in a list of workflow items.

    The first item carrying any of the company keys supplies the company,
    and likewise for the URL.

    Returns:
        (company, url), defaulting to "Unknown Company" and "URL not available"
    """
    company = None
    url = None
    for item in items:
        data = _item_data(item)
        if company is None:
            company = _first_value(data, COMPANY_KEYS)
        if url is None:
            url = _first_value(data, REPORT_URL_KEYS)
        if company and url:
            break
    return company or UNKNOWN_COMPANY, url or URL_NOT_AVAILABLE


def _is_scenario_item(data: dict) -> bool:
    if any(data.get(key) for key in SCENARIO_INDICATORS):
        return True
    return data.get("table_name") in SCENARIO_TABLE_NAMES


def _error_entry(index: int, data: dict) -> dict | None:
    error = data.get("error")
    if not (error or data.get("errorMessage") or data.get("error_message")):
        return None
    error_details = error if isinstance(error, dict) else {}
    return {
        "item": index + 1,
        "error": error_details.get("errorMessage")
        or data.get("errorMessage")
        or data.get("error_message")
        or "Unknown error",
        "httpCode": error_details.get("httpCode") or data.get("httpCode") or "Unknown",
    }


def extract_workflow_summary(items: list[Any]) -> dict[str, Any]:
    """
    Count scenario items and failures across the final workflow items.

    When no item looks like a scenario, every item is counted as one.
    """
    total = 0
    successful = 0
    errors = []
    for index, item in enumerate(items):
        data = _item_data(item)
        is_scenario = _is_scenario_item(data)
        if is_scenario:
            total += 1
        error = _error_entry(index, data)
        if error:
            errors.append(error)
        elif is_scenario:
            successful += 1

    if total == 0:
        total = len(items)
        successful = len(items) - len(errors)

    return {
        "total_scenarios": total,
        "successful_scenarios": successful,
        "failed_scenarios": len(errors),
        "errors": errors,
    }


def build_slack_payload(
    company: str,
    report_url: str,
    settings: Settings | None = None,
    summary: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Build the incoming-webhook message.

    The attachment is green ("good") unless the summary reports failures.
    """
    settings = settings or get_settings()
    failed = (summary or {}).get("failed_scenarios", 0)
    return {
        "channel": settings.slack_channel,
        "username": settings.slack_username,
        "icon_emoji": settings.slack_icon_emoji,
        "text": MESSAGE_TEXT,
        "attachments": [
            {
                "color": "warning" if failed else "good",
                "fields": [
                    {"title": "Company", "value": company, "short": True},
                    {"title": "Report URL", "value": f"<{report_url}|View Report>", "short": True},
                ],
            }
        ],
    }


def build_notification(items: list[Any], settings: Settings | None = None) -> dict[str, Any]:
    """
    Build the full notification record for a list of workflow items.

    Returns:
        Dict with slack_webhook_url, slack_payload, workflow_summary,
        notification_timestamp and notification_type
    """
    settings = settings or get_settings()
    company, report_url = extract_report_info(items)
    summary = extract_workflow_summary(items)
    status = "SUCCESS" if summary["failed_scenarios"] == 0 else "COMPLETED WITH ERRORS"
    logger.info(
        f"Notification for {company}: {status}, "
        f"{summary['successful_scenarios']}/{summary['total_scenarios']} successful"
    )
    return {
        "slack_webhook_url": settings.slack_webhook_url,
        "slack_payload": build_slack_payload(company, report_url, settings, summary),
        "workflow_summary": summary,
        "notification_timestamp": datetime.now(timezone.utc).isoformat(),
        "notification_type": "workflow_completion",
    }


def send_slack_notification(
    payload: dict[str, Any],
    webhook_url: str | None = None,
    session: requests.Session | None = None,
    timeout: float | None = None,
) -> bool:
    """
    POST a payload to the Slack webhook.

    Args:
        payload: Message built by build_slack_payload()
        webhook_url: Webhook to post to (defaults to settings)
        session: Optional requests.Session for connection pooling
        timeout: Request timeout in seconds (defaults to settings)

    Returns:
        True if Slack accepted the message, False otherwise
    """
    settings = get_settings()
    webhook_url = webhook_url or settings.slack_webhook_url
    if not is_webhook_configured(webhook_url):
        logger.warning("SLACK_WEBHOOK_URL not configured; skipping notification")
        return False

    if session is None:
        session = requests.Session()

    try:
        response = session.post(
            webhook_url,
            json=payload,
            timeout=timeout or settings.slack_timeout_seconds,
        )
        response.raise_for_status()
    except requests.RequestException as e:
        logger.error(f"Slack notification failed: {e}")
        return False

    logger.info("✓ Slack notification sent")
    return True
