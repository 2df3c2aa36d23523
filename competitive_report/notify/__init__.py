"""Report notifications."""

from competitive_report.notify.slack import (
    build_notification,
    build_slack_payload,
    extract_report_info,
    extract_workflow_summary,
    send_slack_notification,
)

__all__ = [
    "build_notification",
    "build_slack_payload",
    "extract_report_info",
    "extract_workflow_summary",
    "send_slack_notification",
]
