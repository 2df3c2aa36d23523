"""
Report file naming and the render envelope.

The HTML itself comes from an external renderer; this module names the
file and wraps the rendered text for the save step.
"""

import re
from datetime import datetime, timezone
from pathlib import Path

from competitive_report.config import get_report_output_dir

SLUG_FALLBACK = "company"
_NON_ALNUM = re.compile(r"[^a-z0-9]+")


def report_slug(company: str | None) -> str:
    """
    File-safe slug for a company name.

    Example:
        >>> report_slug("Acme Hotels & Resorts")
        'acme-hotels-resorts'
    """
    slug = _NON_ALNUM.sub("-", str(company or "").lower()).strip("-")
    return slug or SLUG_FALLBACK


def _timestamp(now: datetime) -> str:
    if now.tzinfo is not None:
        now = now.astimezone(timezone.utc)
    iso = now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"
    return iso.replace(":", "-").replace(".", "-")


def report_filename(company: str | None, now: datetime | None = None) -> str:
    """
    Report file name: competitive-report-{slug}-{timestamp}.html.

    The timestamp is UTC ISO 8601 with millisecond precision, with ':' and
    '.' replaced by '-' (2025-01-02T03-04-05-678Z).
    """
    now = now or datetime.now(timezone.utc)
    return f"competitive-report-{report_slug(company)}-{_timestamp(now)}.html"


def build_render_output(html: str, company: str | None, now: datetime | None = None) -> dict:
    """Wrap rendered HTML as a workflow item: {"json": {"html", "filename"}}."""
    return {"json": {"html": html, "filename": report_filename(company, now)}}


def report_path(company: str | None, now: datetime | None = None, suffix: str = ".json") -> Path:
    """
    Path under the configured output directory for a report artifact.

    Uses the report file name with its extension swapped for suffix.
    """
    filename = Path(report_filename(company, now)).with_suffix(suffix).name
    return get_report_output_dir() / filename
