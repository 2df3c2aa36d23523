"""
Unit tests for report file naming.
"""

from datetime import datetime, timedelta, timezone
from pathlib import Path
from unittest.mock import patch

from competitive_report.report import (
    build_render_output,
    report_filename,
    report_path,
    report_slug,
)


class TestReportSlug:
    """Test report_slug."""

    def test_slug(self):
        """Test lowercasing and separator collapsing."""
        assert report_slug("Acme Hotels & Resorts") == "acme-hotels-resorts"
        assert report_slug("  The Venetian  ") == "the-venetian"

    def test_fallback(self):
        """Test names with nothing file-safe in them."""
        assert report_slug(None) == "company"
        assert report_slug("!!!") == "company"


class TestReportFilename:
    """Test report_filename."""

    def test_filename(self, fixed_now):
        """Test the file name layout."""
        assert (
            report_filename("Acme Hotels", fixed_now())
            == "competitive-report-acme-hotels-2025-01-02T03-04-05-678Z.html"
        )

    def test_converts_to_utc(self):
        """Test that an aware local time is written as UTC."""
        local = datetime(2025, 1, 2, 5, 4, 5, 678000, tzinfo=timezone(timedelta(hours=2)))
        assert report_filename("Acme", local).endswith("2025-01-02T03-04-05-678Z.html")


def test_build_render_output(fixed_now):
    """Test the render envelope."""
    output = build_render_output("<html></html>", "Acme", fixed_now())
    assert output == {
        "json": {
            "html": "<html></html>",
            "filename": "competitive-report-acme-2025-01-02T03-04-05-678Z.html",
        }
    }


def test_report_path(fixed_now):
    """Test that report_path lands in the output directory with the new suffix."""
    with patch(
        "competitive_report.report.output.get_report_output_dir", return_value=Path("/tmp/out")
    ):
        path = report_path("Acme", fixed_now())
    assert path == Path("/tmp/out/competitive-report-acme-2025-01-02T03-04-05-678Z.json")
