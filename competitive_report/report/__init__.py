"""Report output naming."""

from competitive_report.report.output import (
    build_render_output,
    report_filename,
    report_path,
    report_slug,
)

__all__ = [
    "build_render_output",
    "report_filename",
    "report_path",
    "report_slug",
]
