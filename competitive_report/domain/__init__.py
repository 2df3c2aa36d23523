"""Domain models for competitive reports."""

from competitive_report.domain.models import (
    Citation,
    HeadToHeadRow,
    RankedCompetitor,
    ReportDocument,
    ReportMetadata,
    Scenario,
    SourceRow,
)

__all__ = [
    "Citation",
    "HeadToHeadRow",
    "RankedCompetitor",
    "ReportDocument",
    "ReportMetadata",
    "Scenario",
    "SourceRow",
]
