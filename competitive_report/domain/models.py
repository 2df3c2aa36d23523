"""
Data models for reconciled competitive reports.

These dataclasses are the canonical shapes every upstream fragment is
normalized into, plus the final ReportDocument handed to the renderer.
"""

from dataclasses import asdict, dataclass, field
from typing import Any


@dataclass(frozen=True)
class RankedCompetitor:
    """One company's standing within a scenario."""

    company: str
    score: float | None
    rank: int  # 1-based, contiguous within a scenario once reconciled
    rationale: str = ""
    metrics: dict[str, float] = field(default_factory=dict)


@dataclass(frozen=True)
class Scenario:
    """A competitive scenario with its ranked competitors."""

    scenario_id: int
    title: str
    description: str = ""
    ranked_competitors: list[RankedCompetitor] = field(default_factory=list)
    key_findings: list[str] = field(default_factory=list)
    sources: list[Any] = field(default_factory=list)  # strings or source objects
    evidence_quality: dict[str, int] = field(default_factory=dict)
    confidence_level: str = "pending"
    high_priority: bool = False  # came from a scenario_rankings payload
    origin: str = ""  # name of the adapter that produced it
    extraction_level: str | None = None
    error: str | None = None

    @property
    def completeness(self) -> int:
        """Competitors plus sources, used to break merge ties."""
        return len(self.ranked_competitors) + len(self.sources)

    def to_dict(self) -> dict:
        data = asdict(self)
        data.pop("high_priority")
        if data["error"] is None:
            data.pop("error")
        return data


@dataclass(frozen=True)
class Citation:
    """A claim tied to the source it came from."""

    claim_text: str
    source_url: str = ""
    source_title: str = ""
    source_domain: str = ""
    publication_date: str = ""
    author: str = "Unknown"
    authority_score: int = 5  # 1..10
    verification_status: str = "unverified"
    source_origin: str = "unknown"
    influence_weight: float = 0.5  # 0..1
    confidence_level: str = "medium"
    tags: list[str] = field(default_factory=list)
    extra: dict[str, Any] = field(default_factory=dict)  # any other upstream fields

    def to_dict(self) -> dict:
        data = asdict(self)
        extra = data.pop("extra")
        return {**extra, **data}


@dataclass(frozen=True)
class SourceRow:
    """One row of the report's sources table."""

    title: str
    url: str = ""
    publisher: str = ""
    published: str = ""
    reliability: str = ""
    authority: int | None = None
    author: str = ""
    notes: str = ""
    source_origin: str = "unknown"
    verification_status: str = "unverified"


@dataclass(frozen=True)
class HeadToHeadRow:
    """Cross-scenario aggregate for one competitor."""

    name: str
    wins: int
    scenarios: int
    avg_position: float
    win_rate: float


@dataclass(frozen=True)
class ReportMetadata:
    """Summary numbers and provenance for a report."""

    total_scenarios: int = 0
    competitors_analyzed: list[str] = field(default_factory=list)
    company_source: str = "default"
    generated_at: str = ""
    evidence_summary: dict[str, Any] = field(default_factory=dict)
    quality_metrics: dict[str, Any] = field(default_factory=dict)
    top_publishers: list[dict[str, Any]] = field(default_factory=list)
    placeholder: str | None = None  # set when no usable scenario was found


@dataclass(frozen=True)
class ReportDocument:
    """
    The reconciled report.

    Built once per run by reconcile() and not modified afterwards.
    Scenarios are sorted by scenario_id.
    """

    company: str
    scenarios: list[Scenario]
    citations: list[Citation]
    sources_table: list[SourceRow]
    head_to_head: list[HeadToHeadRow]
    metadata: ReportMetadata

    def to_dict(self) -> dict:
        """Return a JSON-ready dict for the renderer."""
        return {
            "company": self.company,
            "scenarios": [s.to_dict() for s in self.scenarios],
            "citations": [c.to_dict() for c in self.citations],
            "sources_table": [asdict(r) for r in self.sources_table],
            "head_to_head": [asdict(r) for r in self.head_to_head],
            "metadata": asdict(self.metadata),
        }
