"""
Fragment adapters.

Each upstream step emits scenarios in its own shape. An adapter recognises
one shape and turns it into Scenario candidates; the driver runs every
container adapter that matches a fragment, in priority order, and falls
back to treating the fragment itself as a scenario only when none did.

Adapters never mutate their input and never raise on malformed data.
"""

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from competitive_report.constants import CITATION_CONTAINERS
from competitive_report.domain.models import Scenario
from competitive_report.parsing.json_extraction import ExtractionLevel, extract_json
from competitive_report.reconcile.competitors import (
    coerce_rank,
    competitors_from_analysis,
    findings_from_analysis,
    first_present,
    is_absent,
    normalize_competitors,
    sources_from_analysis,
)

logger = logging.getLogger(__name__)

Canonicalizer = Callable[[str], str]

TITLE_KEYS = ("scenario_title", "title")
DESCRIPTION_KEYS = ("scenario_description", "description", "summary", "overview", "subtitle")
COMPETITOR_LIST_KEYS = ("competitors_ranked", "top_competitors", "competitors")
FINDINGS_KEYS = ("key_findings", "findings")
SOURCES_KEYS = ("sources", "references")


def scenario_from_record(
    record: dict,
    position: int,
    origin: str,
    canonicalize: Canonicalizer,
    high_priority: bool = False,
    extraction_level: str | None = None,
    error: str | None = None,
) -> Scenario:
    """
    Build a Scenario candidate from one upstream scenario-like dict.

    Args:
        record: Upstream scenario object
        position: 1-based position in its container (id fallback)
        origin: Adapter name, kept for tracing
        canonicalize: Company-name canonicalizer
        high_priority: Whether this candidate wins merges outright
        extraction_level: How the record was recovered from text, if it was
        error: Why the record is incomplete, if it is

    Returns:
        Scenario candidate (not yet merged or de-duplicated)
    """
    scenario_id = coerce_rank(record.get("scenario_id")) or position
    analysis = record.get("analysis_details")

    rows = first_present(record, COMPETITOR_LIST_KEYS)
    if rows:
        competitors = normalize_competitors(rows, canonicalize, analysis)
    else:
        competitors = competitors_from_analysis(analysis, canonicalize)
        if competitors:
            logger.debug(
                f"Built {len(competitors)} competitors from analysis_details "
                f"for scenario {scenario_id}"
            )

    findings = first_present(record, FINDINGS_KEYS, [])
    if isinstance(findings, list):
        findings = [str(f).strip() for f in findings if str(f).strip()]
    else:
        findings = []
    if not findings:
        findings = findings_from_analysis(analysis)

    sources = first_present(record, SOURCES_KEYS, [])
    sources = list(sources) if isinstance(sources, list) else []
    sources.extend(sources_from_analysis(analysis))

    title = first_present(record, TITLE_KEYS)
    description = first_present(record, DESCRIPTION_KEYS, "")

    return Scenario(
        scenario_id=scenario_id,
        title=str(title).strip() if title else f"Scenario {scenario_id}",
        description=str(description).strip(),
        ranked_competitors=competitors,
        key_findings=findings,
        sources=sources,
        high_priority=high_priority,
        origin=origin,
        extraction_level=extraction_level,
        error=error,
    )


def _has_ranking_data(record: dict) -> bool:
    return not all(
        is_absent(record.get(key))
        for key in ("competitors_ranked", "analysis_details", "key_findings")
    )


def _overlay_parsed(record: dict, parsed: dict) -> dict:
    """Parsed response fields win; the record fills whatever they lack."""
    merged = dict(record)
    for target, keys in (
        ("scenario_title", ("title", "scenario_title")),
        ("scenario_description", ("description", "scenario_description")),
        ("analysis_details", ("analysis_details",)),
        ("competitors_ranked", ("competitors_ranked", "top_competitors", "competitors")),
        ("key_findings", ("key_findings", "findings")),
        ("sources", ("sources",)),
    ):
        value = first_present(parsed, keys)
        if value is not None:
            merged[target] = value
    return merged


class FragmentAdapter(ABC):
    """Recognises one upstream fragment shape."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Adapter name, recorded on every candidate it produces."""
        ...

    @property
    def priority(self) -> int:
        """Lower runs first."""
        return 100

    @property
    def is_fallback(self) -> bool:
        """Fallback adapters only run when no container adapter matched."""
        return False

    @abstractmethod
    def matches(self, fragment: dict) -> bool: ...

    @abstractmethod
    def extract(self, fragment: dict, canonicalize: Canonicalizer) -> list[Scenario]: ...


class ListContainerAdapter(FragmentAdapter):
    """Scenarios listed under a single key."""

    key: str = ""
    high_priority: bool = False

    @property
    def name(self) -> str:
        return self.key

    def matches(self, fragment: dict) -> bool:
        value = fragment.get(self.key)
        return isinstance(value, list) and len(value) > 0

    def extract(self, fragment: dict, canonicalize: Canonicalizer) -> list[Scenario]:
        scenarios = []
        for position, record in enumerate(fragment[self.key], start=1):
            if not isinstance(record, dict):
                logger.debug(f"Skipping non-object entry in {self.key}: {record!r}")
                continue
            scenarios.append(self.convert(record, position, canonicalize))
        logger.info(f"Found {len(scenarios)} scenarios in {self.key}")
        return scenarios

    def convert(self, record: dict, position: int, canonicalize: Canonicalizer) -> Scenario:
        return scenario_from_record(
            record, position, self.name, canonicalize, high_priority=self.high_priority
        )


class ScenarioRankingsAdapter(ListContainerAdapter):
    """
    scenario_rankings from the ranking prompt.

    These carry the most complete data and win merges. A ranking with no
    competitors, details or findings is mined from its response_text.
    """

    key = "scenario_rankings"
    high_priority = True

    @property
    def priority(self) -> int:
        return 10

    def convert(self, record: dict, position: int, canonicalize: Canonicalizer) -> Scenario:
        if _has_ranking_data(record) or not isinstance(record.get("response_text"), str):
            return super().convert(record, position, canonicalize)

        label = f"scenario {record.get('scenario_id', position)}"
        result = extract_json(record["response_text"], label=label)
        if not result.ok:
            return scenario_from_record(
                record,
                position,
                self.name,
                canonicalize,
                high_priority=True,
                extraction_level=result.level.value,
                error="No data recoverable from response_text",
            )
        return scenario_from_record(
            _overlay_parsed(record, result.data),
            position,
            self.name,
            canonicalize,
            high_priority=True,
            extraction_level=result.level.value,
        )


class OriginalScenariosAdapter(ListContainerAdapter):
    """original_scenarios: the scenario definitions the run started from."""

    key = "original_scenarios"

    @property
    def priority(self) -> int:
        return 20


class ScenariosAdapter(ListContainerAdapter):
    """scenarios: already-formatted scenario objects."""

    key = "scenarios"

    @property
    def priority(self) -> int:
        return 30


class ResultsAdapter(ListContainerAdapter):
    """
    results from the formatter step.

    A result is either a scenario object itself or a wrapper whose
    response_text holds JSON with scenarios / scenario_rankings, or a
    single scenario.
    """

    key = "results"

    @property
    def priority(self) -> int:
        return 40

    def extract(self, fragment: dict, canonicalize: Canonicalizer) -> list[Scenario]:
        scenarios = []
        for position, result in enumerate(fragment[self.key], start=1):
            if not isinstance(result, dict):
                continue
            scenarios.extend(self._from_result(result, position, canonicalize))
        logger.info(f"Found {len(scenarios)} scenarios in results")
        return scenarios

    def _from_result(
        self, result: dict, position: int, canonicalize: Canonicalizer
    ) -> list[Scenario]:
        text = result.get("response_text")
        if _has_direct_content(result) or not isinstance(text, str):
            if _has_direct_content(result) or not is_absent(result.get("scenario_id")):
                return [scenario_from_record(result, position, self.name, canonicalize)]
            return []

        label = f"result {result.get('scenario_id', position)}"
        extracted = extract_json(text, label=label)
        level = extracted.level.value
        if not extracted.ok:
            return [
                scenario_from_record(
                    result,
                    position,
                    self.name,
                    canonicalize,
                    extraction_level=level,
                    error="No data recoverable from response_text",
                )
            ]

        parsed = extracted.data
        nested = []
        for key in ("scenarios", "scenario_rankings"):
            records = parsed.get(key)
            if isinstance(records, list):
                for index, record in enumerate(records, start=1):
                    if isinstance(record, dict):
                        nested.append(
                            scenario_from_record(
                                record, index, self.name, canonicalize, extraction_level=level
                            )
                        )
        if nested:
            return nested

        record = _overlay_parsed(result, parsed)
        if "scenario_id" not in record and "scenario_id" in parsed:
            record["scenario_id"] = parsed["scenario_id"]
        return [
            scenario_from_record(record, position, self.name, canonicalize, extraction_level=level)
        ]


def _has_direct_content(record: dict) -> bool:
    return bool(
        first_present(record, COMPETITOR_LIST_KEYS)
        or first_present(record, TITLE_KEYS)
        or first_present(record, DESCRIPTION_KEYS)
        or not is_absent(record.get("analysis_details"))
    )


class ScenarioArrayAdapter(FragmentAdapter):
    """Any other array whose entries look like scenarios."""

    RESERVED_KEYS = frozenset(
        {
            "scenario_rankings",
            "scenarios",
            "original_scenarios",
            "results",
            "data",
            "data_sources_table",
            "whitelist",
            *CITATION_CONTAINERS,
        }
    )

    @property
    def name(self) -> str:
        return "scenario_array"

    @property
    def priority(self) -> int:
        return 50

    def _keys(self, fragment: dict) -> list[str]:
        keys = []
        for key, value in fragment.items():
            if key in self.RESERVED_KEYS or not isinstance(value, list) or not value:
                continue
            first = value[0]
            if isinstance(first, dict) and (
                not is_absent(first.get("scenario_id"))
                or not is_absent(first.get("scenario_title"))
            ):
                keys.append(key)
        return keys

    def matches(self, fragment: dict) -> bool:
        return bool(self._keys(fragment))

    def extract(self, fragment: dict, canonicalize: Canonicalizer) -> list[Scenario]:
        scenarios = []
        for key in self._keys(fragment):
            for position, record in enumerate(fragment[key], start=1):
                if isinstance(record, dict):
                    scenarios.append(
                        scenario_from_record(record, position, f"{self.name}:{key}", canonicalize)
                    )
            logger.info(f"Array '{key}' appears to contain scenario data")
        return scenarios


class BareScenarioAdapter(FragmentAdapter):
    """The fragment is itself one scenario (scenario_id plus a title)."""

    @property
    def name(self) -> str:
        return "bare_scenario"

    @property
    def priority(self) -> int:
        return 90

    @property
    def is_fallback(self) -> bool:
        return True

    def matches(self, fragment: dict) -> bool:
        has_id = not is_absent(fragment.get("scenario_id"))
        return has_id and bool(first_present(fragment, TITLE_KEYS))

    def extract(self, fragment: dict, canonicalize: Canonicalizer) -> list[Scenario]:
        logger.info(f"Found individual scenario: {first_present(fragment, TITLE_KEYS)}")
        return [scenario_from_record(fragment, 1, self.name, canonicalize)]


DEFAULT_ADAPTERS: tuple[FragmentAdapter, ...] = (
    ScenarioRankingsAdapter(),
    OriginalScenariosAdapter(),
    ScenariosAdapter(),
    ResultsAdapter(),
    ScenarioArrayAdapter(),
    BareScenarioAdapter(),
)


def extract_scenarios(
    fragment: Any,
    canonicalize: Canonicalizer,
    adapters: tuple[FragmentAdapter, ...] = DEFAULT_ADAPTERS,
) -> list[Scenario]:
    """
    Run the adapter set over one fragment.

    Every matching container adapter contributes candidates, in priority
    order. Fallback adapters run only if no container adapter matched.

    Args:
        fragment: One upstream fragment (non-dicts yield nothing)
        canonicalize: Company-name canonicalizer
        adapters: Adapter set (default: DEFAULT_ADAPTERS)

    Returns:
        Scenario candidates in adapter-priority order
    """
    if not isinstance(fragment, dict):
        return []

    ordered = sorted(adapters, key=lambda a: a.priority)
    candidates: list[Scenario] = []
    matched = False
    for adapter in ordered:
        if adapter.is_fallback:
            continue
        if adapter.matches(fragment):
            matched = True
            candidates.extend(adapter.extract(fragment, canonicalize))

    if not matched:
        for adapter in ordered:
            if adapter.is_fallback and adapter.matches(fragment):
                candidates.extend(adapter.extract(fragment, canonicalize))
                break

    return candidates
