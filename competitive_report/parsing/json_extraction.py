"""
Best-effort JSON extraction from LLM response text.

LLM responses wrap the JSON we want in prose, markdown fences, or truncate
it mid-object. extract_json() walks a ladder of increasingly lenient
strategies and reports which one succeeded:

    STRUCTURED     the whole text parses as a JSON object
    FENCED         a ```json fenced block parses
    BRACE_MATCHED  the first balanced {...} span parses
    REGEX_FIELDS   individual fields scraped with regular expressions
    EMPTY          nothing recoverable

Every step down the ladder is logged so degraded reports can be traced.
"""

import json
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Any

logger = logging.getLogger(__name__)

FENCED_BLOCK = re.compile(r"```json\s*([\s\S]*?)\s*```", re.IGNORECASE)
OPEN_FENCE = re.compile(r"```json\s*([\s\S]*)", re.IGNORECASE)
TRAILING_COMMA = re.compile(r",(\s*[}\]])")

TITLE_FIELD = re.compile(r'"(?:scenario_)?title"\s*:\s*"((?:[^"\\]|\\.)+)"')
DESCRIPTION_FIELD = re.compile(r'"(?:scenario_)?description"\s*:\s*"((?:[^"\\]|\\.)*)"')
COMPETITORS_START = re.compile(r'"competitors_ranked"\s*:\s*\[')
COMPANY_FIELD = re.compile(r'"(?:company|name)"\s*:\s*"((?:[^"\\]|\\.)+)"')
SCORE_FIELD = re.compile(r'"score"\s*:\s*(-?\d+(?:\.\d+)?)')
RANK_FIELD = re.compile(r'"(?:rank|position)"\s*:\s*(\d+)')
RATIONALE_FIELD = re.compile(r'"rationale"\s*:\s*"((?:[^"\\]|\\.)*)"')
KEY_FINDINGS_FIELD = re.compile(r'"key_findings"\s*:\s*\[([\s\S]*?)\]')
QUOTED_STRING = re.compile(r'"((?:[^"\\]|\\.)*)"')


class ExtractionLevel(str, Enum):
    """How much of the response had to be guessed."""

    STRUCTURED = "structured"
    FENCED = "fenced"
    BRACE_MATCHED = "brace_matched"
    REGEX_FIELDS = "regex_fields"
    EMPTY = "empty"


@dataclass(frozen=True)
class ExtractionResult:
    """Recovered object (or None) plus the ladder level that produced it."""

    data: dict[str, Any] | None
    level: ExtractionLevel

    @property
    def ok(self) -> bool:
        return self.data is not None


def extract_json(text: Any, label: str = "response") -> ExtractionResult:
    """
    Recover a JSON object from LLM output.

    Args:
        text: Response text, or an already-parsed dict
        label: Short identifier used in log messages (e.g. "scenario 3")

    Returns:
        ExtractionResult; data is None only at ExtractionLevel.EMPTY
    """
    if isinstance(text, dict):
        return ExtractionResult(text, ExtractionLevel.STRUCTURED)
    if not isinstance(text, str) or not text.strip():
        logger.debug(f"No response text for {label}")
        return ExtractionResult(None, ExtractionLevel.EMPTY)

    parsed = _loads_object(text.strip())
    if parsed is not None:
        return ExtractionResult(parsed, ExtractionLevel.STRUCTURED)

    fenced = _from_fence(text)
    if fenced is not None:
        logger.debug(f"Parsed fenced JSON block for {label}")
        return ExtractionResult(fenced, ExtractionLevel.FENCED)

    span = balanced_object_span(text)
    if span is not None:
        parsed = _loads_object(span)
        if parsed is not None:
            logger.info(f"Recovered JSON for {label} by brace matching")
            return ExtractionResult(parsed, ExtractionLevel.BRACE_MATCHED)

    scraped = scrape_fields(text)
    if scraped:
        logger.warning(
            f"JSON parsing failed for {label}; scraped fields: {', '.join(sorted(scraped))}"
        )
        return ExtractionResult(scraped, ExtractionLevel.REGEX_FIELDS)

    logger.warning(f"No JSON recoverable from {label}")
    return ExtractionResult(None, ExtractionLevel.EMPTY)


def balanced_object_span(text: str, start: int = 0) -> str | None:
    """
    Return the first balanced {...} span at or after start.

    Braces inside JSON string literals are ignored. Returns None if no
    opening brace exists or the object never closes.
    """
    open_pos = text.find("{", start)
    if open_pos == -1:
        return None

    depth = 0
    in_string = False
    escaped = False
    for pos in range(open_pos, len(text)):
        char = text[pos]
        if in_string:
            if escaped:
                escaped = False
            elif char == "\\":
                escaped = True
            elif char == '"':
                in_string = False
            continue
        if char == '"':
            in_string = True
        elif char == "{":
            depth += 1
        elif char == "}":
            depth -= 1
            if depth == 0:
                return text[open_pos : pos + 1]
    return None


def scrape_fields(text: str) -> dict[str, Any]:
    """
    Pull title, description, ranked competitors and key findings out of
    text that is JSON-like but does not parse.

    Returns:
        Dict with whichever of scenario_title, scenario_description,
        competitors_ranked, key_findings were found (may be empty)
    """
    result: dict[str, Any] = {}

    title = TITLE_FIELD.search(text)
    if title:
        result["scenario_title"] = _unescape(title.group(1))

    description = DESCRIPTION_FIELD.search(text)
    if description and description.group(1):
        result["scenario_description"] = _unescape(description.group(1))

    competitors = _scrape_competitors(text)
    if competitors:
        result["competitors_ranked"] = competitors

    findings = KEY_FINDINGS_FIELD.search(text)
    if findings:
        values = [_unescape(v) for v in QUOTED_STRING.findall(findings.group(1)) if v.strip()]
        if values:
            result["key_findings"] = values

    return result


def _scrape_competitors(text: str) -> list[dict[str, Any]]:
    start = COMPETITORS_START.search(text)
    if not start:
        return []

    competitors = []
    pos = start.end()
    while pos < len(text):
        open_pos = text.find("{", pos)
        close = text.find("]", pos)
        if open_pos == -1 or (close != -1 and close < open_pos):
            break

        # A truncated final object is scraped as far as it goes
        span = balanced_object_span(text, open_pos) or text[open_pos:]

        company = COMPANY_FIELD.search(span)
        if company:
            entry: dict[str, Any] = {"company": _unescape(company.group(1))}
            score = SCORE_FIELD.search(span)
            if score:
                entry["score"] = float(score.group(1))
            rank = RANK_FIELD.search(span)
            if rank:
                entry["rank"] = int(rank.group(1))
            rationale = RATIONALE_FIELD.search(span)
            if rationale:
                entry["rationale"] = _unescape(rationale.group(1))
            competitors.append(entry)

        pos = open_pos + len(span)
    return competitors


def _from_fence(text: str) -> dict[str, Any] | None:
    match = FENCED_BLOCK.search(text)
    if match:
        parsed = _loads_object(match.group(1))
        if parsed is not None:
            return parsed

    # Unterminated fence: the object may still be complete inside it
    match = OPEN_FENCE.search(text)
    if match:
        span = balanced_object_span(match.group(1))
        if span is not None:
            return _loads_object(span)
    return None


def _loads_object(candidate: str) -> dict[str, Any] | None:
    for attempt in (candidate, TRAILING_COMMA.sub(r"\1", candidate)):
        try:
            parsed = json.loads(attempt)
        except (json.JSONDecodeError, ValueError):
            continue
        if isinstance(parsed, dict):
            return parsed
    return None


def _unescape(value: str) -> str:
    try:
        return json.loads(f'"{value}"')
    except (json.JSONDecodeError, ValueError):
        return value
