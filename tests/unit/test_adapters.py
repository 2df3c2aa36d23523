"""
Unit tests for fragment adapters.
"""

import copy
import json

from competitive_report.reconcile.adapters import (
    BareScenarioAdapter,
    ResultsAdapter,
    ScenarioArrayAdapter,
    ScenarioRankingsAdapter,
    extract_scenarios,
)


def canonicalize(name):
    return name.strip()


class TestScenarioRankingsAdapter:
    """Test scenario_rankings handling."""

    def test_ranked_list(self):
        """Test a ranking with an explicit competitor list."""
        fragment = {
            "scenario_rankings": [
                {
                    "scenario_id": 1,
                    "scenario_title": "Luxury Weekend Getaways",
                    "competitors_ranked": [
                        {"company": "Acme Hotels", "score": 9, "rank": 1},
                        {"company": "Beta Resorts", "score": 7, "rank": 2},
                    ],
                    "key_findings": ["Acme leads on amenities"],
                }
            ]
        }
        scenarios = extract_scenarios(fragment, canonicalize)
        assert len(scenarios) == 1
        scenario = scenarios[0]
        assert scenario.scenario_id == 1
        assert scenario.title == "Luxury Weekend Getaways"
        assert scenario.high_priority
        assert scenario.origin == "scenario_rankings"
        assert [c.company for c in scenario.ranked_competitors] == ["Acme Hotels", "Beta Resorts"]
        assert scenario.key_findings == ["Acme leads on amenities"]

    def test_analysis_details_only(self, acme_rankings_fragment):
        """Test competitors derived from analysis_details."""
        scenario = extract_scenarios(acme_rankings_fragment, canonicalize)[0]
        assert len(scenario.ranked_competitors) == 1
        acme = scenario.ranked_competitors[0]
        assert (acme.company, acme.score, acme.rank) == ("Acme", 7.0, 1)

    def test_response_text_mined(self):
        """Test a ranking whose data lives only in response_text."""
        body = {
            "scenario_title": "Family Pool Vacations",
            "competitors_ranked": [{"company": "Acme", "score": 9, "rank": 1}],
        }
        fragment = {
            "scenario_rankings": [
                {"scenario_id": 2, "response_text": f"```json\n{json.dumps(body)}\n```"}
            ]
        }
        scenario = extract_scenarios(fragment, canonicalize)[0]
        assert scenario.title == "Family Pool Vacations"
        assert scenario.extraction_level == "fenced"
        assert scenario.ranked_competitors[0].company == "Acme"
        assert scenario.error is None

    def test_unrecoverable_response_text(self):
        """Test a ranking whose response_text holds nothing usable."""
        fragment = {"scenario_rankings": [{"scenario_id": 2, "response_text": "Sorry."}]}
        scenario = extract_scenarios(fragment, canonicalize)[0]
        assert scenario.extraction_level == "empty"
        assert scenario.error == "No data recoverable from response_text"
        assert scenario.ranked_competitors == []

    def test_priority(self):
        """Test that rankings run before other adapters."""
        assert ScenarioRankingsAdapter().priority < ResultsAdapter().priority


class TestResultsAdapter:
    """Test results handling."""

    def test_direct_result(self):
        """Test a result that is itself a scenario."""
        fragment = {"results": [{"scenario_id": 4, "title": "Spa Weekend Packages"}]}
        scenarios = extract_scenarios(fragment, canonicalize)
        assert [(s.scenario_id, s.origin) for s in scenarios] == [(4, "results")]

    def test_nested_scenarios_in_response_text(self):
        """Test response_text holding several scenarios."""
        body = {
            "scenarios": [
                {"scenario_id": 1, "scenario_title": "Luxury Weekend Getaways"},
                {"scenario_id": 2, "scenario_title": "Family Pool Vacations"},
            ]
        }
        fragment = {"results": [{"response_text": json.dumps(body)}]}
        scenarios = extract_scenarios(fragment, canonicalize)
        assert [s.scenario_id for s in scenarios] == [1, 2]
        assert all(s.extraction_level == "structured" for s in scenarios)

    def test_single_scenario_in_response_text(self):
        """Test response_text holding one scenario."""
        body = {"title": "Business Travel Deals", "competitors_ranked": [{"company": "Acme"}]}
        fragment = {"results": [{"scenario_id": 3, "response_text": json.dumps(body)}]}
        scenario = extract_scenarios(fragment, canonicalize)[0]
        assert scenario.scenario_id == 3
        assert scenario.title == "Business Travel Deals"

    def test_empty_result_skipped(self):
        """Test a result with neither content nor id."""
        assert extract_scenarios({"results": [{"status": "ok"}]}, canonicalize) == []


class TestScenarioArrayAdapter:
    """Test detection of scenario-shaped arrays under other keys."""

    def test_other_key(self):
        """Test an array of scenario objects under an unexpected key."""
        fragment = {"analysis_rows": [{"scenario_id": 5, "scenario_title": "Ski Resort Access"}]}
        scenarios = extract_scenarios(fragment, canonicalize)
        assert scenarios[0].origin == "scenario_array:analysis_rows"

    def test_citation_containers_ignored(self):
        """Test that reserved keys are not scanned."""
        fragment = {"enhanced_citations": [{"scenario_id": 1, "claim_text": "x"}]}
        assert not ScenarioArrayAdapter().matches(fragment)


class TestBareScenarioAdapter:
    """Test the fallback adapter."""

    def test_bare_fragment(self):
        """Test a fragment that is itself a scenario."""
        fragment = {"scenario_id": 3, "scenario_title": "Business Travel Deals"}
        scenarios = extract_scenarios(fragment, canonicalize)
        assert [(s.scenario_id, s.origin) for s in scenarios] == [(3, "bare_scenario")]

    def test_not_used_when_container_matched(self):
        """Test that the fallback is skipped when a container adapter ran."""
        fragment = {
            "scenario_id": 9,
            "title": "Ignored Fragment Title",
            "scenarios": [{"scenario_id": 1, "title": "Luxury Weekend Getaways"}],
        }
        scenarios = extract_scenarios(fragment, canonicalize)
        assert [s.scenario_id for s in scenarios] == [1]

    def test_needs_title(self):
        """Test that an id alone is not a scenario."""
        assert not BareScenarioAdapter().matches({"scenario_id": 3})


def test_missing_id_falls_back_to_position():
    """Test that scenario_id defaults to the container position."""
    fragment = {"scenarios": [{"title": "First Scenario Here"}, {"title": "Second Scenario"}]}
    assert [s.scenario_id for s in extract_scenarios(fragment, canonicalize)] == [1, 2]


def test_non_dict_fragment():
    """Test that junk fragments yield nothing."""
    assert extract_scenarios("junk", canonicalize) == []
    assert extract_scenarios(None, canonicalize) == []


def test_input_not_mutated():
    """Test that extraction leaves the fragment untouched."""
    fragment = {
        "scenario_rankings": [
            {"scenario_id": 1, "response_text": '{"title": "Pet Friendly Stays"}'},
            "junk",
        ],
        "results": [{"scenario_id": 2, "title": "Spa Weekend Packages", "sources": ["a.com"]}],
    }
    snapshot = copy.deepcopy(fragment)
    extract_scenarios(fragment, canonicalize)
    assert fragment == snapshot
