"""
Unit tests for end-to-end report reconciliation.
"""

import copy

from competitive_report.reconcile import ReconcileContext, reconcile, reconcile_items
from competitive_report.reconcile.reconciler import flatten_fragments, unwrap_items


class TestUnwrap:
    """Test item unwrapping and flattening."""

    def test_envelopes_and_bare_fragments(self):
        """Test that json envelopes are opened and bare dicts kept."""
        items = [{"json": {"a": 1}}, {"b": 2}]
        assert unwrap_items(items) == [{"a": 1}, {"b": 2}]
        assert unwrap_items({"json": {"a": 1}}) == [{"a": 1}]
        assert unwrap_items("junk") == []

    def test_nested_data_flattened(self):
        """Test that nested data arrays follow their parent."""
        fragments = [{"data": [{"x": 1}, {"data": [{"y": 2}]}, "junk"]}, {"z": 3}]
        flat = flatten_fragments(fragments)
        assert [sorted(f) for f in flat] == [["data"], ["x"], ["data"], ["y"], ["z"]]


class TestReconcile:
    """Test reconcile."""

    def test_competitors_from_analysis_details(self, acme_rankings_fragment):
        """Test a ranking with only analysis_details."""
        document = reconcile([{"json": acme_rankings_fragment}])
        scenario = document.scenarios[0]
        assert scenario.scenario_id == 1
        assert len(scenario.ranked_competitors) == 1
        acme = scenario.ranked_competitors[0]
        assert (acme.company, acme.score, acme.rank) == ("Acme", 7.0, 1)

    def test_explicit_ranking_is_authoritative(self):
        """Test that upstream ranks survive when a lower rank has a higher score."""
        items = [
            {
                "scenario_rankings": [
                    {
                        "scenario_id": 1,
                        "scenario_title": "Luxury Suite Comparison",
                        "competitors_ranked": [
                            {"company": "Acme", "rank": 1, "score": 7},
                            {"company": "Beta", "rank": 2, "score": 9},
                        ],
                    }
                ]
            }
        ]
        document = reconcile(items)
        ranked = document.scenarios[0].ranked_competitors
        assert [(c.company, c.rank) for c in ranked] == [("Acme", 1), ("Beta", 2)]
        assert [(r.name, r.wins) for r in document.head_to_head] == [("Acme", 1), ("Beta", 0)]

    def test_tracking_duplicate_citations(self):
        """Test two citations differing only by utm_source."""
        items = [
            {"json": {"claim_text": "Acme leads", "source_url": "https://example.com/r"}},
            {
                "json": {
                    "claim_text": "Acme leads",
                    "source_url": "https://example.com/r?utm_source=x",
                }
            },
        ]
        document = reconcile(items)
        assert len(document.citations) == 1

    def test_company_inferred(self, three_scenario_fragments):
        """Test company inference and the head-to-head table."""
        document = reconcile(three_scenario_fragments)
        assert document.company == "Acme Hotels"
        assert document.metadata.company_source == "inferred"
        assert document.metadata.total_scenarios == 3
        assert document.metadata.competitors_analyzed == ["Acme Hotels", "Beta Resorts"]
        leader = document.head_to_head[0]
        assert (leader.name, leader.wins, leader.scenarios) == ("Acme Hotels", 3, 3)

    def test_context_company_and_clock(self, three_scenario_fragments, fixed_now):
        """Test that the context supplies the company and timestamp."""
        context = ReconcileContext(company="Beta Resorts", now=fixed_now)
        document = reconcile(three_scenario_fragments, context)
        assert document.company == "Beta Resorts"
        assert document.metadata.company_source == "context"
        assert document.metadata.generated_at == fixed_now().isoformat()

    def test_no_scenarios_placeholder(self):
        """Test the document produced from nothing usable."""
        document = reconcile([])
        assert document.scenarios == []
        assert document.company == "Unknown Company"
        assert document.metadata.placeholder == "No scenarios available"

    def test_malformed_input_never_raises(self):
        """Test junk items of every shape."""
        items = [
            None,
            5,
            "text",
            {"json": "not a dict"},
            {"scenario_rankings": "oops"},
            {"scenario_rankings": [None, {"competitors_ranked": "x"}]},
            {"results": [{"response_text": 42}]},
            {"enhanced_citations": [None, 3, {"authority_score": "x"}]},
            {"data": "not a list"},
        ]
        document = reconcile(items)
        assert document.metadata.total_scenarios == len(document.scenarios)

    def test_merge_across_fragments(self):
        """Test one scenario described by several fragments."""
        items = [
            {"json": {"original_scenarios": [{"scenario_id": 2, "title": "Scenario 2"}]}},
            {
                "json": {
                    "scenario_rankings": [
                        {
                            "scenario_id": 2,
                            "competitors_ranked": [
                                {"company": "Acme", "score": 8, "rank": 1},
                                {"company": "acme", "score": 6, "rank": 2},
                                {"company": "Beta", "score": 7, "rank": 3},
                            ],
                        }
                    ]
                }
            },
            {"json": {"results": [{"scenario_id": 2, "title": "Pet Friendly Stays"}]}},
        ]
        document = reconcile(items)
        assert len(document.scenarios) == 1
        scenario = document.scenarios[0]
        assert scenario.title == "Pet Friendly Stays"
        assert [(c.company, c.rank) for c in scenario.ranked_competitors] == [
            ("Acme", 1),
            ("Beta", 2),
        ]

    def test_whitelist_from_fragment(self):
        """Test that a fragment whitelist canonicalizes names."""
        items = [
            {"whitelist": ["The Venetian Resort"]},
            {
                "scenarios": [
                    {
                        "scenario_id": 1,
                        "title": "Luxury Weekend Getaways",
                        "competitors_ranked": [{"company": "venetian resort"}],
                    }
                ]
            },
        ]
        document = reconcile(items)
        assert document.scenarios[0].ranked_competitors[0].company == "The Venetian Resort"

    def test_context_whitelist(self):
        """Test that the context whitelist canonicalizes names."""
        items = [{"scenario_id": 1, "title": "Luxury Weekend Getaways", "competitors": ["wynn"]}]
        document = reconcile(items, ReconcileContext(whitelist=("Wynn",)))
        assert document.scenarios[0].ranked_competitors[0].company == "Wynn"

    def test_prebuilt_source_rows(self):
        """Test that data_sources_table rows reach the sources table."""
        items = [{"data_sources_table": [{"title": "Hotel census", "url": "https://census.gov"}]}]
        document = reconcile(items)
        assert [r.title for r in document.sources_table] == ["Hotel census"]

    def test_ranks_contiguous(self, three_scenario_fragments):
        """Test rank contiguity in every scenario."""
        for scenario in reconcile(three_scenario_fragments).scenarios:
            ranks = [c.rank for c in scenario.ranked_competitors]
            assert ranks == list(range(1, len(ranks) + 1))

    def test_inputs_not_mutated(self, three_scenario_fragments, acme_rankings_fragment):
        """Test that reconcile leaves its inputs alone."""
        items = [*three_scenario_fragments, {"json": acme_rankings_fragment}]
        snapshot = copy.deepcopy(items)
        reconcile(items)
        assert items == snapshot

    def test_deterministic(self, three_scenario_fragments, fixed_now):
        """Test that the same inputs and clock give the same document."""
        context = ReconcileContext(now=fixed_now)
        first = reconcile(three_scenario_fragments, context).to_dict()
        second = reconcile(three_scenario_fragments, context).to_dict()
        assert first == second


def test_reconcile_items_envelope(three_scenario_fragments):
    """Test the workflow-shaped output."""
    output = reconcile_items(three_scenario_fragments)
    assert len(output) == 1
    document = output[0]["json"]
    assert set(document) == {
        "company",
        "scenarios",
        "citations",
        "sources_table",
        "head_to_head",
        "metadata",
    }
    assert document["scenarios"][0]["ranked_competitors"][0]["company"] == "Acme Hotels"
    assert "high_priority" not in document["scenarios"][0]
