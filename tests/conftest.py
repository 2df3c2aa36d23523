"""
Pytest configuration and shared fixtures for competitive_report tests.
"""

import os
from datetime import datetime, timezone

import pytest

# Set test environment variables if not already set
if not os.getenv("RETRY_BASE_DELAY_MS"):
    os.environ["RETRY_BASE_DELAY_MS"] = "10000"
if not os.getenv("RETRY_JITTER_MS"):
    os.environ["RETRY_JITTER_MS"] = "2000"
if not os.getenv("SLACK_WEBHOOK_URL"):
    os.environ["SLACK_WEBHOOK_URL"] = ""


class FixedRandom:
    """Stand-in for random.Random that always returns the same draw."""

    def __init__(self, value: float = 0.0):
        self.value = value

    def random(self) -> float:
        return self.value


@pytest.fixture
def fixed_now():
    """Clock returning 2025-01-02T03:04:05.678Z."""
    moment = datetime(2025, 1, 2, 3, 4, 5, 678000, tzinfo=timezone.utc)
    return lambda: moment


@pytest.fixture
def zero_jitter():
    """Random source whose jitter draw is always 0."""
    return FixedRandom(0.0)


@pytest.fixture
def acme_rankings_fragment():
    """scenario_rankings fragment whose only data is analysis_details."""
    return {
        "scenario_rankings": [
            {
                "scenario_id": 1,
                "competitors_ranked": [],
                "analysis_details": {"Acme": {"metrics": {"quality": 8, "value": 6}}},
            }
        ]
    }


@pytest.fixture
def three_scenario_fragments():
    """Three scenarios where Acme Hotels ranks first and Beta Resorts second."""
    titles = ["Luxury Weekend Getaways", "Family Pool Vacations", "Business Travel Deals"]
    return [
        {
            "json": {
                "scenario_id": i,
                "scenario_title": title,
                "competitors_ranked": [
                    {"company": "Acme Hotels", "rank": 1},
                    {"company": "Beta Resorts", "rank": 2},
                ],
            }
        }
        for i, title in enumerate(titles, start=1)
    ]
