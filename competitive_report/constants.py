"""
Constants for competitive_report.

Central location for placeholder names, citation defaults and the
patterns shared by the normalization and reconcile layers.
"""

import re

# Company names that upstream steps emit when they do not know the company
PLACEHOLDER_COMPANY_NAMES = frozenset(
    {"", "report", "unknown company", "company", "target company"}
)
UNKNOWN_COMPANY = "Unknown Company"

# Fields that may carry the target company, checked in order
COMPANY_FIELDS = ("company", "company_name", "target_company")
NESTED_COMPANY_FIELDS = (("business_context", "company"), ("report_metadata", "company"))

# Titles like "Scenario 3" or "Competitive Analysis - Scenario 3" carry no content
GENERIC_TITLE_PATTERN = re.compile(
    r"^\s*(competitive analysis\s*-\s*)?scenario\s*\d*\s*$", re.IGNORECASE
)
MIN_GOOD_TITLE_LENGTH = 10
MAX_DERIVED_TITLE_LENGTH = 60
DERIVED_TITLE_WORDS = 6

# Query parameters that only track the click, not the content
TRACKING_PARAM_PATTERN = re.compile(
    r"^utm_|^(fbclid|gclid|mc_cid|mc_eid|ref|ref_src)$", re.IGNORECASE
)

# Trailing words dropped when grouping competitors across scenarios
COMPANY_SUFFIXES = (
    "hotels",
    "hotel",
    "resorts",
    "resort",
    "casino",
    "group",
    "holdings",
    "holding",
    "inc",
    "llc",
    "ltd",
    "co",
    "corp",
    "corporation",
    "company",
)

# Citation enums
SOURCE_ORIGINS = frozenset(
    {
        "training_data",
        "real_time_search",
        "hybrid",
        "web_research",
        "company_filing",
        "unknown",
    }
)
VERIFICATION_STATUSES = frozenset({"verified", "unverified", "conflicting"})

# Defaults applied to citations only when the field is absent
CITATION_DEFAULTS = {
    "claim_category": "competitive_analysis",
    "claim_impact_score": 5,
    "source_type": "web_research",
    "author": "Unknown",
    "author_credibility_score": 5,
    "source_origin": "unknown",
    "authority_score": 5,
    "verification_status": "unverified",
    "confidence_level": "medium",
    "influence_weight": 0.5,
    "content_type": "competitive_research",
    "bias_indicators": "unknown",
    "cross_references": 0,
    "sentiment_direction": "neutral",
}
DEFAULT_CITATION_TAGS = ("competitive_analysis",)

# Citation containers found on upstream fragments
CITATION_CONTAINERS = (
    "enhanced_citations",
    "source_citations",
    "scraping_results",
    "research_results",
    "data_sources",
)

# Authority thresholds
SCENARIO_HIGH_AUTHORITY = 7
REPORT_HIGH_AUTHORITY = 8
TOP_PUBLISHERS_LIMIT = 5

NO_SCENARIOS_PLACEHOLDER = "No scenarios available"
