"""Field normalization: URLs and company names."""

from competitive_report.normalization.company_names import (
    base_name,
    build_canonicalizer,
    grouping_key,
    is_placeholder_company,
)
from competitive_report.normalization.urls import (
    coerce_url,
    domain_of,
    find_domain_in_text,
    normalize_url,
)

__all__ = [
    "base_name",
    "build_canonicalizer",
    "grouping_key",
    "is_placeholder_company",
    "coerce_url",
    "domain_of",
    "find_domain_in_text",
    "normalize_url",
]
