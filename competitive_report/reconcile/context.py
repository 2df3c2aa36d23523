"""
Explicit per-run context for reconciliation.

Everything a reconcile run needs from outside its input fragments
(a known target company, a whitelist of canonical competitor names,
a clock) is passed in here rather than read from shared state.
"""

from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime, timezone

from competitive_report.normalization.company_names import build_canonicalizer


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass(frozen=True)
class ReconcileContext:
    """
    Inputs to a reconcile run that do not come from the fragments.

    Attributes:
        company: Target company, when the caller already knows it
        whitelist: Canonical spellings for competitor names
        now: Clock used for metadata.generated_at
    """

    company: str | None = None
    whitelist: tuple[str, ...] = ()
    now: Callable[[], datetime] = field(default=_utcnow, compare=False)

    def canonicalizer(self, extra_names: Iterable[str] = ()) -> Callable[[str], str]:
        """Canonicalizer over this context's whitelist plus extra_names."""
        return build_canonicalizer([*self.whitelist, *extra_names])
