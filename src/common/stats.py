from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Optional, Sequence

from state.models import ImcRecord


@dataclass
class ImcSummary:
    count: int = 0
    average: Optional[float] = None  # rounded to 2 decimals
    latest: Optional[ImcRecord] = None
    minimum: Optional[float] = None
    maximum: Optional[float] = None
    by_category: Dict[str, int] = field(default_factory=dict)


def summarize(records: Sequence[ImcRecord]) -> ImcSummary:
    """Aggregate a BMI history for the dashboard.

    `latest` is the record with the newest `created_at` (falling back to the
    last one in server order when timestamps are missing). Category counts
    keep first-seen order.
    """
    if not records:
        return ImcSummary()

    values = [r.imc for r in records]
    by_category: Dict[str, int] = {}
    for r in records:
        by_category[r.categoria] = by_category.get(r.categoria, 0) + 1

    dated = [r for r in records if r.created_at is not None]
    latest = max(dated, key=lambda r: r.created_at) if dated else records[-1]

    return ImcSummary(
        count=len(records),
        average=round(sum(values) / len(values), 2),
        latest=latest,
        minimum=min(values),
        maximum=max(values),
        by_category=by_category,
    )


__all__ = ["ImcSummary", "summarize"]
