"""
Rollup of per-week rating records into chart buckets.

Everything here is a pure function over rating records (ORM rows or any
object with ``category``, ``percentage``, ``score``, ``week`` and optionally
``rating_date``). A percentage of 0 or a missing value means "not rated in
that slot" and is left out of every average instead of being counted as 0.

Averaging is two-level: within a bucket each category is averaged over its
weeks first, and the bucket's overall average is the mean of those category
averages. Averages are rounded half-up to whole percentages.
"""
from __future__ import annotations
import math
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

from .models import CATEGORIES
from .schema import Bucketing, BucketAverage, CategoryScore, Rollup, WeeklyAggregate

WEEKS_PER_BUCKET = {
    Bucketing.monthly: 4,
    Bucketing.trimester: 12,
    Bucketing.six_month: 24,
    Bucketing.yearly: 52,
}
MULTI_YEAR_HORIZONS = (4, 6, 20)

_BUCKET_NAMES = {
    Bucketing.monthly: "Month",
    Bucketing.trimester: "Trimester",
    Bucketing.six_month: "Half",
    Bucketing.yearly: "Year",
}


@dataclass(frozen=True)
class WeekRange:
    start: int
    end: int
    label: str
    start_date: Optional[date] = None

    def contains(self, week: int) -> bool:
        return self.start <= week <= self.end


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def _mean(values: Sequence[float]) -> Optional[int]:
    if not values:
        return None
    return round_half_up(sum(values) / len(values))


def _category(record: Any) -> str:
    return getattr(record.category, "value", record.category)


def _rated(record: Any) -> bool:
    return bool(record.percentage) and record.percentage > 0


def _as_date(value: Any) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    return value


def _add_months(start: date, months: int) -> date:
    index = start.month - 1 + months
    return date(start.year + index // 12, index % 12 + 1, 1)


# ---------- weekly view ----------

def weekly_aggregates(records: Iterable[Any]) -> List[WeeklyAggregate]:
    """One aggregate per (staff, week), sorted by staff then week."""
    grouped: Dict[Tuple[int, int], Dict[str, CategoryScore]] = {}
    for r in records:
        slot = grouped.setdefault((r.staff_id, r.week), {})
        slot[_category(r)] = CategoryScore(points=r.score or 0, percentage=r.percentage or 0)

    out = []
    for (staff_id, week), categories in sorted(grouped.items()):
        rated = [c.percentage for c in categories.values() if c.percentage > 0]
        out.append(
            WeeklyAggregate(
                staff_id=staff_id,
                week=week,
                categories=categories,
                average_percentage=_mean(rated) or 0,
            )
        )
    return out


# ---------- bucketing ----------

def week_ranges(
    bucketing: Bucketing,
    weeks: Iterable[int],
    *,
    horizon_years: Optional[int] = None,
    first_rating_date: Optional[date] = None,
) -> List[WeekRange]:
    """
    Buckets for the given week numbers.

    Weekly buckets are the distinct weeks present. Fixed-width bucketings
    start at week 1 and cover up to the latest week. Yearly with a
    ``horizon_years`` of 4, 6 or 20 gives exactly that many 52-week blocks.
    """
    bucketing = Bucketing(bucketing)
    weeks = sorted(set(weeks))
    if horizon_years is not None:
        if bucketing != Bucketing.yearly:
            raise ValueError("horizon_years only applies to yearly bucketing")
        if horizon_years not in MULTI_YEAR_HORIZONS:
            raise ValueError(f"horizon_years must be one of {MULTI_YEAR_HORIZONS}")

    if bucketing == Bucketing.weekly:
        return [WeekRange(w, w, f"Week {w}", _week_start(first_rating_date, w)) for w in weeks]

    width = WEEKS_PER_BUCKET[bucketing]
    if horizon_years is not None:
        count = horizon_years
    elif not weeks:
        return []
    else:
        count = max(1, math.ceil(weeks[-1] / width))

    ranges = []
    for k in range(count):
        start = k * width + 1
        ranges.append(
            WeekRange(start, start + width - 1, _label(bucketing, k, first_rating_date), _week_start(first_rating_date, start))
        )
    return ranges


def _week_start(first_rating_date: Optional[date], week: int) -> Optional[date]:
    if first_rating_date is None:
        return None
    return date.fromordinal(first_rating_date.toordinal() + (week - 1) * 7)


def _label(bucketing: Bucketing, k: int, first_rating_date: Optional[date]) -> str:
    if bucketing == Bucketing.monthly and first_rating_date is not None:
        return _add_months(first_rating_date, k).strftime("%b %Y")
    if bucketing == Bucketing.yearly and first_rating_date is not None:
        return str(first_rating_date.year + k)
    return f"{_BUCKET_NAMES[bucketing]} {k + 1}"


# ---------- averages ----------

def net_growth(averages: Sequence[Optional[float]]) -> Tuple[int, int]:
    """
    Sum of differences between consecutive defined averages.

    Undefined (None) buckets are skipped and the last defined value stays the
    baseline. Returns ``(total, transitions)``.
    """
    total = 0
    transitions = 0
    previous = None
    for value in averages:
        if value is None:
            continue
        if previous is not None:
            total += value - previous
            transitions += 1
        previous = value
    return total, transitions


def aggregate(
    records: Iterable[Any],
    bucketing: Bucketing,
    *,
    horizon_years: Optional[int] = None,
    first_rating_date: Optional[date] = None,
) -> Rollup:
    records = list(records)
    bucketing = Bucketing(bucketing)
    if first_rating_date is None:
        dates = [_as_date(getattr(r, "rating_date", None)) for r in records]
        dates = [d for d in dates if d is not None]
        first_rating_date = min(dates) if dates else None

    ranges = week_ranges(
        bucketing,
        (r.week for r in records),
        horizon_years=horizon_years,
        first_rating_date=first_rating_date,
    )
    rollup = Rollup(bucketing=bucketing, per_category_averages={c: [] for c in CATEGORIES})
    if not records:
        return rollup

    for wr in ranges:
        in_bucket = [r for r in records if wr.contains(r.week) and _rated(r)]
        category_averages = {
            c: _mean([r.percentage for r in in_bucket if _category(r) == c]) for c in CATEGORIES
        }
        defined = [v for v in category_averages.values() if v is not None]
        overall = _mean(defined)

        rollup.buckets.append(
            BucketAverage(
                label=wr.label,
                start_week=wr.start,
                end_week=wr.end,
                start_date=wr.start_date,
                category_averages=category_averages,
                overall_average=overall,
            )
        )
        rollup.labels.append(wr.label)
        rollup.overall_averages.append(overall)
        for c in CATEGORIES:
            rollup.per_category_averages[c].append(category_averages[c])

    rollup.overall_average = _mean([v for v in rollup.overall_averages if v is not None]) or 0
    total, transitions = net_growth(rollup.overall_averages)
    rollup.net_growth = total
    rollup.average_growth = round_half_up(total / transitions) if transitions else 0
    return rollup


def snapshot_averages(records: Iterable[Any]) -> Tuple[Dict[str, int], int]:
    """
    Per-category averages for a cached snapshot.

    Unrated categories report 0, and the overall average is taken over all
    seven categories, matching what earlier snapshots stored.
    """
    records = list(records)
    averages = {}
    for c in CATEGORIES:
        values = [r.percentage for r in records if _category(r) == c and _rated(r)]
        averages[c] = _mean(values) or 0
    overall = round_half_up(sum(averages.values()) / len(CATEGORIES))
    return averages, overall
