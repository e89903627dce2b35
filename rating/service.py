from __future__ import annotations
import logging
import random
from datetime import datetime, timedelta, timezone
from typing import List, Optional

from fastapi import HTTPException
from sqlalchemy import select, func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from organization.models import Organization, OrganizationType
from .models import Rating, AggregatedRating, RatingCategory
from .schema import AnalysisPeriod, Bucketing, PeriodAverage, Rollup, WeeklyAggregate
from .draft import RatingDraft, score_to_percentage
from . import aggregator

logger = logging.getLogger(__name__)

PERIOD_DAYS = {
    AnalysisPeriod.weekly: 7,
    AnalysisPeriod.monthly: 28,
    AnalysisPeriod.trimester: 84,
    AnalysisPeriod.six_month: 168,
}
SNAPSHOT_PERIOD = "first_quarter"
SNAPSHOT_WEEKS = (1, 4)

def _utcnow() -> datetime:
    return datetime.now(timezone.utc)

def _require_staff(db: Session, staff_id: int) -> Organization:
    node = db.get(Organization, staff_id)
    if not node:
        raise HTTPException(status_code=404, detail="staff member not found")
    if node.type != OrganizationType.staff:
        raise HTTPException(status_code=400, detail="organization node is not a staff member")
    return node

# ---------- records ----------

def list_ratings(db: Session, staff_id: int, *, week_from: Optional[int] = None, week_to: Optional[int] = None) -> List[Rating]:
    stmt = select(Rating).where(Rating.staff_id == staff_id)
    if week_from is not None:
        stmt = stmt.where(Rating.week >= week_from)
    if week_to is not None:
        stmt = stmt.where(Rating.week <= week_to)
    stmt = stmt.order_by(Rating.week.asc(), Rating.id.asc())
    return list(db.scalars(stmt))

def next_week_for_staff(db: Session, staff_id: int) -> int:
    latest = db.scalar(select(func.max(Rating.week)).where(Rating.staff_id == staff_id))
    return (latest or 0) + 1

def submit_ratings(
    db: Session,
    staff_id: int,
    draft: RatingDraft,
    *,
    week: Optional[int] = None,
    now: Optional[datetime] = None,
    ) -> List[Rating]:
    """Write every score staged in ``draft`` as one record per category, then empty the draft."""
    if draft.is_empty():
        raise HTTPException(status_code=400, detail="no scores to submit")
    _require_staff(db, staff_id)

    week = week or next_week_for_staff(db, staff_id)
    rows = draft.to_records(staff_id, week, now or _utcnow())
    db.add_all(rows)
    try:
        db.commit()
    except IntegrityError:
        db.rollback()
        raise HTTPException(status_code=400, detail=f"week {week} is already rated for this staff member")

    for row in rows:
        db.refresh(row)
    draft.discard()
    logger.info("stored %d ratings for staff %s week %s", len(rows), staff_id, week)
    return rows

# ---------- derived views ----------

def get_weekly_aggregates(db: Session, staff_id: int) -> List[WeeklyAggregate]:
    return aggregator.weekly_aggregates(list_ratings(db, staff_id))

def get_rollup(
    db: Session,
    staff_id: int,
    bucketing: Bucketing,
    *,
    horizon_years: Optional[int] = None,
    ) -> Rollup:
    try:
        return aggregator.aggregate(list_ratings(db, staff_id), bucketing, horizon_years=horizon_years)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

def analyze_period(db: Session, period: AnalysisPeriod, *, now: Optional[datetime] = None) -> List[PeriodAverage]:
    """Mean score and percentage per (staff, category) over the trailing window of ``period``."""
    end = now or _utcnow()
    start = end - timedelta(days=PERIOD_DAYS[AnalysisPeriod(period)])
    stmt = (
        select(
            Rating.staff_id,
            Rating.category,
            func.avg(Rating.score),
            func.avg(Rating.percentage),
        )
        .where(Rating.timestamp >= start, Rating.timestamp <= end)
        .group_by(Rating.staff_id, Rating.category)
        .order_by(Rating.staff_id.asc(), Rating.category.asc())
    )
    return [
        PeriodAverage(
            staff_id=staff_id,
            category=category,
            average_score=float(avg_score),
            average_percentage=float(avg_percentage),
        )
        for staff_id, category, avg_score, avg_percentage in db.execute(stmt)
    ]

# ---------- snapshot ----------

def get_snapshot(db: Session, staff_id: int) -> AggregatedRating:
    stmt = select(AggregatedRating).where(
        AggregatedRating.staff_id == staff_id, AggregatedRating.period == SNAPSHOT_PERIOD
    )
    snap = db.scalars(stmt).first()
    if not snap:
        raise HTTPException(status_code=404, detail="aggregated ratings not found")
    return snap

def refresh_snapshot(db: Session, staff_id: int) -> AggregatedRating:
    """Recompute the first-quarter snapshot from weeks 1-4 and overwrite the stored one."""
    _require_staff(db, staff_id)
    records = list_ratings(db, staff_id, week_from=SNAPSHOT_WEEKS[0], week_to=SNAPSHOT_WEEKS[1])
    weekly = aggregator.weekly_aggregates(records)
    averages, overall = aggregator.snapshot_averages(records)
    weeks = {f"week{w.week}": w.model_dump() for w in weekly}

    stmt = select(AggregatedRating).where(
        AggregatedRating.staff_id == staff_id, AggregatedRating.period == SNAPSHOT_PERIOD
    )
    snap = db.scalars(stmt).first()
    if snap is None:
        snap = AggregatedRating(staff_id=staff_id, period=SNAPSHOT_PERIOD)
        db.add(snap)
    snap.weeks = weeks
    snap.average_scores = averages
    snap.overall_average = overall
    db.commit()
    db.refresh(snap)
    logger.info("refreshed %s snapshot for staff %s (overall %s)", SNAPSHOT_PERIOD, staff_id, overall)
    return snap

# ---------- mock data ----------

def generate_mock_ratings(
    db: Session,
    *,
    weeks: int = 24,
    rng: Optional[random.Random] = None,
    now: Optional[datetime] = None,
    ) -> int:
    """
    Fill ``weeks`` weeks of random scores for every staff node, week 1 being
    the oldest. Slots that already hold a rating are left alone. Returns the
    number of records created.
    """
    rng = rng or random.Random()
    now = now or _utcnow()
    staff_ids = list(db.scalars(select(Organization.id).where(Organization.type == OrganizationType.staff)))
    existing = {
        tuple(row)
        for row in db.execute(select(Rating.staff_id, Rating.category, Rating.week).where(Rating.staff_id.in_(staff_ids)))
    } if staff_ids else set()

    created = 0
    for staff_id in staff_ids:
        for week in range(1, weeks + 1):
            timestamp = now - timedelta(weeks=weeks - week)
            for category in RatingCategory:
                if (staff_id, category, week) in existing:
                    continue
                score = rng.randint(1, 5)
                db.add(
                    Rating(
                        staff_id=staff_id,
                        category=category,
                        score=score,
                        percentage=score_to_percentage(score),
                        week=week,
                        timestamp=timestamp,
                        rating_date=timestamp,
                    )
                )
                created += 1
    db.commit()
    logger.info("generated %d mock ratings for %d staff members", created, len(staff_ids))
    return created
