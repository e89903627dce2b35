from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from core.database import get_db
from .schema import (
    AggregatedRatingSchema,
    AnalysisPeriod,
    Bucketing,
    PeriodAverage,
    RatingSchema,
    RatingSubmitPayload,
    Rollup,
    WeeklyAggregate,
)
from .draft import RatingDraft
from . import service

rating_router = APIRouter(prefix="/ratings", tags=["ratings"])

# ---------- period analyses over every staff member ----------

@rating_router.get("/weekly", response_model=list[PeriodAverage])
def weekly_ratings(db: Session = Depends(get_db)):
    return service.analyze_period(db, AnalysisPeriod.weekly)

@rating_router.get("/monthly", response_model=list[PeriodAverage])
def monthly_ratings(db: Session = Depends(get_db)):
    return service.analyze_period(db, AnalysisPeriod.monthly)

@rating_router.get("/trimester", response_model=list[PeriodAverage])
def trimester_ratings(db: Session = Depends(get_db)):
    return service.analyze_period(db, AnalysisPeriod.trimester)

@rating_router.get("/six-month", response_model=list[PeriodAverage])
def six_month_ratings(db: Session = Depends(get_db)):
    return service.analyze_period(db, AnalysisPeriod.six_month)

# ---------- one staff member ----------

@rating_router.post("/staff/{staff_id}", response_model=list[RatingSchema], status_code=status.HTTP_201_CREATED)
def submit_ratings(staff_id: int, payload: RatingSubmitPayload, db: Session = Depends(get_db)):
    draft = RatingDraft()
    try:
        for category, score in payload.scores.items():
            draft.set(category, score)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return service.submit_ratings(db, staff_id, draft, week=payload.week)

@rating_router.get("/staff/{staff_id}", response_model=list[RatingSchema])
def staff_ratings(staff_id: int, db: Session = Depends(get_db)):
    return service.list_ratings(db, staff_id)

@rating_router.get("/staff/{staff_id}/weeks", response_model=list[WeeklyAggregate])
def staff_weeks(staff_id: int, db: Session = Depends(get_db)):
    return service.get_weekly_aggregates(db, staff_id)

@rating_router.get("/staff/{staff_id}/rollup", response_model=Rollup)
def staff_rollup(
    staff_id: int,
    bucketing: Bucketing = Query(Bucketing.weekly),
    horizon_years: Optional[int] = Query(None, description="4, 6 or 20; yearly bucketing only"),
    db: Session = Depends(get_db),
    ):
    return service.get_rollup(db, staff_id, bucketing, horizon_years=horizon_years)

@rating_router.post("/staff/{staff_id}/snapshot", response_model=AggregatedRatingSchema)
def refresh_snapshot(staff_id: int, db: Session = Depends(get_db)):
    return service.refresh_snapshot(db, staff_id)

@rating_router.get("/staff/{staff_id}/snapshot", response_model=AggregatedRatingSchema)
def staff_snapshot(staff_id: int, db: Session = Depends(get_db)):
    return service.get_snapshot(db, staff_id)
