"""Periodic read-and-log analysis run from the application lifespan."""
from __future__ import annotations
import asyncio
import logging
from datetime import date, datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional

from sqlalchemy.orm import Session

from core.database import SessionLocal
from .schema import AnalysisPeriod, PeriodAverage
from . import service

logger = logging.getLogger(__name__)

TRIMESTER_END_MONTHS = (3, 6, 9, 12)
HALF_YEAR_END_MONTHS = (6, 12)


def periods_due(today: date) -> List[AnalysisPeriod]:
    """Weekly always; the longer periods only on the last day of their closing month."""
    due = [AnalysisPeriod.weekly]
    if (today + timedelta(days=1)).month == today.month:
        return due
    due.append(AnalysisPeriod.monthly)
    if today.month in TRIMESTER_END_MONTHS:
        due.append(AnalysisPeriod.trimester)
    if today.month in HALF_YEAR_END_MONTHS:
        due.append(AnalysisPeriod.six_month)
    return due


def run_analysis(
    session_factory: Callable[[], Session] = SessionLocal,
    *,
    now: Optional[datetime] = None,
) -> Dict[AnalysisPeriod, List[PeriodAverage]]:
    now = now or datetime.now(timezone.utc)
    results: Dict[AnalysisPeriod, List[PeriodAverage]] = {}
    db = session_factory()
    try:
        for period in periods_due(now.date()):
            results[period] = service.analyze_period(db, period, now=now)
            logger.info("%s analysis completed: %d staff/category groups", period.value, len(results[period]))
    finally:
        db.close()
    return results


async def analysis_scheduler(interval_seconds: int) -> None:
    logger.info("analysis scheduler started, every %ss", interval_seconds)
    while True:
        try:
            await asyncio.to_thread(run_analysis)
        except asyncio.CancelledError:
            raise
        except Exception:
            logger.exception("periodic analysis failed")
        await asyncio.sleep(interval_seconds)
