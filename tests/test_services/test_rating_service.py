import random
import unittest
from datetime import datetime, timedelta, timezone
from sqlalchemy import create_engine, select, func
from sqlalchemy.orm import sessionmaker
from fastapi import HTTPException

from core.database import Base
import models_bootstrap
from organization.models import Organization, OrganizationType
from rating.models import Rating, RatingCategory
from rating.schema import AnalysisPeriod, Bucketing
from rating.draft import RatingDraft
from rating import service


NOW = datetime(2025, 6, 30, 12, 0, tzinfo=timezone.utc)


class RatingServiceTests(unittest.TestCase):
    def setUp(self):
        # Fresh in-memory DB
        self.engine = create_engine("sqlite:///:memory:", future=True)
        Base.metadata.create_all(self.engine)

        Session = sessionmaker(bind=self.engine, future=True)
        self.db = Session()

        self.branch = Organization(name="Main Branch", type=OrganizationType.branch, email="b@company.com", branch_name="Main")
        self.db.add(self.branch)
        self.db.flush()
        self.staff = Organization(name="John Doe", type=OrganizationType.staff, parent_id=self.branch.id, email="john@company.com")
        self.db.add(self.staff)
        self.db.commit()
        self.staff_id = self.staff.id
        self.branch_id = self.branch.id

    def tearDown(self):
        self.db.close()
        self.engine.dispose()

    # ---------- helpers ----------
    def _draft(self, **scores):
        draft = RatingDraft()
        for category, score in scores.items():
            draft.set(category, score)
        return draft

    def _rating(self, week, category, score, when=NOW, staff_id=None):
        row = Rating(
            staff_id=staff_id or self.staff_id,
            category=category,
            score=score,
            percentage=score * 20,
            week=week,
            timestamp=when,
            rating_date=when,
        )
        self.db.add(row)
        self.db.commit()
        return row

    # ---------- submit_ratings ----------
    def test_submit_writes_one_record_per_category(self):
        draft = self._draft(time=5, creativity=3)
        rows = service.submit_ratings(self.db, self.staff_id, draft, now=NOW)
        self.assertEqual(len(rows), 2)
        by_category = {r.category: r for r in rows}
        self.assertEqual(by_category[RatingCategory.time].percentage, 100)
        self.assertEqual(by_category[RatingCategory.creativity].percentage, 60)
        self.assertTrue(all(r.week == 1 for r in rows))
        self.assertTrue(draft.is_empty())

    def test_submit_uses_next_week(self):
        service.submit_ratings(self.db, self.staff_id, self._draft(time=4), now=NOW)
        rows = service.submit_ratings(self.db, self.staff_id, self._draft(time=2), now=NOW)
        self.assertEqual(rows[0].week, 2)
        self.assertEqual(service.next_week_for_staff(self.db, self.staff_id), 3)

    def test_submit_duplicate_week_400_keeps_draft(self):
        service.submit_ratings(self.db, self.staff_id, self._draft(time=4), week=3, now=NOW)
        draft = self._draft(time=1)
        with self.assertRaises(HTTPException) as ctx:
            service.submit_ratings(self.db, self.staff_id, draft, week=3, now=NOW)
        self.assertEqual(ctx.exception.status_code, 400)
        self.assertFalse(draft.is_empty())
        self.assertEqual(len(service.list_ratings(self.db, self.staff_id)), 1)

    def test_submit_empty_draft_400(self):
        with self.assertRaises(HTTPException) as ctx:
            service.submit_ratings(self.db, self.staff_id, RatingDraft())
        self.assertEqual(ctx.exception.status_code, 400)

    def test_submit_unknown_staff_404(self):
        with self.assertRaises(HTTPException) as ctx:
            service.submit_ratings(self.db, 9999, self._draft(time=3))
        self.assertEqual(ctx.exception.status_code, 404)

    def test_submit_for_non_staff_node_400(self):
        with self.assertRaises(HTTPException) as ctx:
            service.submit_ratings(self.db, self.branch_id, self._draft(time=3))
        self.assertEqual(ctx.exception.status_code, 400)

    # ---------- views ----------
    def test_weekly_aggregates_and_rollup(self):
        self._rating(1, RatingCategory.time, 5)
        self._rating(2, RatingCategory.time, 3)
        weeks = service.get_weekly_aggregates(self.db, self.staff_id)
        self.assertEqual([w.week for w in weeks], [1, 2])

        rollup = service.get_rollup(self.db, self.staff_id, Bucketing.monthly)
        self.assertEqual(rollup.per_category_averages["time"], [80])
        self.assertEqual(rollup.overall_average, 80)

    def test_rollup_bad_horizon_400(self):
        self._rating(1, RatingCategory.time, 5)
        with self.assertRaises(HTTPException) as ctx:
            service.get_rollup(self.db, self.staff_id, Bucketing.yearly, horizon_years=3)
        self.assertEqual(ctx.exception.status_code, 400)

    def test_rollup_without_ratings_is_empty(self):
        rollup = service.get_rollup(self.db, self.staff_id, Bucketing.yearly, horizon_years=6)
        self.assertEqual(rollup.buckets, [])
        self.assertEqual(rollup.overall_average, 0)

    def test_analyze_period_uses_trailing_window(self):
        self._rating(1, RatingCategory.time, 5, when=NOW - timedelta(days=2))
        self._rating(2, RatingCategory.time, 3, when=NOW - timedelta(days=1))
        self._rating(3, RatingCategory.creativity, 1, when=NOW - timedelta(days=20))

        weekly = service.analyze_period(self.db, AnalysisPeriod.weekly, now=NOW)
        self.assertEqual(len(weekly), 1)
        self.assertEqual(weekly[0].category, RatingCategory.time)
        self.assertAlmostEqual(weekly[0].average_score, 4.0)
        self.assertAlmostEqual(weekly[0].average_percentage, 80.0)

        monthly = service.analyze_period(self.db, AnalysisPeriod.monthly, now=NOW)
        self.assertEqual({m.category for m in monthly}, {RatingCategory.time, RatingCategory.creativity})

    def test_analyze_period_empty(self):
        self.assertEqual(service.analyze_period(self.db, AnalysisPeriod.six_month, now=NOW), [])

    # ---------- snapshot ----------
    def test_snapshot_missing_404(self):
        with self.assertRaises(HTTPException) as ctx:
            service.get_snapshot(self.db, self.staff_id)
        self.assertEqual(ctx.exception.status_code, 404)

    def test_refresh_snapshot_overwrites(self):
        self._rating(1, RatingCategory.time, 5)
        self._rating(2, RatingCategory.time, 3)
        self._rating(5, RatingCategory.time, 1)  # outside weeks 1-4
        snap = service.refresh_snapshot(self.db, self.staff_id)
        self.assertEqual(snap.period, "first_quarter")
        self.assertEqual(snap.average_scores["time"], 80)
        self.assertEqual(sorted(snap.weeks), ["week1", "week2"])

        self._rating(3, RatingCategory.creativity, 5)
        service.refresh_snapshot(self.db, self.staff_id)
        again = service.get_snapshot(self.db, self.staff_id)
        self.assertEqual(again.id, snap.id)
        self.assertEqual(again.average_scores["creativity"], 100)
        self.assertEqual(again.overall_average, 26)

    # ---------- mock data ----------
    def test_generate_mock_ratings_fills_every_slot_once(self):
        created = service.generate_mock_ratings(self.db, weeks=3, rng=random.Random(7), now=NOW)
        self.assertEqual(created, 3 * 7)
        rows = service.list_ratings(self.db, self.staff_id)
        self.assertTrue(all(1 <= r.score <= 5 and r.percentage == r.score * 20 for r in rows))

        again = service.generate_mock_ratings(self.db, weeks=3, rng=random.Random(7), now=NOW)
        self.assertEqual(again, 0)
        total = self.db.scalar(select(func.count(Rating.id)))
        self.assertEqual(total, 21)


if __name__ == "__main__":
    unittest.main()
