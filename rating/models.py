from __future__ import annotations
from datetime import datetime
from enum import Enum
from sqlalchemy import Integer, String, DateTime, JSON, Enum as SAEnum, UniqueConstraint, Index
from sqlalchemy.orm import Mapped, mapped_column
from sqlalchemy.sql import func
from core.database import Base

class RatingCategory(str, Enum):
    time = "time"
    creativity = "creativity"
    shelf_cleanliness = "shelf_cleanliness"
    stock_management = "stock_management"
    customer_service = "customer_service"
    discipline_cases = "discipline_cases"
    personal_grooming = "personal_grooming"

CATEGORIES = [c.value for c in RatingCategory]

class Rating(Base):
    __tablename__ = "ratings"

    id: Mapped[int] = mapped_column(primary_key=True)
    # organizations.id of a staff node; kept as a plain column, ratings outlive hierarchy edits
    staff_id: Mapped[int] = mapped_column(Integer, nullable=False)
    category: Mapped[RatingCategory] = mapped_column(SAEnum(RatingCategory, name="rating_category"), nullable=False)
    score: Mapped[int] = mapped_column(Integer, nullable=False)
    percentage: Mapped[int] = mapped_column(Integer, nullable=False)
    week: Mapped[int] = mapped_column(Integer, nullable=False)
    timestamp: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    rating_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)

    __table_args__ = (
        UniqueConstraint("staff_id", "category", "week", name="uq_rating_staff_category_week"),
        Index("ix_ratings_staff_timestamp", "staff_id", "timestamp"),
    )

class AggregatedRating(Base):
    """Cached rollup for one staff member, overwritten on every refresh."""
    __tablename__ = "aggregated_ratings"

    id: Mapped[int] = mapped_column(primary_key=True)
    staff_id: Mapped[int] = mapped_column(Integer, nullable=False, index=True)
    period: Mapped[str] = mapped_column(String(32), nullable=False, default="first_quarter")

    weeks: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    average_scores: Mapped[dict] = mapped_column(JSON, nullable=False, default=dict)
    overall_average: Mapped[int] = mapped_column(Integer, nullable=False, default=0)

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False
    )

    __table_args__ = (
        UniqueConstraint("staff_id", "period", name="uq_aggregated_staff_period"),
    )
