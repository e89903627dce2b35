from __future__ import annotations
from datetime import date, datetime
from enum import Enum
from typing import Dict, List, Optional
from pydantic import BaseModel, ConfigDict, Field, StrictInt
from .models import RatingCategory

class Bucketing(str, Enum):
    weekly = "weekly"
    monthly = "monthly"
    trimester = "trimester"
    six_month = "six_month"
    yearly = "yearly"

class AnalysisPeriod(str, Enum):
    weekly = "weekly"
    monthly = "monthly"
    trimester = "trimester"
    six_month = "six-month"

class RatingSchema(BaseModel):
    id: int
    staff_id: int
    category: RatingCategory
    score: int
    percentage: int
    week: int
    timestamp: datetime
    rating_date: datetime
    model_config = ConfigDict(from_attributes=True)

# what clients send: one score per category rated in this session
class RatingSubmitPayload(BaseModel):
    scores: Dict[RatingCategory, StrictInt] = Field(..., min_length=1)
    week: Optional[int] = Field(None, ge=1, description="If omitted, the week after the latest rated one")
    model_config = ConfigDict(extra="forbid")

class CategoryScore(BaseModel):
    points: int
    percentage: int

class WeeklyAggregate(BaseModel):
    staff_id: int
    week: int
    categories: Dict[str, CategoryScore]
    average_percentage: int

class BucketAverage(BaseModel):
    label: str
    start_week: int
    end_week: int
    start_date: Optional[date] = None
    category_averages: Dict[str, Optional[int]]
    overall_average: Optional[int] = None

class Rollup(BaseModel):
    bucketing: Bucketing
    labels: List[str] = Field(default_factory=list)
    buckets: List[BucketAverage] = Field(default_factory=list)
    per_category_averages: Dict[str, List[Optional[int]]] = Field(default_factory=dict)
    overall_averages: List[Optional[int]] = Field(default_factory=list)
    overall_average: int = 0
    net_growth: int = 0
    average_growth: int = 0

class PeriodAverage(BaseModel):
    staff_id: int
    category: RatingCategory
    average_score: float
    average_percentage: float

class AggregatedRatingSchema(BaseModel):
    staff_id: int
    period: str
    weeks: Dict[str, WeeklyAggregate]
    average_scores: Dict[str, int]
    overall_average: int
    updated_at: Optional[datetime] = None
    model_config = ConfigDict(from_attributes=True)
