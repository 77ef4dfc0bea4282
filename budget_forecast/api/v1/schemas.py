"""Pydantic schemas for API request/response validation"""

from pydantic import BaseModel, ConfigDict, Field
from datetime import date
from typing import List, Literal, Optional

Cadence = Literal["weekly", "biweekly", "monthly", "quarterly", "yearly", "unknown"]
SubscriptionKind = Literal["subscription", "bill"]


class DomainSchema(BaseModel):
    """Base for responses built straight from domain dataclasses"""

    model_config = ConfigDict(from_attributes=True)


class LowestPointSchema(DomainSchema):
    date: date
    balance: float


class BreakdownSchema(DomainSchema):
    recurring: float
    variable: float


class ForecastDaySchema(DomainSchema):
    date: date
    delta: float
    balance: float
    breakdown: BreakdownSchema


class ForecastResponse(DomainSchema):
    """Response for GET /v1/forecast"""

    days: int
    start: date
    end: date
    start_balance: float
    estimated_daily_variable: float
    lowest: LowestPointSchema
    series: List[ForecastDaySchema]


class TimelineEventSchema(DomainSchema):
    kind: str
    recurring_id: str
    date: date
    amount: float
    description: str


class TimelineDaySchema(DomainSchema):
    date: date
    delta: float
    balance: float
    events: List[TimelineEventSchema]


class ForecastSummarySchema(DomainSchema):
    start_balance: float
    next_income_date: Optional[date] = None
    balance_until_next_income: Optional[float] = None
    safe_to_spend_per_day: Optional[float] = None


class TimelineForecastResponse(DomainSchema):
    """Response for GET /v1/forecast/timeline"""

    start: date
    end: date
    opening_balance: float
    lowest_balance: float
    lowest_date: date
    timeline: List[TimelineDaySchema]
    summary: ForecastSummarySchema


class CandidateSchema(DomainSchema):
    """Single detected recurring-charge suggestion"""

    merchant_key: str
    display_name: str
    cadence: str
    expected_amount: float
    amount_min: float
    amount_max: float
    last_date: date
    next_date: Optional[date] = None
    confidence: int
    observations: int
    median_gap_days: float


class CandidatesResponse(BaseModel):
    """Response for GET /v1/subscriptions/candidates"""

    user_id: str
    lookback_days: int
    candidates: List[CandidateSchema]


class SubscriptionCreate(BaseModel):
    """Request body for POST /v1/subscriptions (confirm a candidate or enter one directly)"""

    user_id: str = Field(..., min_length=1, description="User identifier")
    merchant_key: Optional[str] = Field(None, description="Defaults to the normalized display name")
    display_name: str = Field(..., min_length=1)
    cadence: Cadence = "monthly"
    expected_amount: Optional[float] = Field(None, allow_inf_nan=False)
    amount_min: Optional[float] = Field(None, allow_inf_nan=False)
    amount_max: Optional[float] = Field(None, allow_inf_nan=False)
    last_date: Optional[date] = None
    next_date: Optional[date] = None
    confidence: int = Field(0, ge=0, le=100)
    kind: SubscriptionKind = "subscription"


class SubscriptionUpdate(BaseModel):
    """Request body for PATCH /v1/subscriptions/{subscription_id}"""

    is_active: Optional[bool] = None
    kind: Optional[SubscriptionKind] = None
    cadence: Optional[Cadence] = None
    next_date: Optional[date] = None


class SubscriptionSchema(DomainSchema):
    id: str
    merchant_key: str
    display_name: str
    cadence: str
    expected_amount: Optional[float] = None
    amount_min: Optional[float] = None
    amount_max: Optional[float] = None
    last_date: Optional[date] = None
    next_date: Optional[date] = None
    confidence: int
    is_active: bool
    kind: str


class SubscriptionListResponse(BaseModel):
    """Response for GET /v1/subscriptions"""

    user_id: str
    subscriptions: List[SubscriptionSchema]


class IgnoreRequest(BaseModel):
    """Request body for POST /v1/subscriptions/ignore"""

    user_id: str = Field(..., min_length=1)
    merchant_key: str = Field(..., min_length=1)


class IgnoreResponse(BaseModel):
    user_id: str
    merchant_key: str


class SettingsUpdate(BaseModel):
    """Request body for PUT /v1/settings"""

    user_id: str = Field(..., min_length=1)
    current_balance: float = Field(..., allow_inf_nan=False)


class SettingsResponse(BaseModel):
    user_id: str
    current_balance: float
