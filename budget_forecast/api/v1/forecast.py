"""GET /v1/forecast - cash-flow balance projections"""

import time
import logging
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request

from budget_forecast.api.v1.schemas import ForecastResponse, TimelineForecastResponse
from budget_forecast.api.dependencies import get_forecast_store, get_request_id
from budget_forecast.config import settings
from budget_forecast.domain.exceptions import StorageError
from budget_forecast.domain.forecasting import clamp_days
from budget_forecast.domain.insights import compute_forecast, compute_timeline_forecast
from budget_forecast.infrastructure.database.repositories import DatabaseForecastStore
from budget_forecast.infrastructure.observability.logging import log_forecast
from budget_forecast.infrastructure.observability.metrics import record_forecast, storage_failures_counter

router = APIRouter()


@router.get("/forecast", response_model=ForecastResponse)
def get_forecast(
    request: Request,
    user_id: str = Query(..., min_length=1, description="User identifier"),
    days: Optional[str] = Query(None, description="Window length; clamped to the configured bounds"),
    as_of: Optional[date] = Query(None, description="Day 0 of the projection (defaults to today)"),
    store: DatabaseForecastStore = Depends(get_forecast_store),
):
    """
    Day-by-day balance projection.

    Flow:
    1. Read current balance, active recurring items and subscriptions
    2. Estimate daily variable spend from the trailing transaction history
    3. Simulate the balance over the window and track the lowest point
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        result = compute_forecast(
            store,
            user_id,
            window_days=clamp_days(
                days, settings.forecast_default_days, settings.forecast_min_days, settings.forecast_max_days
            ),
            today=as_of,
            variable_lookback_days=settings.variable_lookback_days,
            min_days=settings.forecast_min_days,
            max_days=settings.forecast_max_days,
        )
    except StorageError as e:
        storage_failures_counter.inc()
        logging.error(f"Storage error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Insights temporarily unavailable")

    duration = time.time() - start_time
    record_forecast("daily", duration)
    log_forecast(request_id, user_id, "daily", result.days, result.lowest.balance, duration * 1000)

    return ForecastResponse.model_validate(result)


@router.get("/forecast/timeline", response_model=TimelineForecastResponse)
def get_timeline_forecast(
    request: Request,
    user_id: str = Query(..., min_length=1, description="User identifier"),
    days: Optional[str] = Query(None, description="Window length; clamped to the configured bounds"),
    as_of: Optional[date] = Query(None, description="First day of the timeline (defaults to today)"),
    store: DatabaseForecastStore = Depends(get_forecast_store),
):
    """
    Event timeline grouped by date, with next income date and safe-to-spend per day.

    Summary fields are null when no income falls inside the window.
    """
    start_time = time.time()
    request_id = get_request_id(request)

    try:
        forecast = compute_timeline_forecast(
            store,
            user_id,
            days=clamp_days(
                days, settings.forecast_default_days, settings.forecast_min_days, settings.forecast_max_days
            ),
            today=as_of,
            min_days=settings.forecast_min_days,
            max_days=settings.forecast_max_days,
        )
    except StorageError as e:
        storage_failures_counter.inc()
        logging.error(f"Storage error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Insights temporarily unavailable")

    duration = time.time() - start_time
    record_forecast("timeline", duration)
    log_forecast(
        request_id,
        user_id,
        "timeline",
        len(forecast.timeline),
        forecast.lowest_balance,
        duration * 1000,
        safe_to_spend_per_day=forecast.summary.safe_to_spend_per_day,
    )

    return TimelineForecastResponse.model_validate(forecast)
