"""Subscription candidates and the confirm / ignore / toggle / delete lifecycle"""

import time
import logging
from datetime import date
from typing import Optional
from fastapi import APIRouter, Depends, HTTPException, Query, Request, Response
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from budget_forecast.api.v1.schemas import (
    CandidateSchema,
    CandidatesResponse,
    IgnoreRequest,
    IgnoreResponse,
    SubscriptionCreate,
    SubscriptionListResponse,
    SubscriptionSchema,
    SubscriptionUpdate,
)
from budget_forecast.api.dependencies import get_forecast_store, get_request_id
from budget_forecast.config import settings
from budget_forecast.domain.exceptions import DuplicateSubscriptionError, NotFoundError, StorageError
from budget_forecast.domain.forecasting import clamp_days
from budget_forecast.domain.insights import compute_subscription_candidates
from budget_forecast.domain.models import Subscription
from budget_forecast.domain.subscriptions import normalize_merchant_key
from budget_forecast.infrastructure.database.session import get_db
from budget_forecast.infrastructure.database.repositories import (
    DatabaseForecastStore,
    IgnoredMerchantRepository,
    SubscriptionRepository,
)
from budget_forecast.infrastructure.observability.logging import log_candidate_scan
from budget_forecast.infrastructure.observability.metrics import (
    candidates_detected_histogram,
    storage_failures_counter,
    subscription_transition_counter,
)

router = APIRouter()


def _storage_unavailable(db: Session, request_id: str, error: Exception) -> HTTPException:
    db.rollback()
    storage_failures_counter.inc()
    logging.error(f"Storage error: {error}", extra={"request_id": request_id})
    return HTTPException(status_code=503, detail="Insights temporarily unavailable")


@router.get("/subscriptions/candidates", response_model=CandidatesResponse)
def get_candidates(
    request: Request,
    user_id: str = Query(..., min_length=1, description="User identifier"),
    lookback_days: Optional[str] = Query(None, description="History window; clamped to the configured bounds"),
    as_of: Optional[date] = Query(None, description="End of the history window (defaults to today)"),
    store: DatabaseForecastStore = Depends(get_forecast_store),
):
    """
    Detect likely recurring charges from transaction history.

    Ignored and already confirmed merchants are left out. Ranked by confidence.
    """
    start_time = time.time()
    request_id = get_request_id(request)
    lookback = clamp_days(
        lookback_days,
        settings.candidate_default_lookback_days,
        settings.candidate_min_lookback_days,
        settings.candidate_max_lookback_days,
    )

    try:
        candidates = compute_subscription_candidates(
            store,
            user_id,
            lookback_days=lookback,
            today=as_of,
            min_lookback=settings.candidate_min_lookback_days,
            max_lookback=settings.candidate_max_lookback_days,
        )
    except StorageError as e:
        storage_failures_counter.inc()
        logging.error(f"Storage error: {e}", extra={"request_id": request_id})
        raise HTTPException(status_code=503, detail="Insights temporarily unavailable")

    candidates_detected_histogram.observe(len(candidates))
    log_candidate_scan(request_id, user_id, lookback, len(candidates), (time.time() - start_time) * 1000)

    return CandidatesResponse(
        user_id=user_id,
        lookback_days=lookback,
        candidates=[CandidateSchema.model_validate(c) for c in candidates],
    )


@router.get("/subscriptions", response_model=SubscriptionListResponse)
def list_subscriptions(
    request: Request,
    user_id: str = Query(..., min_length=1, description="User identifier"),
    db: Session = Depends(get_db),
):
    """Confirmed subscriptions and bills, active and paused"""
    try:
        records = SubscriptionRepository(db).list_by_user(user_id)
    except SQLAlchemyError as e:
        raise _storage_unavailable(db, get_request_id(request), e)

    return SubscriptionListResponse(
        user_id=user_id,
        subscriptions=[SubscriptionSchema.model_validate(r) for r in records],
    )


@router.post("/subscriptions", response_model=SubscriptionSchema, status_code=201)
def confirm_subscription(
    request_body: SubscriptionCreate,
    request: Request,
    db: Session = Depends(get_db),
):
    """
    Confirm a detected candidate or enter a subscription/bill directly.

    Without a next_date the subscription is tracked but not projected.
    """
    request_id = get_request_id(request)
    merchant_key = normalize_merchant_key(request_body.merchant_key or request_body.display_name)
    if not merchant_key:
        raise HTTPException(status_code=422, detail="Merchant key is empty after normalization")

    subscription = Subscription(
        id="",
        user_id=request_body.user_id,
        merchant_key=merchant_key,
        display_name=request_body.display_name.strip(),
        cadence=request_body.cadence,
        expected_amount=request_body.expected_amount,
        amount_min=request_body.amount_min,
        amount_max=request_body.amount_max,
        last_date=request_body.last_date,
        next_date=request_body.next_date,
        confidence=request_body.confidence,
        is_active=True,
        kind=request_body.kind,
    )

    try:
        record = SubscriptionRepository(db).create(request_body.user_id, subscription)
        db.commit()
    except DuplicateSubscriptionError as e:
        db.rollback()
        raise HTTPException(status_code=409, detail=str(e))
    except SQLAlchemyError as e:
        raise _storage_unavailable(db, request_id, e)

    subscription_transition_counter.labels(transition="confirm").inc()
    logging.info(
        "Subscription confirmed",
        extra={"request_id": request_id, "user_id": request_body.user_id, "merchant_key": merchant_key},
    )
    return SubscriptionSchema.model_validate(record)


@router.post("/subscriptions/ignore", response_model=IgnoreResponse)
def ignore_merchant(
    request_body: IgnoreRequest,
    request: Request,
    db: Session = Depends(get_db),
):
    """Suppress a merchant from future candidate detection (idempotent)"""
    request_id = get_request_id(request)
    merchant_key = normalize_merchant_key(request_body.merchant_key)
    if not merchant_key:
        raise HTTPException(status_code=422, detail="Merchant key is empty after normalization")

    try:
        IgnoredMerchantRepository(db).add(request_body.user_id, merchant_key)
        db.commit()
    except SQLAlchemyError as e:
        raise _storage_unavailable(db, request_id, e)

    subscription_transition_counter.labels(transition="ignore").inc()
    return IgnoreResponse(user_id=request_body.user_id, merchant_key=merchant_key)


@router.patch("/subscriptions/{subscription_id}", response_model=SubscriptionSchema)
def update_subscription(
    subscription_id: str,
    request_body: SubscriptionUpdate,
    request: Request,
    user_id: str = Query(..., min_length=1, description="User identifier"),
    db: Session = Depends(get_db),
):
    """Pause/resume, reclassify as subscription or bill, or re-anchor the next date"""
    request_id = get_request_id(request)

    try:
        record = SubscriptionRepository(db).update(
            user_id,
            subscription_id,
            is_active=request_body.is_active,
            kind=request_body.kind,
            cadence=request_body.cadence,
            next_date=request_body.next_date,
            clear_next_date="next_date" in request_body.model_fields_set and request_body.next_date is None,
        )
        db.commit()
    except NotFoundError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))
    except SQLAlchemyError as e:
        raise _storage_unavailable(db, request_id, e)

    if request_body.is_active is not None:
        transition = "activate" if request_body.is_active else "deactivate"
        subscription_transition_counter.labels(transition=transition).inc()
    if request_body.kind is not None:
        subscription_transition_counter.labels(transition="reclassify").inc()

    return SubscriptionSchema.model_validate(record)


@router.delete("/subscriptions/{subscription_id}", status_code=204)
def delete_subscription(
    subscription_id: str,
    request: Request,
    user_id: str = Query(..., min_length=1, description="User identifier"),
    db: Session = Depends(get_db),
):
    request_id = get_request_id(request)

    try:
        SubscriptionRepository(db).delete(user_id, subscription_id)
        db.commit()
    except NotFoundError as e:
        db.rollback()
        raise HTTPException(status_code=404, detail=str(e))
    except SQLAlchemyError as e:
        raise _storage_unavailable(db, request_id, e)

    subscription_transition_counter.labels(transition="delete").inc()
    return Response(status_code=204)
