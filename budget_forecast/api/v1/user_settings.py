"""GET/PUT /v1/settings - current balance used as the forecast's day-0 anchor"""

import logging
from fastapi import APIRouter, Depends, HTTPException, Query, Request
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from budget_forecast.api.v1.schemas import SettingsResponse, SettingsUpdate
from budget_forecast.api.dependencies import get_request_id
from budget_forecast.infrastructure.database.session import get_db
from budget_forecast.infrastructure.database.repositories import SettingsRepository
from budget_forecast.infrastructure.observability.metrics import storage_failures_counter

router = APIRouter()


def _settings_unavailable(db: Session, request_id: str, error: Exception) -> HTTPException:
    db.rollback()
    storage_failures_counter.inc()
    logging.error(f"Storage error: {error}", extra={"request_id": request_id})
    return HTTPException(status_code=503, detail="Settings temporarily unavailable")


@router.get("/settings", response_model=SettingsResponse)
def get_settings(
    request: Request,
    user_id: str = Query(..., min_length=1, description="User identifier"),
    db: Session = Depends(get_db),
):
    """Current balance; 0 until the user sets one"""
    try:
        user_settings = SettingsRepository(db).get(user_id)
    except SQLAlchemyError as e:
        raise _settings_unavailable(db, get_request_id(request), e)

    return SettingsResponse(user_id=user_id, current_balance=user_settings.current_balance)


@router.put("/settings", response_model=SettingsResponse)
def put_settings(
    request_body: SettingsUpdate,
    request: Request,
    db: Session = Depends(get_db),
):
    request_id = get_request_id(request)

    try:
        user_settings = SettingsRepository(db).set_current_balance(request_body.user_id, request_body.current_balance)
        db.commit()
    except SQLAlchemyError as e:
        raise _settings_unavailable(db, request_id, e)

    return SettingsResponse(user_id=request_body.user_id, current_balance=user_settings.current_balance)
