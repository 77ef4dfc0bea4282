"""Dependency injection for FastAPI endpoints"""

from fastapi import Depends, Request
from sqlalchemy.orm import Session
from budget_forecast.infrastructure.database.session import get_db
from budget_forecast.infrastructure.database.repositories import DatabaseForecastStore


def get_request_id(request: Request) -> str:
    """Extract request ID from request state"""
    return getattr(request.state, "request_id", "unknown")


def get_forecast_store(db: Session = Depends(get_db)) -> DatabaseForecastStore:
    """Provide the read-only store the forecast queries run against"""
    return DatabaseForecastStore(db)
