"""Configuration management using Pydantic Settings"""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables"""

    model_config = SettingsConfigDict(env_file=".env", env_file_encoding="utf-8", extra="ignore")

    # Database
    database_url: str = "sqlite:///./budget.db"

    # Service
    service_name: str = "budget-forecast"
    log_level: str = "INFO"

    # Forecast window (days)
    forecast_default_days: int = 30
    forecast_min_days: int = 7
    forecast_max_days: int = 180

    # Trailing history used for the variable daily spend estimate
    variable_lookback_days: int = 90

    # Subscription candidate detection lookback (days)
    candidate_default_lookback_days: int = 180
    candidate_min_lookback_days: int = 30
    candidate_max_lookback_days: int = 365


settings = Settings()
