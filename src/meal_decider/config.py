"""Application configuration."""

import os

from pydantic_settings import BaseSettings, SettingsConfigDict

from meal_decider.domain.suggestions import StrategyType

_ENVIRONMENT = os.getenv("ENVIRONMENT", "local")

_TRUTHY = {"1", "on", "true", "yes", "enabled"}
_FALSY = {"0", "off", "false", "no", "disabled"}


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    supabase_url: str
    supabase_service_key: str
    admin_token: str
    openai_api_key: str | None = None
    openai_model: str = "gpt-5.2"
    openai_store: bool = False
    ranking_timeout_seconds: float = 5.0
    remote_catalog_url: str | None = None
    remote_catalog_api_key: str | None = None
    local_catalog_path: str | None = None
    default_strategy: StrategyType = StrategyType.RULE_BASED
    strategy_cohorts: str | None = None
    feature_flags: str | None = None
    fetch_timeout_seconds: float = 3.0
    history_window: int = 10
    diversity_strength: float = 0.6
    diversity_decay: float = 0.5
    weight_preference: float = 0.5
    weight_nutrition: float = 0.25
    weight_freshness: float = 0.15
    weight_favorite: float = 0.1
    freshness_half_life_days: float = 30.0
    environment: str = _ENVIRONMENT

    model_config = SettingsConfigDict(
        env_file=(f".env.{_ENVIRONMENT}", ".env"),
        extra="ignore",
    )


def parse_feature_flags(raw: str | None) -> dict[str, bool]:
    """Parse ``flag=on,flag=off`` pairs; a bare flag means on."""
    if raw is None:
        return {}
    flags: dict[str, bool] = {}
    for chunk in raw.split(","):
        entry = chunk.strip()
        if not entry:
            continue
        name, _, value = entry.partition("=")
        name = name.strip()
        value = value.strip().lower() or "on"
        if not name:
            continue
        if value in _TRUTHY:
            flags[name] = True
        elif value in _FALSY:
            flags[name] = False
    return flags


def parse_strategy_cohorts(raw: str | None) -> dict[str, StrategyType]:
    """Parse ``cohort=strategy`` pairs, ignoring unknown strategies."""
    if raw is None:
        return {}
    cohorts: dict[str, StrategyType] = {}
    for chunk in raw.split(","):
        cohort, _, value = chunk.partition("=")
        cohort = cohort.strip()
        if not cohort:
            continue
        try:
            cohorts[cohort] = StrategyType(value.strip().lower())
        except ValueError:
            continue
    return cohorts
