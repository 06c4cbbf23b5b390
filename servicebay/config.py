"""Application configuration loaded from config.yaml + environment variables."""

from __future__ import annotations

import yaml
from functools import lru_cache
from pathlib import Path
from pydantic import Field
from pydantic_settings import BaseSettings

_CONFIG_PATH = Path(__file__).resolve().parent.parent / "config.yaml"


def _load_yaml() -> dict:
    if _CONFIG_PATH.exists():
        with open(_CONFIG_PATH) as f:
            return yaml.safe_load(f) or {}
    return {}


_yaml = _load_yaml()


class TriageConfig(BaseSettings):
    default_priority: int = 5
    base_priorities: dict[str, int] = Field(default_factory=lambda: {
        "engine": 9,
        "transmission": 9,
        "brakes": 8,
        "suspension": 6,
        "electrical": 6,
        "diagnostics": 5,
        "oil_change": 3,
        "tyres": 5,
        "ac": 4,
        "bodywork": 4,
    })
    keyword_modifiers: dict[str, int] = Field(default_factory=lambda: {
        "smoke": 2,
        "fire": 3,
        "leak": 2,
        "won't start": 3,
        "brake": 2,
        "stall": 1,
        "noise": 1,
        "overheat": 2,
        "slow": -1,
        "maintenance": -2,
    })


class SelectorWeights(BaseSettings):
    distance: float = 0.3
    earliness: float = 0.3
    workload: float = 0.2
    rating: float = 0.2


class SelectorConfig(BaseSettings):
    weights: SelectorWeights = Field(default_factory=SelectorWeights)
    reference_radius_km: float = 15.0
    search_radius_km: float = 50.0
    neutral_earliness: float = 0.5
    fallback_chain: list[str] = Field(default_factory=lambda: ["skill_geo"])
    enforce_capacity: bool = False


class SchedulerConfig(BaseSettings):
    job_minutes: int = 180
    break_minutes: int = 30
    default_start: str = "08:00"
    default_end: str = "17:00"
    default_days: list[str] = Field(default_factory=lambda: ["Mon", "Tue", "Wed", "Thu", "Fri"])
    use_request_estimates: bool = False


class QuoteConfig(BaseSettings):
    labor_rate: float = 1000.0
    currency: str = "KES"
    auto_quote_on_report: bool = False


class ConcurrencyConfig(BaseSettings):
    max_attempts: int = 3


class Settings(BaseSettings):
    database_url: str = "sqlite+aiosqlite:///data/servicebay.db"
    log_level: str = "INFO"
    triage: TriageConfig = Field(default_factory=TriageConfig)
    selector: SelectorConfig = Field(default_factory=SelectorConfig)
    scheduler: SchedulerConfig = Field(default_factory=SchedulerConfig)
    quote: QuoteConfig = Field(default_factory=QuoteConfig)
    concurrency: ConcurrencyConfig = Field(default_factory=ConcurrencyConfig)

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "env_prefix": "SERVICEBAY_"}

    @classmethod
    def settings_customise_sources(
        cls, settings_cls, init_settings, env_settings, dotenv_settings, file_secret_settings
    ):
        # Environment and .env beat the YAML values passed in by get_settings().
        return env_settings, dotenv_settings, init_settings, file_secret_settings


def get_settings() -> Settings:
    """Build Settings by merging YAML defaults with env overrides."""
    y = _yaml
    sel = dict(y.get("selector", {}))
    weights = SelectorWeights(**sel.pop("weights", {}))
    kwargs = dict(
        triage=TriageConfig(**y.get("triage", {})),
        selector=SelectorConfig(weights=weights, **sel),
        scheduler=SchedulerConfig(**y.get("scheduler", {})),
        quote=QuoteConfig(**y.get("quote", {})),
        concurrency=ConcurrencyConfig(**y.get("concurrency", {})),
    )
    db_url = y.get("database", {}).get("url")
    if db_url:
        kwargs["database_url"] = db_url
    if y.get("log_level"):
        kwargs["log_level"] = y["log_level"]
    return Settings(**kwargs)


@lru_cache
def cached_settings() -> Settings:
    return get_settings()
