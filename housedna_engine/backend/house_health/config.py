from __future__ import annotations

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    # ---- App ----
    app_env: str = "local"  # local|dev|prod
    database_url: str = "sqlite:///./housedna.db"

    # ---- Celery ----
    celery_broker_url: str = "redis://localhost:6379/0"
    celery_result_backend: str = "redis://localhost:6379/1"
    health_sweep_interval_seconds: int = 60 * 60 * 24

    # ---- Health scoring policy ----
    # Risk thresholds are tuning knobs, not contract.
    health_high_risk_threshold: int = 50
    health_medium_risk_threshold: int = 70
    health_house_alert_threshold: int = 50

    health_decay_max_points: int = 40
    health_life_fraction_cap: float = 1.5
    health_warranty_penalty: int = 5
    health_inspection_penalty: int = 5
    health_inspection_stale_months: int = 24
    health_warranty_notice_days: int = 90

    health_age_points_per_decade: int = 2
    health_age_deduction_cap: int = 20

    # ---- Recompute serialization ----
    health_recompute_lock_enabled: bool = True
    health_recompute_lock_ttl_seconds: int = 30

    def model_post_init(self, __context) -> None:
        if self.health_medium_risk_threshold < self.health_high_risk_threshold:
            raise ValueError("health_medium_risk_threshold must be >= health_high_risk_threshold")
        if self.health_life_fraction_cap <= 0:
            raise ValueError("health_life_fraction_cap must be positive")
        if self.health_inspection_stale_months <= 0:
            raise ValueError("health_inspection_stale_months must be positive")
        if self.health_age_deduction_cap < 0 or self.health_decay_max_points < 0:
            raise ValueError("health deduction caps must not be negative")


settings = Settings()
