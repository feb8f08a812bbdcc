from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator

from src.components.analytics import AFFILIATE_CLICK, AnalyticsConfig, EstimationConfig, PresetPeriod


class ProjectRules(BaseModel):
    slug: str
    rules_version: str

class AnalyticsRules(BaseModel):
    event_type: str = AFFILIATE_CLICK
    conversion_rate_estimate: float = Field(default=0.029, gt=0, le=1)
    per_click_revenue_estimate: float = Field(default=1.25, ge=0)
    all_time_window_days: int = Field(default=90, ge=1)
    timezone: str = "UTC"
    default_period: PresetPeriod = PresetPeriod.LAST_7_DAYS

    @field_validator("timezone")
    @classmethod
    def _known_timezone(cls, value: str) -> str:
        from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

        try:
            ZoneInfo(value)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown timezone: {value}") from e
        return value

    def to_config(self) -> AnalyticsConfig:
        return AnalyticsConfig(
            event_type=self.event_type,
            estimation=EstimationConfig(
                conversion_rate_estimate=self.conversion_rate_estimate,
                per_click_revenue_estimate=self.per_click_revenue_estimate,
            ),
            all_time_window_days=self.all_time_window_days,
        )

class CacheRules(BaseModel):
    key_prefix: str = "affiliate-console"
    path: str = "./data/cache"

class BackendRules(BaseModel):
    kind: Literal["remote", "sqlite", "memory"] = "sqlite"
    url: str | None = None
    # Name of the environment variable holding the key, never the key itself
    api_key_env: str = "AFFILIATE_API_KEY"
    timeout_seconds: float = Field(default=10.0, gt=0)
    sqlite_path: str = "./data/affiliate.db"

class Rules(BaseModel):
    project: ProjectRules
    analytics: AnalyticsRules = Field(default_factory=AnalyticsRules)
    cache: CacheRules = Field(default_factory=CacheRules)
    backend: BackendRules = Field(default_factory=BackendRules)

    model_config = ConfigDict(extra="forbid")
