"""
Configuration settings for the study scheduler.

Uses Pydantic Settings for environment variable management with .env file support.
"""
from __future__ import annotations

from functools import lru_cache
from typing import TYPE_CHECKING, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

if TYPE_CHECKING:
    from study_scheduler.adaptive.task_selector import SelectorConfig
    from study_scheduler.study.retention_engine import ScheduleBounds


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================
    # Database
    # ========================================
    database_url: str = Field(
        default="sqlite:///study_scheduler.db",
        description="SQLAlchemy connection string for the learner store",
    )

    # ========================================
    # Logging
    # ========================================
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        default="INFO",
        description="Logging verbosity level",
    )
    log_file: str | None = Field(
        default=None,
        description="Log file path (None for stderr only)",
    )

    # ========================================
    # Review Scheduling
    # ========================================
    min_interval_minutes: float = Field(
        default=30,
        gt=0,
        description="Shortest review interval",
    )
    max_interval_days: float = Field(
        default=90,
        gt=0,
        description="Longest review interval",
    )
    default_interval_hours: float = Field(
        default=4,
        gt=0,
        description="Interval used for a first review and after a very poor session",
    )

    # ========================================
    # Implicit Credit (FIRe)
    # ========================================
    fire_max_depth: int = Field(
        default=4,
        ge=1,
        description="Deepest prerequisite level that receives implicit credit",
    )

    # ========================================
    # Task Selection
    # ========================================
    default_task_count: int = Field(
        default=5,
        ge=1,
        description="Tasks returned by `next` when no count is given",
    )
    consolidation_min_due: int = Field(
        default=3,
        description="Due reviews required before consolidation is attempted",
    )
    consolidation_min_covered: int = Field(
        default=2,
        description="Due topics a consolidation task must cover",
    )
    consolidation_bonus: float = Field(
        default=0.2,
        description="Priority bonus over an equivalent plain review",
    )
    review_ratio: float = Field(
        default=0.6,
        ge=0,
        le=1,
        description="Soft floor for the share of review tasks (60%)",
    )
    new_topic_gate: int = Field(
        default=5,
        description="Outstanding due reviews that block new topics",
    )

    # ========================================
    # Question Picking
    # ========================================
    recent_correct_window_hours: float = Field(
        default=48,
        description="Questions answered correctly within this window are skipped",
    )

    def get_schedule_bounds(self) -> ScheduleBounds:
        """Build interval bounds for the retention engine."""
        from datetime import timedelta

        from study_scheduler.study.retention_engine import ScheduleBounds

        return ScheduleBounds(
            min_interval=timedelta(minutes=self.min_interval_minutes),
            max_interval=timedelta(days=self.max_interval_days),
            default_interval=timedelta(hours=self.default_interval_hours),
        )

    def get_selector_config(self) -> SelectorConfig:
        """Build task selector knobs."""
        from study_scheduler.adaptive.task_selector import SelectorConfig

        return SelectorConfig(
            consolidation_min_due=self.consolidation_min_due,
            consolidation_min_covered=self.consolidation_min_covered,
            consolidation_bonus=self.consolidation_bonus,
            review_ratio=self.review_ratio,
            new_topic_gate=self.new_topic_gate,
            max_depth=self.fire_max_depth,
        )


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
