"""Centralized configuration using pydantic-settings.

All configuration values are loaded from environment variables with sensible defaults.
Environment variables can be set in .env file or directly in the environment.

Usage:
    from sports_edge.config import get_settings
    settings = get_settings()
    print(settings.learning_rate)
    print(settings.min_ev_pct)
"""

from functools import lru_cache
from pathlib import Path

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _get_project_root() -> Path:
    """Get the project root directory."""
    return Path(__file__).parent.parent.parent.parent


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",  # Ignore extra env vars
    )

    # ==========================================================================
    # Storage
    # ==========================================================================
    storage_backend: str = Field(
        default="json",
        description="Blob store used for training rows and models (json, sql, memory)"
    )
    database_url: str = Field(
        default="sqlite:///data/sports_edge.db",
        description="SQLAlchemy database URL for the sql storage backend"
    )
    storage_retries: int = Field(
        default=2,
        description="Retries for file store reads/writes that fail with OSError"
    )
    storage_retry_delay: float = Field(
        default=0.2,
        description="Initial delay in seconds between storage retries"
    )

    # ==========================================================================
    # Training
    # ==========================================================================
    learning_rate: float = Field(
        default=0.1,
        description="Gradient descent step size"
    )
    epochs: int = Field(
        default=500,
        description="Full-batch gradient descent iterations"
    )
    l2_lambda: float = Field(
        default=0.01,
        description="L2 penalty applied to the weights (not the bias)"
    )
    min_training_rows: int = Field(
        default=10,
        description="Minimum usable rows required before training starts"
    )
    form_window: int = Field(
        default=5,
        description="Number of prior games in the rolling recent-form window"
    )
    label_against_spread: bool = Field(
        default=False,
        description="Derive missing winner labels against the spread instead of straight up"
    )

    # ==========================================================================
    # Backtesting
    # ==========================================================================
    min_backtest_rows: int = Field(
        default=50,
        description="Minimum historical rows required to run a backtest"
    )
    warmup_games: int = Field(
        default=20,
        description="Leading rows used only to seed recent-form history"
    )
    min_ev_pct: float = Field(
        default=2.0,
        description="Minimum expected value per $100 to place a simulated bet (2.0 = 2%)"
    )
    flat_stake: float = Field(
        default=100.0,
        description="Flat stake per simulated bet"
    )
    starting_bankroll: float = Field(
        default=1000.0,
        description="Bankroll at the start of a backtest"
    )
    default_line_odds: int = Field(
        default=-110,
        description="Price assumed for spread/total sides when a row has no price"
    )

    # ==========================================================================
    # Spread / totals heuristics (uncalibrated, see DESIGN.md)
    # ==========================================================================
    spread_base_factor: float = Field(
        default=0.85,
        description="Cover-probability factor at a zero-point spread"
    )
    spread_decay: float = Field(
        default=0.02,
        description="Reduction of the cover factor per point of spread"
    )
    spread_min_factor: float = Field(
        default=0.5,
        description="Lower bound for the cover factor"
    )
    totals_slope: float = Field(
        default=0.3,
        description="Over probability gained per unit of win-probability lopsidedness"
    )
    totals_min_prob: float = Field(
        default=0.4,
        description="Lower bound of the over probability"
    )
    totals_max_prob: float = Field(
        default=0.6,
        description="Upper bound of the over probability"
    )

    # ==========================================================================
    # Paths
    # ==========================================================================
    data_dir: Path = Field(
        default_factory=lambda: _get_project_root() / "data",
        description="Directory for stored training rows and models"
    )
    logs_dir: Path = Field(
        default_factory=lambda: _get_project_root() / "logs",
        description="Directory for log files"
    )

    # ==========================================================================
    # Logging
    # ==========================================================================
    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)"
    )
    log_to_file: bool = Field(
        default=True,
        description="Whether to write logs to file"
    )

    # ==========================================================================
    # Validators
    # ==========================================================================
    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(f"log_level must be one of {valid_levels}")
        return v_upper

    @field_validator("storage_backend")
    @classmethod
    def validate_storage_backend(cls, v: str) -> str:
        v_lower = v.lower()
        if v_lower not in {"json", "sql", "memory"}:
            raise ValueError("storage_backend must be one of json, sql, memory")
        return v_lower

    @field_validator("learning_rate", "flat_stake", "starting_bankroll")
    @classmethod
    def validate_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("value must be positive")
        return v

    @field_validator("epochs", "form_window", "min_training_rows")
    @classmethod
    def validate_positive_int(cls, v: int) -> int:
        if v < 1:
            raise ValueError("value must be at least 1")
        return v

    @field_validator("warmup_games", "min_backtest_rows", "storage_retries")
    @classmethod
    def validate_non_negative_int(cls, v: int) -> int:
        if v < 0:
            raise ValueError("value must not be negative")
        return v

    @field_validator("l2_lambda", "min_ev_pct")
    @classmethod
    def validate_non_negative(cls, v: float) -> float:
        if v < 0:
            raise ValueError("value must not be negative")
        return v

    @field_validator("default_line_odds")
    @classmethod
    def validate_american_odds(cls, v: int) -> int:
        if -100 < v < 100:
            raise ValueError("default_line_odds must be American odds (<= -100 or >= 100)")
        return v

    @field_validator("spread_base_factor", "spread_min_factor", "totals_min_prob", "totals_max_prob")
    @classmethod
    def validate_probability(cls, v: float) -> float:
        if not 0 <= v <= 1:
            raise ValueError("value must be between 0 and 1")
        return v

    # ==========================================================================
    # Helpers
    # ==========================================================================
    def ensure_directories(self) -> None:
        """Create all required directories if they don't exist."""
        self.data_dir.mkdir(parents=True, exist_ok=True)
        self.logs_dir.mkdir(parents=True, exist_ok=True)


@lru_cache
def get_settings() -> Settings:
    """Get cached application settings.

    Settings are loaded once and cached for performance.
    Call get_settings.cache_clear() to reload.
    """
    settings = Settings()
    settings.ensure_directories()
    return settings
