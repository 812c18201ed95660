"""Configuration management for Crossvote."""

from typing import Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    # Governance thresholds
    minimum_confidence: float = 0.6
    consensus_threshold: float = 0.7
    risk_ceiling: float = 0.7

    # Voting
    max_rounds: int = 3
    jitter_amplitude: float = 0.0
    jitter_seed: Optional[int] = None

    # Timeouts (seconds)
    decision_timeout: float = 30.0
    fetch_timeout: float = 10.0
    gather_timeout: float = 30.0

    # Eligibility
    cooldown_hours: float = 24.0
    market_retry_hours: float = 2.0

    # Risk
    default_component_risk: float = 0.5
    strategy_risk_weight: float = 0.3
    market_risk_weight: float = 0.3
    liquidity_risk_weight: float = 0.2
    technical_risk_weight: float = 0.2

    # Ledger
    ledger_capacity: int = 100
    performance_window: int = 10
    persist_decisions: bool = False

    # Session handling: "queue" waits for the running cycle, "reject" refuses
    concurrency_mode: Literal["queue", "reject"] = "queue"

    # Execution planning
    dry_run: bool = True
    health_check_seconds: int = 30
    health_check_gas: int = 50_000
    rebalance_seconds: int = 300
    rebalance_gas: int = 500_000
    verification_seconds: int = 60
    verification_gas: int = 30_000

    # HTTP collaborators
    strategy_source_url: Optional[str] = None
    signal_source_url: Optional[str] = None
    http_timeout: float = 10.0

    # Database Configuration
    database_path: str = "data/crossvote.db"

    # Logging Configuration
    log_level: str = "INFO"
    log_file: Optional[str] = None

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        env_prefix="CROSSVOTE_",
        case_sensitive=False,
        extra="ignore",
    )


# Singleton instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get or create settings singleton instance."""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reset_settings() -> None:
    """Drop the cached settings so the next call re-reads the environment."""
    global _settings
    _settings = None
