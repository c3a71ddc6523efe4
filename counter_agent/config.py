"""Configuration management using Pydantic Settings."""

from functools import lru_cache
from typing import Literal, Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Service Configuration
    service_host: str = Field(default="0.0.0.0", description="Service host")
    service_port: int = Field(default=3011, description="Service port")
    log_level: str = Field(default="INFO", description="Logging level")
    log_format: Literal["json", "console"] = Field(
        default="json", description="structlog renderer: json or console"
    )
    agent_message: str = Field(
        default="Midnight Counter Agent is running",
        description="Message returned by /availability",
    )

    # Payment service
    payment_service_url: str = Field(
        default="https://localhost:3001/api/v1",
        description="Base URL of the payment service API",
    )
    payment_api_key: Optional[str] = Field(
        default=None, description="API token sent in the payment service 'token' header"
    )
    payment_verify_tls: bool = Field(
        default=True, description="Verify TLS certificates of the payment service"
    )
    payment_request_timeout: float = Field(
        default=10.0, description="Timeout for a single payment status query (seconds)"
    )
    payment_success_status: str = Field(
        default="Success", description="Payment status value that confirms a payment"
    )
    payment_poll_interval_seconds: float = Field(
        default=5.0, gt=0, description="Delay between payment status queries"
    )
    payment_poll_timeout_seconds: float = Field(
        default=120.0, gt=0, description="Give up waiting for payment after this long"
    )

    # Ledger bridge (wallet + counter contract)
    ledger_bridge_url: str = Field(
        default="http://localhost:3012", description="Ledger bridge sidecar URL"
    )
    ledger_bridge_timeout: float = Field(
        default=300.0,
        description="Timeout for ledger bridge calls (increment proofs are slow)",
    )
    wallet_seed: Optional[str] = Field(
        default=None, description="Hex seed used to restore the agent wallet"
    )
    contract_address: Optional[str] = Field(
        default=None, description="Address of the deployed counter contract"
    )
    network_id: str = Field(default="Preprod", description="Ledger network name")

    # Ledger observer
    ledger_observer_enabled: bool = Field(
        default=True, description="Log the rendered counter value periodically"
    )
    ledger_observer_interval_seconds: float = Field(
        default=5.0, gt=0, description="Seconds between counter samples"
    )

    # Job metadata echoed to callers
    blockchain_identifier: str = Field(
        default="Cardano", description="blockchainIdentifier returned by /start_job"
    )
    unlock_time_offset_seconds: int = Field(default=600)
    submit_result_time_offset_seconds: int = Field(default=1200)
    external_dispute_unlock_time_offset_seconds: int = Field(default=1800)

    # Shutdown
    observer_stop_timeout_seconds: float = Field(
        default=10.0, description="Max seconds to wait for the observer to stop"
    )
    job_cancel_timeout_seconds: float = Field(
        default=10.0, description="Max seconds to wait for cancelled jobs to settle"
    )

    # Sentry
    sentry_dsn: Optional[str] = Field(
        default=None,
        description="Sentry DSN for error tracking and performance monitoring",
    )
    sentry_environment: str = Field(
        default="development",
        description="Sentry environment tag (development, staging, production)",
    )
    sentry_traces_sample_rate: float = Field(
        default=0.1,
        ge=0.0,
        le=1.0,
        description="Sentry traces sample rate (0.0-1.0)",
    )


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
