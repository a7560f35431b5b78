"""Application configuration settings."""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

ENV_FILE = ".env"
ENV_FILE_ENCODING = "utf-8"

class Settings(BaseSettings):
    """Application configuration values loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=ENV_FILE, env_file_encoding=ENV_FILE_ENCODING, extra="ignore"
    )

    database_url: str = Field(
        description="Database connection URL used by SQLAlchemy to read subscriptions",
        min_length=1,
    )
    db_statement_timeout_ms: int = Field(
        default=5000,
        description="Upper bound for a single lookup query on PostgreSQL",
        gt=0,
    )
    db_pool_timeout_seconds: float = Field(
        default=10.0,
        description="Seconds to wait for a pooled connection before giving up",
        gt=0,
    )
    db_create_tables: bool = Field(
        default=False,
        description="Create missing tables at startup, for local development",
    )

    redis_url: str = Field(
        default="redis://localhost:6379/0",
        description="Redis instance holding the per-user offline notification lists",
    )
    redis_socket_timeout_seconds: float = Field(
        default=5.0,
        description="Socket timeout applied to every Redis command",
        gt=0,
    )
    offline_cache_depth: int = Field(
        default=50,
        description="Maximum number of notifications kept per user",
        gt=0,
    )
    offline_cache_key_prefix: str = Field(
        default="alerts",
        description="Prefix of the Redis list key, the user id is appended to it",
        min_length=1,
    )

    kafka_bootstrap_servers: str = Field(
        default="localhost:9092",
        description="Comma separated list of Kafka brokers carrying the CDC feed",
    )
    kafka_topic: str = Field(
        default="dbserver1.public.alerts",
        description="Debezium topic with the row changes of the alerts table",
    )
    kafka_group_id: str = Field(default="garuda-alerts-group")
    kafka_client_id: str = Field(default="garuda-alert-consumer")
    kafka_poll_timeout_seconds: float = Field(default=1.0, gt=0)

    change_feed_enabled: bool = Field(
        default=True,
        description="Start the CDC consumer workers together with the API",
    )
    consumer_workers: int = Field(
        default=1,
        description="Number of consumer loops, each one owns its assigned partitions",
        ge=1,
    )
    consumer_max_attempts: int = Field(
        default=5,
        description="Attempts made for an event before it is logged as dropped",
        ge=1,
    )
    consumer_retry_backoff_seconds: float = Field(default=1.0, ge=0)
    consumer_retry_backoff_max_seconds: float = Field(default=30.0, ge=0)

    stream_queue_size: int = Field(
        default=100,
        description="Pending messages allowed per open stream before it is dropped",
        gt=0,
    )
    stream_keepalive_seconds: float = Field(
        default=15.0,
        description="Idle time after which a keep-alive comment is written to a stream",
        gt=0,
    )

    app_timezone: str = Field(default="UTC")
    log_level: str = Field(default="INFO")
    cors_allow_origins: list[str] = Field(
        default_factory=lambda: ["http://localhost:5173"]
    )

    sendgrid_api_key: str | None = Field(
        default=None,
        description="SendGrid API key used for sending alert emails via the REST API",
    )
    sendgrid_sender: str | None = Field(
        default=None,
        description="Email address that will appear as the sender of alert emails",
        min_length=3,
    )
    sms_gateway_url: str | None = Field(
        default=None,
        description="HTTP endpoint accepting JSON SMS requests; SMS is skipped when unset",
    )
    sms_gateway_token: str | None = Field(default=None)
    sms_gateway_timeout_seconds: float = Field(default=5.0, gt=0)
    out_of_band_workers: int = Field(
        default=4,
        description="Threads used for fire-and-forget email and SMS delivery",
        ge=1,
    )

    @model_validator(mode="after")
    def _validate_sendgrid_pair(self) -> "Settings":
        if bool(self.sendgrid_api_key) ^ bool(self.sendgrid_sender):
            raise ValueError(
                "SENDGRID_API_KEY and SENDGRID_SENDER must both be provided to enable email"
            )
        if self.sendgrid_sender and "@" not in self.sendgrid_sender:
            raise ValueError("SENDGRID_SENDER must be a valid email address")
        return self

@lru_cache
def get_settings() -> Settings:
    """Return cached application settings instance."""

    return Settings()


__all__ = ["Settings", "get_settings"]
