"""
Module: settings.py
Description: Application configuration using pydantic-settings.

Configures the delivery pipeline, its AWS collaborators and the retry
policy from environment variables with validation and defaults.
Supports .env files for local development.
"""

import re
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore"
    )

    # Application settings
    app_name: str = Field(default="Webhook Emitter", description="Application name")
    app_version: str = Field(default="0.1.0", description="Application version")
    log_level: str = Field(default="INFO", description="Logging level")

    # AWS settings
    aws_region: str = Field(default="us-east-1", description="AWS region")
    stage: str = Field(default="dev", description="Deployment stage")

    # DynamoDB settings
    subscriptions_table_name: str = Field(
        ...,
        description="Name of the DynamoDB webhook subscriptions table"
    )
    delivery_records_table_name: str = Field(
        ...,
        description="Name of the DynamoDB delivery records table"
    )
    audit_log_table_name: str = Field(
        ...,
        description="Name of the DynamoDB audit history table"
    )

    # SQS settings
    delivery_queue_url: str = Field(
        ...,
        description="URL of the SQS queue that runs delivery jobs"
    )

    # SNS settings
    staff_events_topic_arn: str = Field(
        ...,
        description="SNS topic used to notify live staff sessions of delivery attempts"
    )
    staff_audience: str = Field(
        default="staff",
        description="Audience allowed to receive delivery notifications"
    )

    # Envelope settings
    base_url: str = Field(
        default="http://localhost:8000",
        description="Base URL of this installation, sent as X-Event-Source-Instance"
    )
    user_agent: Optional[str] = Field(
        default=None,
        description="User-Agent header; defaults to '<app_name>/<app_version>'"
    )

    # Delivery settings
    delivery_timeout: int = Field(
        default=10,
        ge=1,
        le=30,
        description="HTTP timeout in seconds for delivery attempts"
    )
    max_response_body_length: int = Field(
        default=10000,
        ge=0,
        description="Maximum number of response body characters kept on a delivery record"
    )

    # Retry settings
    retry_enabled: bool = Field(
        default=True,
        description="Re-enqueue deliveries that fail with a retryable status"
    )
    max_retry_count: int = Field(
        default=4,
        ge=0,
        description="Retry budget per logical delivery"
    )
    retry_backoff_base: int = Field(
        default=5,
        ge=1,
        description="Base of the exponential retry delay, in minutes"
    )

    # Audit settings
    system_actor: str = Field(
        default="system",
        description="Identity recorded on audit entries written by the pipeline"
    )

    @field_validator(
        'subscriptions_table_name',
        'delivery_records_table_name',
        'audit_log_table_name'
    )
    @classmethod
    def validate_table_names(cls, v: str) -> str:
        """Validate DynamoDB table names."""
        if not v or not isinstance(v, str):
            raise ValueError("Table name must be a non-empty string")

        if not re.match(r'^[a-zA-Z0-9_.-]+$', v):
            raise ValueError(
                "Table name must contain only letters, numbers, dots, hyphens, and underscores"
            )

        return v

    @field_validator('log_level')
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is a valid logging level."""
        valid_levels = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']
        if v.upper() not in valid_levels:
            raise ValueError(f"log_level must be one of: {', '.join(valid_levels)}")
        return v.upper()

    @field_validator('base_url')
    @classmethod
    def validate_base_url(cls, v: str) -> str:
        """Strip trailing slashes so the instance header is stable."""
        if not v.startswith(('http://', 'https://')):
            raise ValueError("base_url must be a valid HTTP/HTTPS URL")
        return v.rstrip('/')

    @property
    def resolved_user_agent(self) -> str:
        return self.user_agent or f"{self.app_name.replace(' ', '')}/{self.app_version}"


# Global settings instance
settings = Settings()
