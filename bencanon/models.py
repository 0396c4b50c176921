"""Configuration models for bencanon."""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, field_validator

# Ceiling applied when nothing else is configured. Kept well below what the
# interpreter's recursion limit allows, since every nesting level costs a
# handful of Python frames.
DEFAULT_MAX_DEPTH = 64
MAX_CONFIGURABLE_DEPTH = 128


class LogLevel(str, Enum):
    """Logging levels."""

    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class EncoderConfig(BaseModel):
    """Encoder configuration."""

    max_depth: int = Field(
        default=DEFAULT_MAX_DEPTH,
        ge=0,
        le=MAX_CONFIGURABLE_DEPTH,
        description="Maximum number of nested list/dict levels",
    )
    debug_checks: bool = Field(
        default=False,
        description="Verify declared MAX_DEPTH against observed nesting",
    )
    check_key_order: bool = Field(
        default=False,
        description="Reject dict keys emitted out of ascending byte order",
    )
    bytes_prefix: str = Field(
        default="base64:",
        description="CLI marker for JSON strings that carry base64 raw bytes",
    )

    @field_validator("bytes_prefix")
    @classmethod
    def validate_bytes_prefix(cls, v: str) -> str:
        """Validate the raw bytes prefix is non-empty."""
        if not v:
            msg = "bytes_prefix must not be empty"
            raise ValueError(msg)
        return v


class ObservabilityConfig(BaseModel):
    """Observability configuration."""

    log_level: LogLevel = Field(default=LogLevel.WARNING, description="Log level")
    log_file: str | None = Field(None, description="Log file path")
    structured_logging: bool = Field(
        default=True,
        description="Write JSON lines to the log file",
    )
    log_correlation_id: bool = Field(
        default=True,
        description="Include correlation IDs",
    )


class Config(BaseModel):
    """Main configuration model."""

    encoder: EncoderConfig = Field(
        default_factory=EncoderConfig,
        description="Encoder configuration",
    )
    observability: ObservabilityConfig = Field(
        default_factory=ObservabilityConfig,
        description="Observability configuration",
    )
