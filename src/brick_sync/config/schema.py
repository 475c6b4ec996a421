"""
Configuration Schema and Models

Defines Pydantic models for the configuration schema, providing validation,
default values, and type checking for all configuration options.

Author: brick-sync Project
License: MIT
"""

from enum import Enum
from typing import Optional
from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator
from pathlib import Path

from ..sync_engine.ledger import LEDGER_FILENAME


class LogLevel(str, Enum):
    """Logging level options."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class CollisionStrategy(str, Enum):
    """What to do when the destination already holds a file of the same name."""
    OVERWRITE = "overwrite"
    RENAME = "rename"


class SyncConfig(BaseModel):
    """Source/destination and polling configuration."""

    model_config = ConfigDict(use_enum_values=True, validate_assignment=True, validate_default=True)

    source_root: Optional[str] = Field(
        default=None,
        description="Absolute path of the removable source volume (prompted for if unset)"
    )
    destination_root: Optional[str] = Field(
        default=None,
        description="Absolute path of the destination directory (prompted for if unset)"
    )
    extension: str = Field(
        default=".uf2",
        description="Case-sensitive filename suffix of files to transfer"
    )
    ledger_filename: str = Field(
        default=LEDGER_FILENAME,
        description="Name of the device ledger file inside the source root"
    )
    poll_source_interval: float = Field(
        default=1.0,
        description="Seconds between source listing attempts"
    )
    poll_destination_interval: float = Field(
        default=1.0,
        description="Seconds between destination write attempts"
    )
    pass_interval: float = Field(
        default=1.0,
        description="Seconds to wait between completed passes"
    )
    collision_strategy: CollisionStrategy = Field(
        default=CollisionStrategy.OVERWRITE,
        description="Destination filename collision handling (overwrite or rename)"
    )
    fatal_ledger_errors: bool = Field(
        default=False,
        description="Stop the process when the ledger cannot be saved"
    )

    @field_validator("source_root", "destination_root")
    @classmethod
    def validate_paths(cls, v):
        """Ensure paths are absolute."""
        if v is not None and not Path(v).is_absolute():
            raise ValueError(f"Sync root must be absolute: {v}")
        return v

    @field_validator("extension")
    @classmethod
    def normalize_extension(cls, v):
        """Ensure the extension has a leading dot; case is significant."""
        v = v.strip()
        if not v.lstrip('.'):
            raise ValueError("Extension must not be empty")
        return v if v.startswith('.') else f".{v}"

    @field_validator("ledger_filename")
    @classmethod
    def validate_ledger_filename(cls, v):
        """Ledger must sit directly in the source root."""
        if not v or Path(v).name != v:
            raise ValueError(f"Ledger filename must be a bare file name: {v}")
        return v

    @field_validator("poll_source_interval", "poll_destination_interval", "pass_interval")
    @classmethod
    def validate_interval(cls, v):
        """Intervals must be positive."""
        if v <= 0:
            raise ValueError(f"Interval must be positive: {v}")
        return v

    @model_validator(mode="after")
    def validate_ledger_not_transferable(self):
        """The ledger must not match the transfer extension."""
        if self.ledger_filename.endswith(self.extension):
            raise ValueError(
                f"Ledger filename {self.ledger_filename} must not end with {self.extension}"
            )
        return self


class LoggingConfig(BaseModel):
    """Logging configuration."""

    model_config = ConfigDict(use_enum_values=True, validate_assignment=True, validate_default=True)

    log_level: LogLevel = Field(
        default=LogLevel.INFO,
        description="Application logging level"
    )
    log_to_file: bool = Field(
        default=False,
        description="Enable logging to file"
    )
    log_file_path: str = Field(
        default="logs/brick_sync.log",
        description="Log file location"
    )
    log_rotation_size: int = Field(
        default=10485760,  # 10MB
        description="Log file size before rotation (bytes)"
    )
    log_retention_count: int = Field(
        default=5,
        description="Number of rotated log files to keep"
    )
    json_format: bool = Field(
        default=False,
        description="Emit log lines as JSON"
    )


class Config(BaseModel):
    """
    Root configuration model for brick-sync.

    Loaded from config.yaml when present and overridden by environment
    variables.
    """

    model_config = ConfigDict(use_enum_values=True, validate_assignment=True, validate_default=True)

    sync: SyncConfig = Field(default_factory=SyncConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)
