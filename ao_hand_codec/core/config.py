"""
Configuration for the AO Hand Fracture Codec

Uses Pydantic's BaseSettings for typed configuration with environment
variable (and .env file) overrides. Every setting is optional: the codec runs
with the bundled classification table and default logging when nothing is
configured.

Environment Variables (prefix AO_CODEC_):
    AO_CODEC_TAXONOMY_PATH        → Alternative classification table (JSON)
    AO_CODEC_LOG_LEVEL            → loguru level for configure_logging()
    AO_CODEC_LOG_FILE             → Optional file sink
    AO_CODEC_REJECT_INVALID_CODES → Refuse to commit codes that fail validation

Usage:
    from ao_hand_codec.core.config import get_settings

    settings = get_settings()
    print(settings.log_level)
"""

from pathlib import Path
from typing import Any, Dict, Optional

from dotenv import load_dotenv
from pydantic import Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from ao_hand_codec.core.constants import DEFAULT_TAXONOMY_PATH
from ao_hand_codec.core.exceptions import ConfigurationError


_LOG_LEVELS = ("TRACE", "DEBUG", "INFO", "SUCCESS", "WARNING", "ERROR", "CRITICAL")


class CodecSettings(BaseSettings):
    """
    Settings for taxonomy loading, logging and commit policy.

    Design Notes:
    - Whether an invalid code may still be saved is the caller's decision;
      `reject_invalid_codes` lets the caller make it once, here.
    - A custom taxonomy path must exist; anything else fails at startup.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="AO_CODEC_",
        case_sensitive=False,
        extra="ignore",
    )

    # ============================================================================
    # TAXONOMY
    # ============================================================================

    taxonomy_path: Optional[Path] = Field(
        default=None,
        description="JSON classification table to load instead of the bundled AO region 7 table",
    )

    # ============================================================================
    # LOGGING
    # ============================================================================

    log_level: str = Field(
        default="INFO",
        description="Minimum loguru level for the stderr sink",
    )

    log_file: Optional[Path] = Field(
        default=None,
        description="Optional file sink for codec logs",
    )

    # ============================================================================
    # COMMIT POLICY
    # ============================================================================

    reject_invalid_codes: bool = Field(
        default=False,
        description="Raise instead of warning when a committed code fails validation",
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in _LOG_LEVELS:
            raise ValueError(f"log_level must be one of {_LOG_LEVELS}, got '{v}'")
        return level

    @field_validator("taxonomy_path")
    @classmethod
    def validate_taxonomy_path(cls, v: Optional[Path]) -> Optional[Path]:
        if v is not None and not Path(v).exists():
            raise ValueError(f"taxonomy file not found: {v}")
        return v

    def resolved_taxonomy_path(self) -> Path:
        """Configured taxonomy file, or the bundled table."""
        return self.taxonomy_path or DEFAULT_TAXONOMY_PATH

    def to_dict(self) -> Dict[str, Any]:
        """Convert settings to dictionary (for logging/debugging)."""
        return {
            "taxonomy_path": str(self.resolved_taxonomy_path()),
            "log_level": self.log_level,
            "log_file": str(self.log_file) if self.log_file else None,
            "reject_invalid_codes": self.reject_invalid_codes,
        }


def load_settings(env_file: Optional[Path] = None, **overrides: Any) -> CodecSettings:
    """
    Build settings from the environment plus explicit overrides.

    STAGE 1: Load an explicit .env file into the environment (if given)
    STAGE 2: Build and validate CodecSettings

    Args:
        env_file: .env file to load before reading the environment
        **overrides: Field values that take precedence over the environment

    Raises:
        ConfigurationError: If the env file is missing or any value fails validation
    """
    if env_file is not None:
        if not Path(env_file).exists():
            raise ConfigurationError("Env file not found", context={"env_file": str(env_file)})
        load_dotenv(env_file)

    try:
        return CodecSettings(**overrides)
    except ValidationError as e:
        raise ConfigurationError(
            "Invalid codec settings",
            context={"errors": "; ".join(err["msg"] for err in e.errors())},
        ) from e


# ============================================================================
# SINGLETON INSTANCE
# ============================================================================
# Created lazily so importing the package never reads the environment.

_settings: Optional[CodecSettings] = None


def get_settings() -> CodecSettings:
    """Get or create the process-wide settings instance."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings


def reset_settings() -> None:
    """Forget the cached settings (used by tests that change the environment)."""
    global _settings
    _settings = None
