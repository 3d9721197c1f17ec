"""
Configuration management using Pydantic Settings.

Loads environment variables with validation, defaults, and type safety.
"""

from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Load .env file explicitly before creating Settings instance
# Search for .env file in project root (parent of src/)
_current_file = Path(__file__)
_project_root = _current_file.parent.parent.parent
_env_file = _project_root / ".env"

load_dotenv(dotenv_path=_env_file, override=False)


class Settings(BaseSettings):
    """
    Application configuration loaded from environment variables.

    All settings have sensible defaults and are validated on load.
    """

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # ========================================================================
    # Relational Store Configuration
    # ========================================================================

    db_host: Optional[str] = Field(
        default=None,
        description="TCRD database host",
    )
    db_port: int = Field(
        default=5432,
        ge=1,
        le=65535,
        description="TCRD database port",
    )
    db_name: str = Field(
        default="tcrd",
        description="TCRD database name",
    )
    db_user: str = Field(
        default="tcrd",
        description="Database username",
    )
    db_password: Optional[str] = Field(
        default=None,
        description="Database password",
    )
    db_pool_min_size: int = Field(
        default=2,
        ge=1,
        le=100,
        description="Minimum connections kept in the pool",
    )
    db_pool_max_size: int = Field(
        default=10,
        ge=1,
        le=1000,
        description="Maximum connections in the pool",
    )
    db_command_timeout: int = Field(
        default=60,
        ge=1,
        le=600,
        description="Statement timeout in seconds",
    )

    # ========================================================================
    # Aggregation Configuration
    # ========================================================================

    facet_timeout_ms: int = Field(
        default=15000,
        ge=100,
        le=120000,
        description="Timeout for a single facet count query in milliseconds",
    )
    default_page_size: int = Field(
        default=10,
        ge=1,
        le=1000,
        description="Default entity page size for result envelopes",
    )

    # ========================================================================
    # Ontology Configuration
    # ========================================================================

    global_ontologies: list[str] = Field(
        default_factory=lambda: ["do", "dto"],
        description="Ontologies built into memory at startup",
    )

    # ========================================================================
    # Logging Configuration
    # ========================================================================

    log_level: str = Field(
        default="INFO",
        description="Logging level",
    )
    log_format: str = Field(
        default="json",
        description="Log format: json or text",
    )
    debug_mode: bool = Field(
        default=False,
        description="Enable debug mode with verbose logging",
    )

    # ========================================================================
    # Validators
    # ========================================================================

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level is valid."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        v_upper = v.upper()
        if v_upper not in valid_levels:
            raise ValueError(
                f"Invalid log level: {v}. Must be one of {valid_levels}"
            )
        return v_upper

    @field_validator("log_format")
    @classmethod
    def validate_log_format(cls, v: str) -> str:
        """Validate log format."""
        valid_formats = {"json", "text"}
        v_lower = v.lower()
        if v_lower not in valid_formats:
            raise ValueError(
                f"Invalid log format: {v}. Must be 'json' or 'text'"
            )
        return v_lower

    @field_validator("global_ontologies")
    @classmethod
    def validate_global_ontologies(cls, v: list[str]) -> list[str]:
        """Normalize ontology names to lowercase."""
        return [name.strip().lower() for name in v if name.strip()]

    # ========================================================================
    # Computed Properties
    # ========================================================================

    @property
    def has_store_config(self) -> bool:
        """Check if the relational store is configured."""
        return bool(self.db_host and self.db_password)

    def validate_connectivity(self) -> None:
        """
        Validate that the relational store is configured.

        Raises:
            ValueError: If no store is configured.
        """
        if not self.has_store_config:
            env_file_path = _env_file
            error_msg = [
                "No relational store configured for TCRD core.",
                "",
                "Please configure credentials:",
                "  1. Set DB_HOST=your-server",
                "  2. Set DB_NAME=tcrd",
                "  3. Set DB_USER=tcrd",
                "  4. Set DB_PASSWORD=your_password",
                "",
            ]
            if env_file_path.exists():
                error_msg.append(f"Found .env file at: {env_file_path}")
            else:
                error_msg.append(f"No .env file found at: {env_file_path}")

            raise ValueError("\n".join(error_msg))


# Global settings instance
# Loaded once at import time
settings = Settings()
