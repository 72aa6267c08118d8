"""Configuration management for the library circulation service.

Settings are loaded from environment variables (prefix
``LIBRARY_CIRCULATION_``) or a local ``.env`` file and validated with
Pydantic v2. The coordinator receives its configuration explicitly; the
module-level accessor below exists for the tool server entry point.
"""

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CirculationConfig(BaseSettings):
    """Circulation service configuration.

    Covers three areas:
    - Service metadata used when the MCP server announces itself
    - Circulation policy (the fixed loan period)
    - Logging and tracing behaviour
    """

    model_config = SettingsConfigDict(
        # All env vars share one prefix to avoid clashing with other services
        env_prefix="LIBRARY_CIRCULATION_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # === Service Metadata ===

    service_name: str = Field(
        default="library-circulation",
        description="Server name announced to MCP clients",
        pattern=r"^[a-z0-9-]+$",
    )

    service_version: str = Field(
        default="0.1.0",
        description="Service version reported during the MCP handshake",
        pattern=r"^\d+\.\d+\.\d+(-[a-zA-Z0-9.]+)?$",
    )

    transport: str = Field(
        default="stdio",
        description="Transport used by the MCP server",
        pattern=r"^stdio$",
    )

    # === Circulation Policy ===

    loan_period_days: int = Field(
        default=30,
        description="Fixed loan period applied to every checkout",
        ge=1,
        le=365,
    )

    # === Logging & Tracing ===

    debug: bool = Field(
        default=False,
        description="Enable debug logging",
    )

    log_level: str = Field(
        default="INFO",
        description="Logging level (DEBUG, INFO, WARNING, ERROR)",
        pattern=r"^(DEBUG|INFO|WARNING|ERROR)$",
    )

    logfire_token: str | None = Field(
        default=None,
        description="Logfire write token; traces stay local when absent",
        repr=False,
    )

    send_to_logfire: bool = Field(
        default=False,
        description="Ship traces to the Logfire backend",
    )

    console_traces: bool = Field(
        default=False,
        description="Print spans to the console",
    )

    @field_validator("service_name")
    @classmethod
    def validate_service_name(cls, v: str) -> str:
        """Keep the announced name short and readable."""
        if len(v) < 3:
            raise ValueError("Service name must be at least 3 characters")
        if len(v) > 50:
            raise ValueError("Service name must not exceed 50 characters")
        return v

    @field_validator("log_level", mode="before")
    @classmethod
    def normalize_log_level(cls, v: str) -> str:
        """Accept lowercase level names from the environment."""
        return v.upper() if isinstance(v, str) else v

    @property
    def effective_log_level(self) -> str:
        """Level to configure logging with; debug mode wins."""
        return "DEBUG" if self.debug else self.log_level

    @property
    def server_info(self) -> dict[str, str]:
        """Service information for the MCP handshake."""
        return {
            "name": self.service_name,
            "version": self.service_version,
            "transport": self.transport,
        }


class _ConfigStore:
    """Internal storage for the configuration instance."""

    _instance: CirculationConfig | None = None


def get_config() -> CirculationConfig:
    """Get or create the process configuration instance."""
    if _ConfigStore._instance is None:  # type: ignore[reportPrivateUsage]
        _ConfigStore._instance = CirculationConfig()  # type: ignore[reportPrivateUsage]
    return _ConfigStore._instance  # type: ignore[reportPrivateUsage]


def reset_config() -> None:
    """Reset configuration (useful for testing)."""
    _ConfigStore._instance = None  # type: ignore[reportPrivateUsage]
