"""Application settings — Pydantic-based configuration with YAML and env var support.

Configuration is loaded from (in order of precedence):
  1. YAML config file (if specified)
  2. Environment variables (SEARCHBRIDGE_ prefix)
  3. Default values
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings


class ClientSettings(BaseModel):
    """HTTP connection to the search engine."""

    base_url: str = Field(default="http://localhost:9200", description="Search engine base URL")
    timeout: float = Field(default=5.0, gt=0, description="Request timeout in seconds")
    verify_ssl: bool = Field(default=True, description="Verify TLS certificates")
    headers: dict[str, str] = Field(default_factory=dict, description="Extra request headers")

    @field_validator("base_url")
    @classmethod
    def _strip_slash(cls, v: str) -> str:
        return v.rstrip("/")


class ScrollSettings(BaseModel):
    """Scroll cursor timings and delete-by-query paging."""

    stream_scroll_ms: int = Field(default=60_000, ge=1, description="Scroll keep-alive used by stream()")
    delete_page_size: int = Field(default=1000, ge=1, description="Page size of the delete-by-query id scan")
    delete_scroll_ms: int = Field(default=10_000, ge=1, description="Scroll keep-alive of the id scan")


class ObservabilitySettings(BaseModel):
    """Observability configuration."""

    log_level: str = Field(default="info", description="Log level: debug, info, warning, error")
    log_format: str = Field(default="json", description="Log format: json, console")


class Settings(BaseSettings):
    """Root settings.

    Configuration is loaded from environment variables with the SEARCHBRIDGE_
    prefix. Nested settings use double underscores.

    Example:
        SEARCHBRIDGE_CLIENT__BASE_URL=http://es:9200
        SEARCHBRIDGE_SCROLL__DELETE_PAGE_SIZE=500
        SEARCHBRIDGE_OBSERVABILITY__LOG_FORMAT=console
    """

    model_config = {
        "env_prefix": "SEARCHBRIDGE_",
        "env_nested_delimiter": "__",
        "case_sensitive": False,
        "env_file": ".env",
        "env_file_encoding": "utf-8",
    }

    client: ClientSettings = Field(default_factory=ClientSettings)
    scroll: ScrollSettings = Field(default_factory=ScrollSettings)
    observability: ObservabilitySettings = Field(default_factory=ObservabilitySettings)

    @classmethod
    def from_yaml(cls, path: str | Path) -> Settings:
        """Load settings from a YAML configuration file.

        Values from the YAML file win over environment variables; keys the
        file leaves out still come from the environment.

        Args:
            path: Path to the YAML config file.

        Returns:
            Populated Settings instance.

        Raises:
            FileNotFoundError: If the file does not exist.
        """
        import yaml  # type: ignore[import-untyped]

        config_path = Path(path)
        if not config_path.exists():
            raise FileNotFoundError(f"Config file not found: {config_path}")

        with open(config_path) as f:
            data = yaml.safe_load(f) or {}

        return cls(**data)
