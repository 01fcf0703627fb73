"""Pydantic configuration models for darkheim.

All config is loaded from ~/.darkheim/config.json and can be overridden
via DARKHEIM_ prefixed environment variables.
"""

from __future__ import annotations

from pathlib import Path

from pydantic import BaseModel, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic_settings.main import JsonConfigSettingsSource


class AppConfig(BaseModel):
    """Application identity and runtime mode."""

    name: str = Field(default="Darkheim", description="Display name of the site.")
    env: str = Field(
        default="production",
        description="Runtime environment: 'production' or 'development'.",
    )
    url: str = Field(default="http://localhost", description="Public base URL.")

    @property
    def debug(self) -> bool:
        return self.env == "development"


class DatabaseConfig(BaseModel):
    path: str = Field(
        default=":memory:",
        description="SQLite database file, or ':memory:' for a throwaway database.",
    )
    timeout: float = Field(
        default=5.0,
        gt=0,
        description="Seconds to wait for a locked database before failing.",
    )


class CacheConfig(BaseModel):
    default_ttl: int = Field(
        default=3600,
        ge=1,
        description="Seconds a cache entry lives when no explicit TTL is given.",
    )
    settings_ttl: int = Field(
        default=300,
        ge=1,
        description="Seconds the configuration manager caches DB-backed settings.",
    )


class MailConfig(BaseModel):
    """Defaults for outgoing mail. Site settings in the database take precedence."""

    from_address: str = Field(default="noreply@localhost")
    from_name: str = Field(default="Darkheim")
    smtp_host: str = Field(default="", description="Empty disables SMTP delivery (outbox only).")
    smtp_port: int = Field(default=587, ge=1, le=65535)
    smtp_username: str = Field(default="")
    smtp_password: SecretStr = Field(default=SecretStr(""))
    smtp_tls: bool = Field(default=True)


class SessionConfig(BaseModel):
    name: str = Field(default="DARKHEIM_SESSION", description="Session cookie name.")
    lifetime: int = Field(
        default=7200,
        ge=60,
        description="Seconds of inactivity before a session expires.",
    )
    regenerate_interval: int = Field(
        default=1800,
        ge=0,
        description="Seconds between automatic session id rotations. 0 disables rotation.",
    )


class LoggingConfig(BaseModel):
    log_dir: Path = Field(
        default=Path("~/.darkheim/logs"),
        description="Directory for the rotating darkheim.log file.",
    )


class DarkheimConfig(BaseSettings):
    """Root configuration for the darkheim service runtime.

    Loaded from ~/.darkheim/config.json with DARKHEIM_ env var overrides.
    Uses JsonConfigSettingsSource so pydantic-settings reads the JSON file
    and merges it with environment variable overrides.
    """

    model_config = SettingsConfigDict(
        env_prefix="DARKHEIM_",
        env_nested_delimiter="__",
        json_file=Path("~/.darkheim/config.json").expanduser(),
        json_file_encoding="utf-8",
        extra="ignore",
    )

    app: AppConfig = Field(default_factory=AppConfig)
    database: DatabaseConfig = Field(default_factory=DatabaseConfig)
    cache: CacheConfig = Field(default_factory=CacheConfig)
    mail: MailConfig = Field(default_factory=MailConfig)
    session: SessionConfig = Field(default_factory=SessionConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls,
        init_settings,
        env_settings,
        dotenv_settings,
        file_secret_settings,
    ):
        """Enable JSON file loading alongside env vars and init kwargs."""
        return (
            init_settings,
            env_settings,
            JsonConfigSettingsSource(settings_cls),
        )
