from pathlib import Path

from pydantic import Field
from pydantic import field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class BaseConfig(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="OTA_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
    )

    app_name: str = "OTA Update Server"
    service_version: str = "1.0.0"
    environment: str = "dev"
    host: str = "0.0.0.0"
    port: int = 3000
    base_url: str = ""
    apps_dir: Path = Path("./apps")
    restart_cmd: str = ""
    log_dir: Path = Path("./logs")
    log_file: Path | None = None
    log_level: str = "INFO"
    database_url: str = Field("sqlite:///./data/ota.db", repr=False)
    auto_create_schema: bool = True
    record_password: str = Field(..., repr=False)
    agent_inactivity_seconds: int = 60 * 60
    agent_sweep_interval_seconds: int = 10 * 60
    metrics_enabled: bool = True

    @field_validator("record_password", mode="after")
    @classmethod
    def validate_record_password(cls, value: str) -> str:
        if len(value) < 8:
            raise ValueError("record password must be at least 8 characters")
        if value.lower() in {"change_me", "changeme", "password", "default", "admin123"}:
            raise ValueError("record password must not use default values")
        return value

    @field_validator("agent_inactivity_seconds", "agent_sweep_interval_seconds", mode="after")
    @classmethod
    def validate_positive_interval(cls, value: int) -> int:
        if value <= 0:
            raise ValueError("agent intervals must be positive")
        return value

    @field_validator("base_url", mode="after")
    @classmethod
    def validate_base_url(cls, value: str) -> str:
        if value and not value.startswith(("http://", "https://")):
            raise ValueError(f"invalid base url '{value}'")
        return value.rstrip("/")

    @model_validator(mode="after")
    def fill_derived_defaults(self) -> "BaseConfig":
        if not self.base_url:
            self.base_url = f"http://localhost:{self.port}"
        if self.log_file is None:
            self.log_file = self.log_dir / "server.log"
        return self
