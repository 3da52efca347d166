# Worker settings, loaded from environment variables and .env
from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import BaseModel, Field, field_validator
from enum import Enum
from typing import Any, Dict, List


class Environment(str, Enum):
    DEVELOPMENT = "development"
    PRODUCTION = "production"
    TESTING = "testing"


class RedpandaSettings(BaseModel):
    bootstrap_servers: str = "localhost:9092"  # Comma-separated host:port list
    client_id: str = "worker"
    session_timeout_ms: int = 30000
    heartbeat_interval_ms: int = 10000
    request_timeout_ms: int = 40000
    max_poll_interval_ms: int = 300000

    @property
    def broker_addresses(self) -> List[str]:
        """Bootstrap servers as a list of addresses"""
        return [server.strip() for server in self.bootstrap_servers.split(",") if server.strip()]


class ConsumerSettings(BaseModel):
    topic: str = "zap-events"
    # Changing the group id makes the broker treat this as a brand-new group
    group_id: str = "main-worker"
    # New groups start at the earliest retained offset when True, at end-of-log otherwise
    from_beginning: bool = True

    @field_validator("topic", "group_id")
    @classmethod
    def strip_identifiers(cls, v: str) -> str:
        return v.strip()


class ProcessingSettings(BaseModel):
    delay_seconds: float = Field(
        default=1.0,
        ge=0.0,
        description="Artificial processing time per message"
    )


class LoggingSettings(BaseModel):
    level: str = "INFO"
    json_format: bool = True


class Settings(BaseSettings):
    """Main worker settings, loaded from environment variables"""
    model_config = SettingsConfigDict(
        env_file=".env",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore"
    )

    app_name: str = "Offset Worker"
    version: str = "0.1.0"
    environment: Environment = Environment.DEVELOPMENT

    redpanda: RedpandaSettings = RedpandaSettings()
    consumer: ConsumerSettings = ConsumerSettings()
    processing: ProcessingSettings = ProcessingSettings()
    logging: LoggingSettings = LoggingSettings()

    def with_overrides(self, overrides: Dict[str, Any]) -> "Settings":
        """Return a copy with dotted-path overrides applied, e.g. ``{"consumer.topic": "t"}``.

        ``None`` values are skipped so unset CLI flags keep the configured value.
        Each touched section is re-validated, so overrides are coerced and
        checked exactly like values read from the environment.
        """
        sections: dict = {}
        for path, value in overrides.items():
            if value is None:
                continue
            section, _, field = path.partition(".")
            sections.setdefault(section, {})[field] = value

        update = {}
        for section, fields in sections.items():
            current = getattr(self, section)
            update[section] = type(current).model_validate({**current.model_dump(), **fields})
        return self.model_copy(update=update)


# No global settings instance - use dependency injection instead
