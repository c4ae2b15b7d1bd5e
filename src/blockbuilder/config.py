"""Configuration file loading and validation."""

import logging
from enum import Enum
from pathlib import Path
from typing import Literal, Optional

from pydantic import BaseModel, Field, ValidationError, field_validator
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)

from .consts import (
    DATABASE_PATH,
    DEFAULT_MAX_NESTING_DEPTH,
    SCROLL_OFFSET,
    SETTLE_DELAY_MS,
)
from .errors import ConfigException

logger = logging.getLogger(__name__)

ENV_PREFIX = "BLOCKBUILDER_"


class EditorConfig(BaseModel):
    """Repeatable editor and error routing settings."""

    max_nesting_depth: int = Field(default=DEFAULT_MAX_NESTING_DEPTH, ge=1)
    settle_delay_ms: int = Field(default=SETTLE_DELAY_MS, ge=0)
    scroll_offset: int = Field(default=SCROLL_OFFSET, ge=0)
    expand_all_errors: bool = True


class StorageType(str, Enum):
    MEMORY = "memory"
    DB = "db"


class StorageConfig(BaseModel):
    type: StorageType = StorageType.MEMORY
    db_path: str = Field(default=DATABASE_PATH)

    @field_validator("db_path")
    @classmethod
    def validate_db_path(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("storage.db_path cannot be empty")
        return v.strip()


class WebConfig(BaseModel):
    """Web service configuration."""

    host: str = Field(default="127.0.0.1")
    port: int = Field(default=8000, ge=1, le=65535)
    reload: bool = Field(default=False)


class Config(BaseSettings):
    """Application configuration."""

    language: str = Field(default="en")
    components_file: Optional[str] = None
    log_file: Optional[str] = None
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = "INFO"

    editor: EditorConfig = Field(default_factory=EditorConfig)
    storage: StorageConfig = Field(default_factory=StorageConfig)
    web: WebConfig = Field(default_factory=WebConfig)

    model_config = SettingsConfigDict(
        env_prefix=ENV_PREFIX,
        env_nested_delimiter="__",
    )

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        return (
            init_settings,
            env_settings,
            TomlConfigSettingsSource(settings_cls),
        )

    @classmethod
    def load_from_file(cls, config_path: str) -> "Config":
        """Load configuration from specified path."""
        path = Path(config_path)
        if not path.exists():
            raise ConfigException(f"Configuration file not found: {config_path}")

        class _Config(cls):
            model_config = SettingsConfigDict(
                toml_file=str(path),
                env_prefix=ENV_PREFIX,
                env_nested_delimiter="__",
            )

        try:
            config = _Config()
        except ValidationError as e:
            raise ConfigException(format_validation_error(e)) from e

        if config.components_file and not Path(config.components_file).is_absolute():
            config.components_file = str(path.parent / config.components_file)

        logger.debug(f"Configuration loaded from {path}")
        return config


def format_validation_error(e: ValidationError) -> str:
    lines = ["Configuration validation failed:"]
    for error in e.errors():
        loc = " -> ".join(str(item) for item in error.get("loc", []))
        msg = error.get("msg", "")
        lines.append(f"  - {loc}: {msg}" if loc else f"  - {msg}")
    return "\n".join(lines)
