"""
Configuration management with schema validation.
Single source of truth for MeetPoint client configuration.
"""

import os
from pathlib import Path
from typing import Any, Optional

import yaml
from dotenv import load_dotenv
from pydantic import BaseModel, Field, ValidationError

from .exceptions import ConfigError
from .logger import get_logger

logger = get_logger(__name__)

# Load environment variables
load_dotenv()

DATA_DIR = Path("data")
SETTINGS_FILE = DATA_DIR / "settings.yaml"

API_URL_ENV = "MEETPOINT_API_URL"
DEFAULT_API_URL = "http://localhost:3000/api"


class AppSettings(BaseModel):
    name: str = "MeetPoint"
    version: str = "1.0.0"
    environment: str = "development"


class ApiSettings(BaseModel):
    base_url: str = DEFAULT_API_URL
    connection_timeout: int = 10
    read_timeout: int = 30


class StorageSettings(BaseModel):
    token_file: str = "data/storage.json"


class LoggingSettings(BaseModel):
    level: str = "INFO"
    format: str = "json"
    file_path: Optional[str] = None
    max_bytes: int = 10485760
    backup_count: int = 5


class Settings(BaseModel):
    app: AppSettings = Field(default_factory=AppSettings)
    api: ApiSettings = Field(default_factory=ApiSettings)
    storage: StorageSettings = Field(default_factory=StorageSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)


class ConfigManager:
    """Loads settings.yaml (optional) and applies environment overrides"""

    def __init__(self, settings_path: Optional[Path] = None):
        self.settings_path = Path(settings_path) if settings_path else SETTINGS_FILE
        self._settings: Optional[Settings] = None

    def _substitute_env_vars(self, value: Any) -> Any:
        """Recursively substitute ${VAR} and ${VAR:default} references"""
        if isinstance(value, str):
            if value.startswith("${") and value.endswith("}"):
                var_expr = value[2:-1]
                if ":" in var_expr:
                    var_name, default = var_expr.split(":", 1)
                    return os.getenv(var_name.strip(), default.strip())
                else:
                    return os.getenv(var_expr, value)
        elif isinstance(value, dict):
            return {k: self._substitute_env_vars(v) for k, v in value.items()}
        elif isinstance(value, list):
            return [self._substitute_env_vars(item) for item in value]
        return value

    def load_settings(self) -> Settings:
        """Load and validate settings; a missing file means all defaults"""
        raw_data: dict = {}
        if self.settings_path.exists():
            try:
                with open(self.settings_path, "r", encoding="utf-8") as f:
                    raw_data = yaml.safe_load(f) or {}
            except yaml.YAMLError as e:
                raise ConfigError(f"Invalid settings file {self.settings_path}: {e}")
            if not isinstance(raw_data, dict):
                raise ConfigError(f"Settings file {self.settings_path} must contain a mapping")

        processed = self._substitute_env_vars(raw_data)
        try:
            settings = Settings(**processed)
        except ValidationError as e:
            raise ConfigError(f"Invalid settings: {e}")

        env_url = os.getenv(API_URL_ENV)
        if env_url:
            settings.api.base_url = env_url

        self._settings = settings
        logger.debug(
            "Settings loaded",
            settings_file=str(self.settings_path),
            from_file=bool(raw_data),
            api_base_url=settings.api.base_url,
        )
        return settings

    @property
    def settings(self) -> Settings:
        if self._settings is None:
            return self.load_settings()
        return self._settings
