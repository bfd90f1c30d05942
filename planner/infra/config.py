"""
Configuration management using Pydantic Settings.

Architecture Decision: Why pydantic-settings?
- Type-safe configuration with validation
- Supports multiple sources (YAML, env vars, defaults)
- Easy to test with different configurations
"""

import os
from pathlib import Path
from typing import Optional
import yaml

from pydantic import BaseModel, Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class EngineSettings(BaseModel):
    """Behaviour switches for the recurrence engine."""

    strict_recurrence_types: bool = Field(
        default=False,
        description="Raise on unknown recurrence kinds instead of producing no occurrences"
    )


class Settings(BaseSettings):
    """
    Application settings with multiple sources:
    1. Default values (hardcoded)
    2. YAML config file
    3. Environment variables (highest priority)
    """
    model_config = SettingsConfigDict(
        env_prefix='PLANNER_',
        env_file='.env',
        env_file_encoding='utf-8',
        env_nested_delimiter='__'
    )

    # Application paths
    app_name: str = "Planner"
    config_dir: Optional[Path] = None
    data_dir: Optional[Path] = None

    # Database
    database_url: Optional[str] = None

    # Logging
    log_level: str = "INFO"

    engine: EngineSettings = EngineSettings()

    def __init__(self, **kwargs):
        super().__init__(**kwargs)
        self._init_paths()
        self._load_yaml_config()

    def _init_paths(self):
        """Initialize default paths based on OS"""
        if self.config_dir is None:
            if os.name == 'nt':  # Windows
                base = Path(os.getenv('APPDATA'))
            else:  # Linux/Mac
                base = Path.home() / '.config'
            self.config_dir = base / self.app_name.lower()

        if self.data_dir is None:
            if os.name == 'nt':  # Windows
                base = Path(os.getenv('APPDATA'))
            else:  # Linux/Mac
                base = Path.home() / '.local' / 'share'
            self.data_dir = base / self.app_name.lower()

        # Create directories if they don't exist
        self.config_dir.mkdir(parents=True, exist_ok=True)
        self.data_dir.mkdir(parents=True, exist_ok=True)

    def _load_yaml_config(self):
        """Load configuration from YAML file"""
        # First check in workspace config folder
        config_file = Path("config/settings.yaml")
        if not config_file.exists():
            # Then check in user's config directory
            config_file = self.config_dir / "settings.yaml"

        if config_file.exists():
            with open(config_file, 'r', encoding='utf-8') as f:
                config_data = yaml.safe_load(f)
            if config_data:
                if 'log_level' in config_data and 'PLANNER_LOG_LEVEL' not in os.environ:
                    self.log_level = str(config_data['log_level'])
                if config_data.get('engine'):
                    # Environment variables keep priority over the file
                    engine_data = {
                        key: value for key, value in config_data['engine'].items()
                        if f'PLANNER_ENGINE__{key.upper()}' not in os.environ
                    }
                    self.engine = EngineSettings(**{**self.engine.model_dump(), **engine_data})

    def save_engine_settings(self):
        """Save current engine settings to YAML file"""
        config_file = self.config_dir / "settings.yaml"
        with open(config_file, 'w', encoding='utf-8') as f:
            yaml.dump(
                {'log_level': self.log_level, 'engine': self.engine.model_dump()},
                f,
                default_flow_style=False
            )

    def get_db_url(self) -> str:
        """Get database URL, creating default if not set"""
        if self.database_url:
            return self.database_url

        db_path = self.data_dir / 'planner.db'
        return f"sqlite+aiosqlite:///{db_path}"


# Global settings instance
_settings: Optional[Settings] = None


def get_settings() -> Settings:
    """Get the global settings instance"""
    global _settings
    if _settings is None:
        _settings = Settings()
    return _settings


def reload_settings():
    """Reload settings from file"""
    global _settings
    _settings = Settings()
    return _settings
