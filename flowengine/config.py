"""Configuration management for the Flow Execution Engine.

Every ``AppConfig`` field can be set from the environment as
``FLOW_ENGINE_<FIELD NAME>``; list fields are comma separated.
"""

import os
from typing import Optional, Dict, Any, List
from pydantic import BaseModel, Field, field_validator
from enum import Enum


ENV_PREFIX = "FLOW_ENGINE_"
SUPPORTED_DATABASES = ("sqlite", "postgresql", "mysql")


class LogLevel(str, Enum):
    """Logging levels."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class AppConfig(BaseModel):
    """Application configuration settings."""
    
    app_name: str = Field(default="Flow Execution Engine", description="Application name")
    app_version: str = Field(default="1.0.0", description="Application version")
    debug: bool = Field(default=False, description="Enable debug mode")
    
    # Server
    host: str = Field(default="0.0.0.0", description="Server host")
    port: int = Field(default=5000, description="Server port")
    reload: bool = Field(default=False, description="Enable auto-reload in development")
    
    # Storage
    database_url: str = Field(default="sqlite:///./flow_engine.db", description="Database connection URL")
    database_echo: bool = Field(default=False, description="Enable SQLAlchemy query logging")
    
    # Logging
    log_level: LogLevel = Field(default=LogLevel.INFO, description="Logging level")
    log_format: str = Field(
        default="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log message format"
    )
    log_structured: bool = Field(default=False, description="Emit JSON log lines")
    log_file: Optional[str] = Field(default=None, description="Log file path")
    log_max_size: int = Field(default=10 * 1024 * 1024, description="Maximum log file size in bytes")
    log_backup_count: int = Field(default=5, description="Number of log backup files to keep")
    
    # HTTP
    enable_request_logging: bool = Field(default=True, description="Log every HTTP request and its duration")
    cors_origins: List[str] = Field(default=["http://localhost:3000"], description="CORS allowed origins")
    cors_methods: List[str] = Field(default=["GET", "POST", "PUT", "DELETE"], description="CORS allowed methods")
    
    @field_validator('database_url')
    @classmethod
    def validate_database_url(cls, v):
        if not v:
            raise ValueError("Database URL cannot be empty")
        scheme = _scheme(v)
        if scheme not in SUPPORTED_DATABASES:
            raise ValueError(f"Unsupported database scheme: {scheme}. Supported: {list(SUPPORTED_DATABASES)}")
        return v
    
    @field_validator('port')
    @classmethod
    def validate_port(cls, v):
        if not 1 <= v <= 65535:
            raise ValueError("Port must be between 1 and 65535")
        return v
    
    @field_validator('log_level', mode='before')
    @classmethod
    def normalize_log_level(cls, v):
        return v.upper() if isinstance(v, str) else v
    
    @field_validator('cors_origins', 'cors_methods', mode='before')
    @classmethod
    def split_csv(cls, v):
        if isinstance(v, str):
            return [item.strip() for item in v.split(',') if item.strip()]
        return v
    
    @property
    def is_sqlite(self) -> bool:
        return _scheme(self.database_url) == "sqlite"
    
    def get_uvicorn_config(self) -> Dict[str, Any]:
        """Keyword arguments for ``uvicorn.run``."""
        return {
            "host": self.host,
            "port": self.port,
            "reload": self.reload,
            "log_level": self.log_level.value.lower(),
            "access_log": self.enable_request_logging,
        }
    
    @classmethod
    def from_env(cls) -> 'AppConfig':
        """Build a configuration from ``FLOW_ENGINE_*`` variables; unset fields keep their defaults."""
        values = {}
        for name in cls.model_fields:
            value = os.getenv(f"{ENV_PREFIX}{name.upper()}")
            if value is not None:
                values[name] = value
        return cls(**values)


def _scheme(url: str) -> str:
    return url.split('://')[0].lower().split('+')[0]


_config: Optional[AppConfig] = None


def get_config() -> AppConfig:
    """Get the global configuration instance."""
    global _config
    if _config is None:
        _config = AppConfig.from_env()
    return _config


def load_config(config_file: Optional[str] = None) -> AppConfig:
    """Load configuration from a .env file and the environment."""
    global _config
    
    env_file = config_file if config_file and os.path.exists(config_file) else '.env'
    if os.path.exists(env_file):
        from dotenv import load_dotenv
        load_dotenv(env_file)
    
    _config = AppConfig.from_env()
    return _config


def reset_config():
    """Reset the global configuration instance (mainly for testing)."""
    global _config
    _config = None


def validate_config(config: AppConfig) -> None:
    """Create the directories the SQLite file and log file live in.

    Raises:
        ValueError: If a directory cannot be created
    """
    paths = []
    if config.is_sqlite and ":memory:" not in config.database_url:
        paths.append(("database", config.database_url.split(":///", 1)[-1]))
    if config.log_file:
        paths.append(("log", config.log_file))
    
    errors = []
    for kind, path in paths:
        directory = os.path.dirname(path)
        if directory and not os.path.exists(directory):
            try:
                os.makedirs(directory, exist_ok=True)
            except OSError as e:
                errors.append(f"Cannot create {kind} directory {directory}: {e}")
    
    if errors:
        raise ValueError(f"Configuration validation failed: {'; '.join(errors)}")


# Presets selected with ``--env``

def get_development_config() -> AppConfig:
    return AppConfig(debug=True, reload=True, log_level=LogLevel.DEBUG, database_echo=True)


def get_production_config() -> AppConfig:
    return AppConfig(log_level=LogLevel.INFO, log_structured=True)


def get_testing_config() -> AppConfig:
    return AppConfig(
        debug=True,
        database_url="sqlite:///:memory:",
        log_level=LogLevel.WARNING,
        enable_request_logging=False
    )
