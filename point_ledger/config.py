"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class LedgerConfig(BaseSettings):
    """Point ledger configuration"""
    
    # Store configuration
    store_backend: str = "memory"  # memory or sqlite
    sqlite_path: str = "point_ledger.db"
    
    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text
    logger_name: str = "point_ledger"
    log_file: Optional[str] = None  # If None, logs to stderr
    
    class Config:
        env_prefix = "POINT_LEDGER_"
        env_file = ".env"
        case_sensitive = False


# Global configuration instance
config = LedgerConfig()


def get_config() -> LedgerConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> LedgerConfig:
    """Reload configuration from environment"""
    global config
    config = LedgerConfig()
    return config
