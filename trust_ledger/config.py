"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from pydantic_settings import BaseSettings
from typing import Optional


DEFAULT_ADMIN_TOKEN = "change-me-in-production"


class LedgerConfig(BaseSettings):
    """Trust ledger configuration"""
    
    # Database configuration
    database_path: str = "bank.sqlite3"
    
    # API configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8080
    admin_token: str = DEFAULT_ADMIN_TOKEN
    
    # Session configuration
    session_timeout_seconds: int = 360
    
    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text
    log_file: Optional[str] = None  # If None, logs to stdout
    
    # Localization
    default_language: str = "es"
    
    # Mailbox storage
    letters_dir: str = "bank/letters"
    archive_dir: str = "static/archive"
    
    # Business rules configuration
    # When enabled, balance check and insert of a transfer run under a
    # per-debitor lock inside a store transaction.
    serialize_transfers: bool = False
    
    class Config:
        env_prefix = "TRUST_LEDGER_"
        env_file = ".env"
        case_sensitive = False


# Global configuration instance
config = LedgerConfig()


def get_config() -> LedgerConfig:
    """Get global configuration instance"""
    return config

