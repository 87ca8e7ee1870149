"""
==============================================
Configuration management for the models plugin.
==============================================

Loads runtime settings from environment variables (.env file) and provides
a centralized Config singleton for application-wide access.

These are process-level settings (logging, engine defaults, adapter
defaults). Model definitions and connection configurations are NOT read from
the environment: they are merged through ModelsPlugin.configure().

Environment variables:
    ORM_MIGRATE: Default schema strategy for models (safe/alter/drop)
    ORM_ECHO_SQL: Echo SQL emitted by the engines (true/false)
    ORM_STRICT_MODELS: Default registry strictness (true/false)
    ORM_LOG_LEVEL: Root logging level
    ORM_LOG_FILE: Optional log file name
    ORM_AUTO_LOGGING: Configure logging on import (true/false)
    POSTGRES_HOST, POSTGRES_PORT, POSTGRES_USER, POSTGRES_PASSWORD, POSTGRES_DB:
        Defaults for the PostgreSQL adapter

Example:
    >>> from core.config import config
    >>>
    >>> config.migrate
    'alter'
    >>> url = config.db.get_connection_params()
"""

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv

# Load environment variables from .env file
env_path = Path(__file__).parent.parent / '.env'
load_dotenv(dotenv_path=env_path)

MIGRATE_STRATEGIES = ('safe', 'alter', 'drop')


def _env_flag(name: str, default: bool) -> bool:
    """Read a boolean flag from the environment."""
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ('1', 'true', 'yes', 'on')


@dataclass
class DatabaseConfig:
    """Default PostgreSQL settings used by the postgresql adapter.

    Attributes:
        host: PostgreSQL server hostname or IP address
        port: PostgreSQL server port number
        user: Database username
        password: Database password
        database: Database name
    """

    host: str
    port: int
    user: str
    password: str
    database: str

    def get_connection_params(self) -> dict:
        """Get connection parameters as dictionary.

        Returns:
            Dictionary with keys: host, port, user, password, database
        """
        return {
            'host': self.host,
            'port': self.port,
            'user': self.user,
            'password': self.password,
            'database': self.database
        }


@dataclass
class EngineSettings:
    """Defaults applied by the ORM engine.

    Attributes:
        migrate: Schema strategy for models that do not declare one
        echo_sql: If True, engines log every SQL statement
    """

    migrate: str
    echo_sql: bool

    def __post_init__(self):
        if self.migrate not in MIGRATE_STRATEGIES:
            raise ValueError(
                f"Invalid migrate strategy '{self.migrate}'. "
                f"Expected one of: {', '.join(MIGRATE_STRATEGIES)}"
            )


@dataclass
class PluginSettings:
    """Plugin-wide settings.

    Attributes:
        strict_models: Default registry strictness for new plugins
        log_level: Root logging level
        log_file: Optional log file name
        auto_logging: If True, logging is configured on import
    """

    strict_models: bool
    log_level: str
    log_file: Optional[str]
    auto_logging: bool


class Config:
    """Centralized configuration manager.

    Attributes:
        db: DatabaseConfig with PostgreSQL adapter defaults
        engine: EngineSettings with ORM engine defaults
        plugin: PluginSettings with plugin defaults

    Example:
        >>> config = Config()
        >>> config.strict_models
        True
    """

    def __init__(self):
        """Initialize configuration from environment variables."""
        self.db = DatabaseConfig(
            host=os.getenv('POSTGRES_HOST', 'localhost'),
            port=int(os.getenv('POSTGRES_PORT', '5432')),
            user=os.getenv('POSTGRES_USER', 'postgres'),
            password=os.getenv('POSTGRES_PASSWORD', ''),
            database=os.getenv('POSTGRES_DB', 'postgres')
        )

        self.engine = EngineSettings(
            migrate=os.getenv('ORM_MIGRATE', 'alter').strip().lower(),
            echo_sql=_env_flag('ORM_ECHO_SQL', False)
        )

        self.plugin = PluginSettings(
            strict_models=_env_flag('ORM_STRICT_MODELS', True),
            log_level=os.getenv('ORM_LOG_LEVEL', 'INFO'),
            log_file=os.getenv('ORM_LOG_FILE') or None,
            auto_logging=_env_flag('ORM_AUTO_LOGGING', True)
        )

    @property
    def migrate(self) -> str:
        """Get the default migrate strategy."""
        return self.engine.migrate

    @property
    def echo_sql(self) -> bool:
        """Get whether engines echo SQL."""
        return self.engine.echo_sql

    @property
    def strict_models(self) -> bool:
        """Get the default registry strictness."""
        return self.plugin.strict_models

    @property
    def log_level(self) -> str:
        """Get the root logging level."""
        return self.plugin.log_level


# Global configuration instance
config = Config()
