"""
===============================================
Pytest suite for core/config.py and core/errors.py
===============================================

Sections:
---------
1. Unit tests - environment parsing and defaults
2. Edge case tests - invalid settings
3. Error taxonomy tests
"""

import pytest

from core.config import MIGRATE_STRATEGIES, Config, DatabaseConfig, EngineSettings
from core.errors import (
    AlreadyInitializedError,
    ConfigurationLockedError,
    OrmInitializationError,
    OrmTeardownError,
    PluginError,
    UnknownIdentityError,
)

ENV_VARS = (
    'ORM_MIGRATE', 'ORM_ECHO_SQL', 'ORM_STRICT_MODELS', 'ORM_LOG_LEVEL', 'ORM_LOG_FILE',
    'ORM_AUTO_LOGGING', 'POSTGRES_HOST', 'POSTGRES_PORT', 'POSTGRES_USER',
    'POSTGRES_PASSWORD', 'POSTGRES_DB',
)


@pytest.fixture
def clean_env(monkeypatch):
    """Remove every variable Config reads so defaults apply."""
    for name in ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


# ===============
# 1. UNIT TESTS
# ===============

@pytest.mark.unit
def test_defaults(clean_env):
    config = Config()

    assert config.migrate == 'alter'
    assert config.echo_sql is False
    assert config.strict_models is True
    assert config.log_level == 'INFO'
    assert config.plugin.log_file is None
    assert config.plugin.auto_logging is True
    assert config.db.get_connection_params() == {
        'host': 'localhost',
        'port': 5432,
        'user': 'postgres',
        'password': '',
        'database': 'postgres',
    }


@pytest.mark.unit
def test_environment_overrides(clean_env):
    clean_env.setenv('ORM_MIGRATE', ' DROP ')
    clean_env.setenv('ORM_ECHO_SQL', 'yes')
    clean_env.setenv('ORM_STRICT_MODELS', 'false')
    clean_env.setenv('ORM_LOG_FILE', 'plugin.log')
    clean_env.setenv('POSTGRES_PORT', '6543')
    clean_env.setenv('POSTGRES_DB', 'models')

    config = Config()

    assert config.migrate == 'drop'
    assert config.echo_sql is True
    assert config.strict_models is False
    assert config.plugin.log_file == 'plugin.log'
    assert config.db.port == 6543
    assert config.db.database == 'models'


@pytest.mark.unit
def test_database_config_params():
    db = DatabaseConfig(host='db', port=5433, user='u', password='p', database='d')

    assert db.get_connection_params()['port'] == 5433


# ====================
# 2. EDGE CASE TESTS
# ====================

@pytest.mark.edge_case
def test_invalid_migrate_strategy(clean_env):
    clean_env.setenv('ORM_MIGRATE', 'sometimes')

    with pytest.raises(ValueError):
        Config()


@pytest.mark.edge_case
@pytest.mark.parametrize('strategy', MIGRATE_STRATEGIES)
def test_every_strategy_accepted(strategy):
    assert EngineSettings(migrate=strategy, echo_sql=False).migrate == strategy


# ====================
# 3. ERROR TAXONOMY
# ====================

@pytest.mark.unit
def test_errors_share_base_class():
    for error in (AlreadyInitializedError, ConfigurationLockedError, UnknownIdentityError):
        assert issubclass(error, PluginError)


@pytest.mark.unit
def test_unknown_identity_error_is_key_error():
    error = UnknownIdentityError('ghost')

    assert isinstance(error, KeyError)
    assert error.identity == 'ghost'
    assert 'ghost' in str(error)


@pytest.mark.unit
def test_wrapping_errors_keep_cause():
    cause = RuntimeError('boom')

    assert OrmInitializationError('failed', cause=cause).cause is cause
    assert OrmTeardownError('failed', cause=cause).cause is cause
    assert OrmInitializationError('failed').cause is None
