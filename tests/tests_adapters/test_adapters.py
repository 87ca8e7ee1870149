"""
===============================================
Pytest suite for the adapters package
===============================================

URL building and engine options are checked without connecting; engine
creation is exercised only for the in-memory adapter.
"""

import pytest
from sqlalchemy.pool import StaticPool

from adapters import Adapter, MemoryAdapter, PostgresAdapter, SqliteAdapter, builtin_adapters
from core.config import config


@pytest.mark.unit
def test_builtin_adapters_are_fresh_instances():
    first, second = builtin_adapters(), builtin_adapters()

    assert set(first) == {'memory', 'sqlite', 'postgresql'}
    assert first['memory'] is not second['memory']


@pytest.mark.unit
def test_identity_can_be_overridden():
    adapter = MemoryAdapter(identity='clientCache')

    assert adapter.identity == 'clientCache'
    assert MemoryAdapter.identity == 'memory'


@pytest.mark.unit
def test_sqlite_file_url():
    url = SqliteAdapter().build_url({'database': '/tmp/models.db'})

    assert url.drivername == 'sqlite+aiosqlite'
    assert url.database == '/tmp/models.db'
    assert 'poolclass' not in SqliteAdapter().engine_kwargs({'database': '/tmp/models.db'})


@pytest.mark.unit
def test_sqlite_without_database_is_in_memory():
    kwargs = SqliteAdapter().engine_kwargs({})

    assert kwargs['poolclass'] is StaticPool
    assert SqliteAdapter().build_url({}).database is None


@pytest.mark.unit
def test_postgres_url_falls_back_to_config():
    url = PostgresAdapter().build_url({'database': 'models', 'password': 's3cr3t'})

    assert url.drivername == 'postgresql+asyncpg'
    assert url.host == config.db.host
    assert url.port == config.db.port
    assert url.username == config.db.user
    assert url.database == 'models'
    assert 's3cr3t' not in url.render_as_string(hide_password=True)


@pytest.mark.unit
def test_postgres_pool_options():
    kwargs = PostgresAdapter(pool_size=2).engine_kwargs({'max_overflow': 1})

    assert kwargs == {'pool_size': 2, 'max_overflow': 1, 'pool_pre_ping': True}


@pytest.mark.unit
def test_base_adapter_requires_url_builder():
    with pytest.raises(NotImplementedError):
        Adapter('custom').build_url({})


@pytest.mark.integration
@pytest.mark.asyncio
async def test_memory_engine_lifecycle():
    adapter = MemoryAdapter()
    engine = adapter.create_engine({'adapter': 'memory'})

    async with engine.connect() as conn:
        result = await conn.exec_driver_sql('SELECT 1')
        assert result.scalar_one() == 1

    await adapter.teardown(engine)


@pytest.mark.integration
@pytest.mark.asyncio
async def test_explicit_url_takes_precedence(tmp_path):
    path = tmp_path / 'models.db'
    adapter = SqliteAdapter()
    engine = adapter.create_engine({'url': f'sqlite+aiosqlite:///{path}', 'database': 'ignored.db'})

    assert engine.url.database == str(path)
    async with engine.begin() as conn:
        await conn.exec_driver_sql('CREATE TABLE probe (id INTEGER)')

    await adapter.teardown(engine)
    assert path.exists()
