"""
===============================================
Pytest suite for ModelsPlugin dehydrate/rehydrate
===============================================

The server plugin dehydrates its common and client scopes; a client plugin
rehydrates them and initializes with its own adapters.
"""

import json

import pytest

from plugin.lifecycle import LifecycleState, ModelsPlugin


@pytest.fixture
def server(fake_orm_factory, user_definition, car_definition, connections):
    return ModelsPlugin({
        'common': {'models': [user_definition, car_definition], 'connections': connections},
        'server': {'connections': {'inMemoryDb': {'adapter': 'postgresql', 'password': 'secret'}}},
        'client': {'modelDefaults': {'migrate': 'drop'}},
    }, orm_factory=fake_orm_factory)


@pytest.mark.unit
def test_dehydrate_is_json_and_excludes_server_scope(server):
    state = server.dehydrate()

    assert set(state) == {'common', 'client'}
    assert 'secret' not in json.dumps(state)
    assert state['client'] == {'modelDefaults': {'migrate': 'drop'}}


@pytest.mark.unit
def test_dehydrate_drops_callables(server):
    user = server.dehydrate()['common']['models']['user']

    assert 'before_validate' not in user
    assert 'getFullName' not in user['attributes']
    assert user['attributes']['username'] == {'type': 'string', 'required': True, 'index': True}


@pytest.mark.unit
def test_dehydrate_empty_plugin():
    assert ModelsPlugin().dehydrate() == {'common': {}, 'client': {}}


@pytest.mark.integration
@pytest.mark.asyncio
async def test_rehydrate_with_client_adapters_initializes(server, fake_orm_factory, fake_adapters):
    state = json.loads(json.dumps(server.dehydrate()))
    client = ModelsPlugin(client_adapters=fake_adapters, orm_factory=fake_orm_factory)
    calls = []

    models = await client.rehydrate(state, callback=lambda err, result: calls.append((err, result)))

    assert set(models) == {'user', 'car'}
    assert calls == [(None, models)]
    assert client.environment == 'client'
    assert client.state is LifecycleState.INITIALIZED

    orm = fake_orm_factory.instances[-1]
    assert orm.initialize_calls[0]['connections'] == {'inMemoryDb': {'adapter': 'memory'}}
    assert all(definition['migrate'] == 'drop' for definition in orm.loaded)


@pytest.mark.integration
@pytest.mark.asyncio
async def test_rehydrate_accepts_explicit_adapters(server, fake_orm_factory, fake_adapters):
    client = ModelsPlugin(orm_factory=fake_orm_factory)

    models = await client.rehydrate(server.dehydrate(), adapters=fake_adapters)

    assert client.registry.get('User') is models['user']


@pytest.mark.integration
@pytest.mark.asyncio
async def test_rehydrate_without_adapters_defers_initialization(server, fake_orm_factory, fake_adapters):
    client = ModelsPlugin(orm_factory=fake_orm_factory)

    assert await client.rehydrate(server.dehydrate()) is None
    assert client.state is LifecycleState.CONFIGURED
    assert fake_orm_factory.instances == []

    # Explicit initialize later uses the client environment
    models = await client.initialize(fake_adapters)
    assert set(models) == {'user', 'car'}


@pytest.mark.system
@pytest.mark.asyncio
async def test_round_trip_preserves_model_identities(server, fake_orm_factory, fake_adapters):
    server_models = await server.initialize(fake_adapters)
    client = ModelsPlugin(client_adapters=fake_adapters, orm_factory=fake_orm_factory)

    client_models = await client.rehydrate(server.dehydrate())

    assert set(client_models) == set(server_models)
    assert client.registry.identities() == server.registry.identities()


@pytest.mark.edge_case
@pytest.mark.asyncio
async def test_rehydrate_empty_state():
    client = ModelsPlugin()

    assert await client.rehydrate(None) is None
    assert client.state is LifecycleState.UNCONFIGURED
