"""
Shared fixtures for the ORM engine tests.

Key fixtures:
- memory_adapters: identity-keyed mapping holding a fresh MemoryAdapter
- pet_definition: pet model with a `model` association to user
- owner_user_definition: user model with the reciprocal `pets` collection
- build_orm: async factory loading definitions into a new Orm and initializing it
"""

import pytest

from adapters import MemoryAdapter
from orm import Orm


@pytest.fixture
def memory_adapters():
    return {'memory': MemoryAdapter()}


@pytest.fixture
def pet_definition():
    return {
        'identity': 'pet',
        'globalId': 'Pet',
        'connection': 'inMemoryDb',
        'attributes': {
            'name': {'type': 'string', 'required': True},
            'species': {'type': 'string', 'defaultsTo': 'cat'},
            'owner': {'model': 'user'},
        },
    }


@pytest.fixture
def owner_user_definition(user_definition):
    definition = dict(user_definition)
    definition['attributes'] = dict(user_definition['attributes'])
    definition['attributes']['pets'] = {'collection': 'pet', 'via': 'owner'}
    return definition


@pytest.fixture
def build_orm(memory_adapters, connections):
    """
    Return a coroutine function building an initialized Orm from definitions.
    Tests are responsible for awaiting orm.teardown().
    """
    async def factory(*definitions, migrate='drop', connections_override=None):
        orm = Orm(migrate=migrate, echo=False)
        for definition in definitions:
            orm.load_collection(definition)
        await orm.initialize(
            adapters=memory_adapters,
            connections=connections_override or connections
        )
        return orm

    return factory
