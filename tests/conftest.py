"""
Shared pytest configuration and fixtures for all tests.

Key fixtures:
- user_definition / car_definition: model definitions
- connections: connection config using the in-memory adapter
- fake_orm_factory: ORM engine stand-in recording every call
"""

import asyncio
import sys
from pathlib import Path
from types import SimpleNamespace

import pytest

# Add project root to sys.path to enable importing project modules
# This allows tests to import from 'plugin', 'core', 'orm', etc. without installation
project_root = Path(__file__).parent.parent
if str(project_root) not in sys.path:
    sys.path.insert(0, str(project_root))


def pytest_configure(config):
    """Register custom markers for test categorization."""
    config.addinivalue_line("markers", "unit: Unit tests - isolated function-level tests")
    config.addinivalue_line("markers", "integration: Integration tests - component interactions")
    config.addinivalue_line("markers", "smoke: Smoke tests - basic functionality checks")
    config.addinivalue_line("markers", "edge_case: Edge case tests - boundary conditions")
    config.addinivalue_line("markers", "system: System tests - full system behavior tests")


# ====================
# Model definitions
# ====================

def _get_full_name(self):
    return f"{self.firstName} {self.lastName}"


def _before_validate(values):
    values.setdefault('firstName', 'Anonymous')


@pytest.fixture
def user_definition():
    """User model with an instance method and a lifecycle hook."""
    return {
        'identity': 'user',
        'globalId': 'User',
        'connection': 'inMemoryDb',
        'attributes': {
            'username': {'type': 'string', 'required': True, 'index': True},
            'firstName': {'type': 'string'},
            'lastName': {'type': 'string'},
            'getFullName': _get_full_name,
        },
        'before_validate': _before_validate,
    }


@pytest.fixture
def car_definition():
    """Car model; note the plain attribute named `model`."""
    return {
        'identity': 'car',
        'connection': 'inMemoryDb',
        'attributes': {
            'make': {'type': 'string', 'required': True},
            'model': {'type': 'string'},
            'year': {'type': 'string'},
        },
    }


@pytest.fixture
def connections():
    return {'inMemoryDb': {'adapter': 'memory'}}


# ====================
# Fake ORM engine
# ====================

class FakeOrm:
    """Records loaded definitions and initialize/teardown calls."""

    def __init__(self, factory):
        self.factory = factory
        self.loaded = []
        self.initialize_calls = []
        self.teardown_calls = 0

    def load_collection(self, definition):
        self.loaded.append(definition)

    async def initialize(self, adapters, connections):
        self.initialize_calls.append({'adapters': adapters, 'connections': connections})
        if self.factory.gate is not None:
            await self.factory.gate.wait()
        else:
            await asyncio.sleep(0)
        if self.factory.initialize_error is not None:
            raise self.factory.initialize_error

        collections = {}
        for definition in self.loaded:
            attributes = {'id': {'type': 'integer', 'primaryKey': True}}
            attributes.update(definition.get('attributes', {}))
            collections[definition['identity']] = SimpleNamespace(
                identity=definition['identity'],
                global_id=definition.get('globalId'),
                attributes=attributes,
                model_class=type(definition['identity'].title(), (), {}),
                definition=definition,
            )
        return collections

    async def teardown(self):
        self.teardown_calls += 1
        await asyncio.sleep(0)
        if self.factory.teardown_error is not None:
            raise self.factory.teardown_error


class FakeOrmFactory:
    """Callable producing FakeOrm instances with configurable failures."""

    def __init__(self):
        self.instances = []
        self.initialize_error = None
        self.teardown_error = None
        self.gate = None

    def __call__(self):
        orm = FakeOrm(self)
        self.instances.append(orm)
        return orm


@pytest.fixture
def fake_orm_factory():
    return FakeOrmFactory()


@pytest.fixture
def fake_adapters():
    return [{'identity': 'memory'}]
