"""
===============================================
Comprehensive pytest suite for main.py
===============================================

Sections:
---------
1. Unit tests - option loading and dehydration
2. Integration tests - inspect against the in-memory adapter
3. CLI tests - argument parsing and exit codes
4. Edge case tests - unusable input
5. Logging tests - --verbose output

Test Coverage:
--------------
- load_options: missing file, invalid JSON, non-object JSON
- dehydrate_options: server scope excluded
- inspect_models: identities, attributes and associations reported
- main(): --dehydrate / --inspect / --environment / --verbose, exit codes 0 and 1

How to Execute:
---------------
All tests:          pytest tests/test_main.py -v
By category:        pytest tests/test_main.py -m unit
"""

import asyncio
import json
import logging

import pytest

from core.logger import setup_logging
from main import CliError, dehydrate_options, inspect_models, load_options, main

OPTIONS = {
    'common': {
        'models': [
            {
                'identity': 'user',
                'globalId': 'User',
                'connection': 'inMemoryDb',
                'attributes': {
                    'username': {'type': 'string', 'required': True},
                    'pets': {'collection': 'pet', 'via': 'owner'},
                },
            },
            {
                'identity': 'pet',
                'connection': 'inMemoryDb',
                'attributes': {'name': 'string', 'owner': {'model': 'user'}},
            },
        ],
        'connections': {'inMemoryDb': {'adapter': 'memory'}},
    },
    'server': {'connections': {'auditDb': {'adapter': 'postgresql', 'password': 'secret'}}},
    'client': {'modelDefaults': {'migrate': 'drop'}},
}


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / 'models.json'
    path.write_text(json.dumps(OPTIONS), encoding='utf-8')
    return path


# ===============
# 1. UNIT TESTS
# ===============

@pytest.mark.unit
def test_load_options(config_file):
    assert load_options(str(config_file)) == OPTIONS


@pytest.mark.unit
def test_dehydrate_options_excludes_server_scope():
    state = dehydrate_options(OPTIONS)

    assert set(state) == {'common', 'client'}
    assert 'secret' not in json.dumps(state)
    assert set(state['common']['models']) == {'user', 'pet'}


# =====================
# 2. INTEGRATION TESTS
# =====================

@pytest.mark.integration
def test_inspect_models_reports_live_models():
    report = asyncio.run(inspect_models(OPTIONS, 'server'))

    by_identity = {entry['identity']: entry for entry in report}
    assert set(by_identity) == {'user', 'pet'}
    assert by_identity['user']['globalId'] == 'User'
    assert 'createdAt' in by_identity['user']['attributes']
    assert by_identity['user']['associations'] == [
        {'alias': 'pets', 'type': 'collection', 'collection': 'pet', 'via': 'owner'}
    ]
    assert by_identity['pet']['associations'] == [{'alias': 'owner', 'type': 'model', 'model': 'user'}]


# ====================
# 3. CLI TESTS
# ====================

@pytest.mark.system
def test_main_dehydrate(config_file, capsys):
    exit_code = main(['--config', str(config_file), '--dehydrate'])

    assert exit_code == 0
    output = json.loads(capsys.readouterr().out)
    assert output['client'] == {'modelDefaults': {'migrate': 'drop'}}


@pytest.mark.system
def test_main_inspect_client(config_file, capsys):
    exit_code = main(['--config', str(config_file), '--inspect', '--environment', 'client'])

    assert exit_code == 0
    output = json.loads(capsys.readouterr().out)
    assert sorted(entry['identity'] for entry in output) == ['pet', 'user']


@pytest.mark.system
def test_main_requires_an_action(config_file):
    with pytest.raises(SystemExit):
        main(['--config', str(config_file)])


@pytest.mark.system
def test_main_actions_are_exclusive(config_file):
    with pytest.raises(SystemExit):
        main(['--config', str(config_file), '--dehydrate', '--inspect'])


# ====================
# 4. EDGE CASE TESTS
# ====================

@pytest.mark.edge_case
def test_load_options_missing_file(tmp_path):
    with pytest.raises(CliError):
        load_options(str(tmp_path / 'absent.json'))


@pytest.mark.edge_case
@pytest.mark.parametrize('content', ['{not json', '[1, 2, 3]'])
def test_load_options_rejects_invalid_content(tmp_path, content):
    path = tmp_path / 'models.json'
    path.write_text(content, encoding='utf-8')

    with pytest.raises(CliError):
        load_options(str(path))


@pytest.mark.edge_case
def test_main_missing_file_exit_code(tmp_path):
    assert main(['--config', str(tmp_path / 'absent.json'), '--dehydrate']) == 1


@pytest.mark.edge_case
def test_main_plugin_error_exit_code(tmp_path):
    path = tmp_path / 'models.json'
    path.write_text(json.dumps({'common': {'models': [{'attributes': {}}]}}), encoding='utf-8')

    assert main(['--config', str(path), '--inspect']) == 1


@pytest.mark.edge_case
def test_main_unknown_scope_exit_code(tmp_path):
    path = tmp_path / 'models.json'
    path.write_text(json.dumps({'sever': {'connections': {}}}), encoding='utf-8')

    assert main(['--config', str(path), '--dehydrate']) == 1


# ====================
# 5. LOGGING TESTS
# ====================

@pytest.fixture
def restore_root_logger():
    """Restore root handlers and level replaced by --verbose."""
    root = logging.getLogger()
    handlers, level = list(root.handlers), root.level
    yield root
    for handler in root.handlers:
        if handler not in handlers:
            handler.close()
    root.handlers[:] = handlers
    root.setLevel(level)


@pytest.mark.system
def test_main_verbose_emits_debug_records(config_file, capsys, restore_root_logger):
    setup_logging(log_level='INFO', use_colors=False)

    exit_code = main(['--config', str(config_file), '--dehydrate', '--verbose'])

    assert exit_code == 0
    debug_lines = [line for line in capsys.readouterr().out.splitlines() if ' - DEBUG - ' in line]
    assert any("Merged 'common' scope" in line for line in debug_lines)
    assert all(handler.level == logging.DEBUG for handler in restore_root_logger.handlers)


@pytest.mark.system
def test_main_without_verbose_keeps_debug_quiet(config_file, capsys, restore_root_logger):
    setup_logging(log_level='INFO', use_colors=False)

    assert main(['--config', str(config_file), '--dehydrate']) == 0
    assert ' - DEBUG - ' not in capsys.readouterr().out
