"""
=========================================================
Command-line entry point for the ORM models plugin.
=========================================================

Thin CLI over ModelsPlugin for checking a configuration file without a host
application:

    - dehydrate: print the state a server would send to the client
    - inspect: initialize the ORM with the built-in adapters and list every
      model with its attributes and associations, then tear down

The configuration file is JSON with the `{common?, server?, client?}`
shape accepted by ModelsPlugin.configure().

Usage:
    # Print the dehydrated client state
    python main.py --config models.json --dehydrate

    # Initialize the server configuration and list models
    python main.py --config models.json --inspect

    # Same, for the client configuration
    python main.py --config models.json --inspect --environment client

Example:
    >>> from main import load_options, inspect_models
    >>>
    >>> options = load_options('models.json')
    >>> report = asyncio.run(inspect_models(options, 'server'))
"""

import argparse
import asyncio
import json
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from adapters import builtin_adapters
from core.errors import PluginError
from core.config import config
from core.logger import get_logger, setup_logging
from plugin import ModelsPlugin

logger = get_logger(__name__)


class CliError(Exception):
    """Raised for unusable command-line input."""
    pass


def load_options(path: str) -> Dict[str, Any]:
    """Load plugin options from a JSON file.

    Raises:
        CliError: If the file is missing or not a JSON object
    """
    config_path = Path(path)
    if not config_path.is_file():
        raise CliError(f"Configuration file not found: {path}")
    try:
        options = json.loads(config_path.read_text(encoding='utf-8'))
    except json.JSONDecodeError as e:
        raise CliError(f"Invalid JSON in {path}: {e}") from e
    if not isinstance(options, dict):
        raise CliError(f"Configuration in {path} must be a JSON object")
    return options


def dehydrate_options(options: Dict[str, Any]) -> Dict[str, Any]:
    """Configure a plugin and return its dehydrated state."""
    return ModelsPlugin(options).dehydrate()


async def inspect_models(options: Dict[str, Any], environment: str = 'server') -> List[Dict[str, Any]]:
    """Initialize a plugin and describe its live models.

    Args:
        options: Plugin options
        environment: 'server' or 'client'

    Returns:
        One dict per model: identity, globalId, attributes, associations
    """
    plugin = ModelsPlugin(options, environment=environment)
    await plugin.initialize(list(builtin_adapters().values()))
    try:
        report = []
        for identity in plugin.registry.identities():
            model = plugin.registry.get(identity)
            report.append({
                'identity': identity,
                'globalId': model.global_id,
                'attributes': sorted(model.attributes),
                'associations': [assoc.to_dict() for assoc in model.associations],
            })
        return report
    finally:
        await plugin.tear_down()


def main(argv: Optional[List[str]] = None) -> int:
    """Command-line interface.

    Returns:
        Exit code: 0 for success, 1 for failure
    """
    parser = argparse.ArgumentParser(
        description="ORM Models Plugin",
        epilog="Example: python main.py --config models.json --inspect"
    )
    parser.add_argument('--config', required=True, help='JSON file with plugin options')
    action = parser.add_mutually_exclusive_group(required=True)
    action.add_argument('--dehydrate', action='store_true', help='Print the dehydrated client state')
    action.add_argument('--inspect', action='store_true', help='Initialize and list models')
    parser.add_argument(
        '--environment',
        choices=('server', 'client'),
        default='server',
        help='Configuration environment used by --inspect'
    )
    parser.add_argument('--verbose', action='store_true', help='Enable verbose logging')

    args = parser.parse_args(argv)

    if args.verbose:
        setup_logging(
            log_level='DEBUG',
            log_file=config.plugin.log_file,
            use_colors=sys.stdout.isatty()
        )

    try:
        options = load_options(args.config)
        if args.dehydrate:
            output = dehydrate_options(options)
        else:
            output = asyncio.run(inspect_models(options, args.environment))
        print(json.dumps(output, indent=2))
        return 0

    except CliError as e:
        logger.error(str(e))
        return 1
    except ValueError as e:
        logger.error(f"Invalid configuration: {e}")
        return 1
    except PluginError as e:
        logger.error(f"Plugin error: {e}")
        return 1


if __name__ == '__main__':
    sys.exit(main())
