"""
=======================================================
Models plugin: configuration lifecycle and state transfer.
=======================================================

ModelsPlugin gates configuration, ORM initialization, external model
injection and teardown, and moves configuration from the server to the
client through dehydrate/rehydrate.

States:
    UNCONFIGURED → configure() → CONFIGURED → initialize() → INITIALIZED
    INITIALIZED → tear_down() → CONFIGURED (configuration is kept)

Rules:
    - configure() is rejected once initialized (AlreadyInitializedError)
    - initialize() requires configuration and may run once per cycle
    - Only one initialize()/tear_down() may be in flight; configure(), initialize(),
      tear_down() and rehydrate() called meanwhile fail fast (LifecycleBusyError)
    - A failed initialize() leaves the plugin CONFIGURED
    - A failed tear_down() leaves the registry populated
    - Every async operation accepts an optional callback(error, result),
      invoked exactly once after the operation settled; the awaitable
      reports the same outcome

Server/client transfer:
    dehydrate() returns {'common': ..., 'client': ...} as plain JSON data.
    The server scope, adapters and live models never leave the server.
    rehydrate() merges that state on the client and initializes when client
    adapters are available; otherwise the caller initializes later.

Example:
    >>> plugin = ModelsPlugin({
    ...     'common': {'models': [User, Car], 'connections': connections}
    ... })
    >>> models = await plugin.initialize([MemoryAdapter()])
    >>> state = plugin.dehydrate()
    >>>
    >>> # On the client
    >>> client = ModelsPlugin(client_adapters=[MemoryAdapter()])
    >>> await client.rehydrate(state)
    >>> client.registry.get('user')
    <Collection user>
"""

from enum import Enum
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional

from core.config import config
from core.errors import (
    AlreadyInitializedError,
    LifecycleBusyError,
    NotConfiguredError,
    OrmTeardownError,
)
from core.logger import get_logger
from plugin.config_merger import ConfigMerger
from plugin.context import ContextPlug
from plugin.orm_builder import AdapterCollection, OrmBuilder
from plugin.registry import ModelRegistry
from utils.normalize import to_serializable

logger = get_logger(__name__)

Callback = Callable[[Optional[BaseException], Any], Any]


class LifecycleState(Enum):
    """Observable lifecycle states."""

    UNCONFIGURED = 'unconfigured'
    CONFIGURED = 'configured'
    INITIALIZED = 'initialized'


class ModelsPlugin:
    """Configuration lifecycle for live ORM models.

    Attributes:
        name: Plugin name reported to the host
        strict: Registry strictness (models must expose an identity)
        environment: 'server' or 'client'; selects the effective config
        client_adapters: Adapters used when rehydrating on the client
        server_adapters: Adapters used by initialize() when none are passed
        merger: Accumulated configuration scopes
        registry: Live models of the current cycle
    """

    name = 'ModelsPlugin'

    def __init__(
        self,
        options: Optional[Mapping[str, Any]] = None,
        client_adapters: AdapterCollection = None,
        server_adapters: AdapterCollection = None,
        strict: Optional[bool] = None,
        environment: str = 'server',
        orm_factory: Optional[Callable[[], Any]] = None
    ):
        """Create a plugin.

        Args:
            options: Optional `{common?, server?, client?}` configuration
            client_adapters: Adapters bundled for the client side
            server_adapters: Default adapters for initialize() on the server
            strict: Reject models without identity; defaults to
                config.strict_models
            environment: Initial environment ('server' or 'client')
            orm_factory: Callable returning a new ORM engine per initialize
        """
        self.strict = config.strict_models if strict is None else strict
        self.environment = environment
        self.client_adapters = client_adapters
        self.server_adapters = server_adapters
        self.merger = ConfigMerger()
        self.registry = ModelRegistry(strict=self.strict)

        self._orm_factory = orm_factory
        self._orm = None
        self._initialized = False
        self._pending: Optional[str] = None

        if options:
            self.configure(options)

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def state(self) -> LifecycleState:
        if self._initialized:
            return LifecycleState.INITIALIZED
        if not self.merger.is_empty():
            return LifecycleState.CONFIGURED
        return LifecycleState.UNCONFIGURED

    @property
    def initialized(self) -> bool:
        return self._initialized

    @property
    def models(self) -> ModelRegistry:
        return self.registry

    # ------------------------------------------------------------------
    # Configuration
    # ------------------------------------------------------------------

    def configure(self, options: Optional[Mapping[str, Any]]) -> 'ModelsPlugin':
        """Merge `{common?, server?, client?}` options into the scopes.

        Returns:
            self, for chaining

        Raises:
            AlreadyInitializedError: If the ORM is initialized
            LifecycleBusyError: If initialize/tear_down is in flight
            ValueError: If options hold keys other than the scope names
        """
        self._check_idle('configure')
        if self._initialized:
            raise AlreadyInitializedError(
                "Cannot configure an initialized plugin; call tear_down() first"
            )
        self.merger.merge(options)
        return self

    def add_model_definitions(self, models: Any, scope: str = 'common') -> 'ModelsPlugin':
        """Add model definitions (list or mapping) to one scope."""
        return self.configure({scope: {'models': models}})

    def add_connections(self, connections: Mapping[str, Any], scope: str = 'common') -> 'ModelsPlugin':
        """Add connection configurations to one scope.

        Later calls with the same connection keys overwrite earlier ones.
        """
        return self.configure({scope: {'connections': connections}})

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    @staticmethod
    async def _settle(operation: Awaitable[Any], callback: Optional[Callback]) -> Any:
        """Await an operation and report its outcome to an optional callback."""
        try:
            result = await operation
        except Exception as e:
            if callback is not None:
                callback(e, None)
            raise
        if callback is not None:
            callback(None, result)
        return result

    def _check_idle(self, operation: str) -> None:
        if self._pending is not None:
            raise LifecycleBusyError(
                f"Cannot {operation} while {self._pending} is in progress"
            )

    async def initialize(
        self,
        adapters: AdapterCollection = None,
        callback: Optional[Callback] = None,
        environment: Optional[str] = None
    ) -> Dict[str, Any]:
        """Build the ORM from the effective configuration.

        Args:
            adapters: List or identity-keyed mapping of adapters. Defaults to
                the constructor's adapters for the current environment.
            callback: Optional callback(error, models)
            environment: Override the plugin environment for this call

        Returns:
            Identity → live model

        Raises:
            AlreadyInitializedError: If already initialized
            NotConfiguredError: If nothing was configured
            LifecycleBusyError: If initialize/tear_down is in flight
            InvalidAdapterError: If an adapter has no identity
            OrmInitializationError: If the ORM engine failed
        """
        return await self._settle(self._initialize(adapters, environment), callback)

    async def _initialize(self, adapters: AdapterCollection, environment: Optional[str]) -> Dict[str, Any]:
        self._check_idle('initialize')
        if self._initialized:
            raise AlreadyInitializedError("ORM is already initialized; call tear_down() first")
        if self.merger.is_empty():
            raise NotConfiguredError("Cannot initialize before any configuration was provided")

        environment = environment or self.environment
        if adapters is None:
            adapters = self.client_adapters if environment == 'client' else self.server_adapters

        effective = self.merger.compute_effective(environment)
        builder = OrmBuilder(self._orm_factory)

        logger.info(
            f"Initializing ORM for {environment} with {len(effective['models'])} model(s)"
        )
        self._pending = 'initialize'
        try:
            models = await builder.build(effective, adapters)
        finally:
            self._pending = None

        self._orm = builder.orm
        self.set_external_models(models)
        logger.info(f"ORM initialized: {', '.join(sorted(models)) or 'no models'}")
        return models

    def set_external_models(self, models: Any) -> None:
        """Register live models built outside this plugin.

        May be called repeatedly; models are merged with earlier ones. The
        plugin is marked initialized and configuration is locked.

        Raises:
            InvalidModelError: In strict mode, if a model has no identity
        """
        self.registry.set(models)
        self._initialized = True
        self.merger.lock()

    async def tear_down(self, callback: Optional[Callback] = None) -> None:
        """Close the ORM and clear the registry.

        Configuration is kept so the plugin can be initialized again. A
        never-initialized plugin completes immediately.

        Raises:
            LifecycleBusyError: If initialize/tear_down is in flight
            OrmTeardownError: If the ORM engine failed to tear down
        """
        return await self._settle(self._tear_down(), callback)

    async def _tear_down(self) -> None:
        self._check_idle('tear down')
        if not self._initialized:
            logger.debug("Tear down requested on an uninitialized plugin, nothing to do")
            return None

        self._pending = 'tear_down'
        try:
            if self._orm is not None:
                try:
                    await self._orm.teardown()
                except Exception as e:
                    logger.error(f"ORM teardown failed: {e}")
                    raise OrmTeardownError(f"ORM teardown failed: {e}", cause=e) from e
        finally:
            self._pending = None

        self._orm = None
        self.registry.clear()
        self._initialized = False
        self.merger.unlock()
        logger.info("Plugin torn down")
        return None

    # ------------------------------------------------------------------
    # Host integration
    # ------------------------------------------------------------------

    def plug_context(self) -> ContextPlug:
        """Return the context integration bound to this plugin's registry."""
        return ContextPlug(self.registry, name=self.name)

    # ------------------------------------------------------------------
    # State transfer
    # ------------------------------------------------------------------

    def dehydrate(self) -> Dict[str, Any]:
        """Serialize the common and client scopes for the client.

        Returns:
            JSON-serializable `{'common': ..., 'client': ...}`
        """
        return {
            'common': to_serializable(self.merger.scopes['common'], 'common'),
            'client': to_serializable(self.merger.scopes['client'], 'client'),
        }

    async def rehydrate(
        self,
        state: Optional[Mapping[str, Any]],
        adapters: AdapterCollection = None,
        callback: Optional[Callback] = None
    ) -> Optional[Dict[str, Any]]:
        """Restore dehydrated state and initialize on the client.

        Args:
            state: Output of dehydrate()
            adapters: Client adapters; defaults to the constructor's
                client_adapters
            callback: Optional callback(error, models)

        Returns:
            Identity → live model, or None when no client adapters are
            available and initialization is left to the caller

        Raises:
            ConfigurationLockedError: If the plugin is initialized
            LifecycleBusyError: If initialize/tear_down is in flight
        """
        return await self._settle(self._rehydrate(state, adapters), callback)

    async def _rehydrate(self, state: Optional[Mapping[str, Any]], adapters: AdapterCollection) -> Optional[Dict[str, Any]]:
        self._check_idle('rehydrate')
        state = state or {}

        # Both scopes are merged or neither
        scopes = dict(self.merger.scopes)
        try:
            self.merger.merge_scope('common', state.get('common'))
            self.merger.merge_scope('client', state.get('client'))
        except Exception:
            self.merger.scopes = scopes
            raise
        self.environment = 'client'

        if adapters is None:
            adapters = self.client_adapters
        if adapters is None:
            logger.info("State rehydrated without client adapters; initialize() must be called explicitly")
            return None

        return await self._initialize(adapters, 'client')
