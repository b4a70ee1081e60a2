"""Resource node with plugin pipeline and self-test entry points.

``ResourceNode`` extends :class:`~selfapi.core.base_node.BaseNode` with a
global plugin registry, per-node plugin instances and the self-test entry
points. Construction helpers (``new_node``, ``child_of``, ``resource``) live
here as well.

Global registry
---------------
``ResourceNode.register_plugin(plugin_class, name=None)`` validates that
``plugin_class`` is a ``BasePlugin`` subclass with a ``plugin_code``.
Re-registering a code with a different class raises ``ValueError`` unless
``name`` is given explicitly. ``available_plugins()`` returns a copy.

Attaching plugins
-----------------
``plug(plugin_name, **config)`` instantiates the registered class on this
node, calls ``on_register`` for handlers already stored and returns ``self``.
``iter_plugins()`` yields own plugins followed by plugins of ancestor nodes
whose name is not already taken, so a plugin plugged on a parent wraps the
examples of the whole subtree regardless of attachment order. Plugins are
reachable as attributes (``node.logging``).

Self-test
---------
- ``run_tests(base_url=None, **options)`` (coroutine) runs the subtree and
  returns :class:`~selfapi.core.orchestrator.TestResults`. Options
  (``timeout``, ``client``, ``rng``) are merged over :attr:`TEST_DEFAULTS`
  with ``SmartOptions``. The client opened for a run has no httpx timeout of
  its own; ``timeout`` (default 10 s) bounds each exchange. A
  ``ConfigurationError`` propagates with the partial
  results attached as ``error.results``.
- ``test(base_url=None, callback=None, **options)`` runs the same coroutine
  with ``asyncio.run`` and reports through ``callback(error, results)``.

Construction helpers
--------------------
- ``new_node(config)``: node from a ``NodeConfig`` or mapping.
- ``child_of(parent, path, title=None, description=None)``.
- ``resource(parent=None, path=None, title=None, description=None, base=None)``:
  ``base`` is an existing node, a ``NodeConfig`` or a mapping. Explicit
  ``path``/``title``/``description`` override values from ``base`` and the
  parent is attached last (explicit ``parent`` wins over ``base``'s).
"""

from __future__ import annotations

import asyncio
from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, List, Mapping, Optional, Type, Union

import httpx
from smartseeds import SmartOptions

from selfapi.core.base_node import BaseNode, NodeConfig, is_node
from selfapi.core.errors import ConfigurationError
from selfapi.core.fixtures import HandlerSpec
from selfapi.core.orchestrator import (
    DEFAULT_BASE_URL,
    TestResults,
    report_results,
    run_tree,
)
from selfapi.core.runner import DEFAULT_TIMEOUT
from selfapi.plugins._base_plugin import BasePlugin

__all__ = ["ResourceNode", "child_of", "new_node", "resource"]

_PLUGIN_REGISTRY: Dict[str, Type[BasePlugin]] = {}


@dataclass
class _PluginSpec:
    factory: Type[BasePlugin]
    kwargs: Dict[str, Any]

    def instantiate(self, node: "ResourceNode") -> BasePlugin:
        return self.factory(node, **self.kwargs)


class ResourceNode(BaseNode):
    """Resource node with plugin support and self-testing."""

    __slots__ = BaseNode.__slots__ + (
        "_plugins",
        "_plugin_info",
    )

    TEST_DEFAULTS: Dict[str, Any] = {"timeout": DEFAULT_TIMEOUT, "client": None, "rng": None}

    def __init__(self, *args, **kwargs):
        self._plugins: List[BasePlugin] = []
        self._plugin_info: Dict[str, Dict[str, Any]] = {}
        super().__init__(*args, **kwargs)

    # ------------------------------------------------------------------
    # Plugin registration
    # ------------------------------------------------------------------
    @classmethod
    def register_plugin(cls, plugin_class: Type[BasePlugin], name: Optional[str] = None) -> None:
        """Register a plugin class globally.

        Args:
            plugin_class: A BasePlugin subclass with plugin_code defined.
            name: Optional override name; when given it replaces any existing
                registration under that name.
        """
        if not isinstance(plugin_class, type) or not issubclass(plugin_class, BasePlugin):
            raise TypeError("plugin_class must be a BasePlugin subclass")
        if not getattr(plugin_class, "plugin_code", None):
            raise ValueError(
                f"Plugin {plugin_class.__name__} not following standards: missing plugin_code"
            )
        code = name or plugin_class.plugin_code
        if name is None:
            existing = _PLUGIN_REGISTRY.get(code)
            if existing is not None and existing is not plugin_class:
                raise ValueError(f"Plugin '{code}' already registered")
        _PLUGIN_REGISTRY[code] = plugin_class

    @classmethod
    def available_plugins(cls) -> Dict[str, Type[BasePlugin]]:
        return dict(_PLUGIN_REGISTRY)

    def plug(self, plugin: str, **config: Any) -> "ResourceNode":
        """Attach a plugin by name (previously registered globally)."""
        if not isinstance(plugin, str):
            raise TypeError(
                f"Plugin must be referenced by name string, got {type(plugin).__name__}"
            )
        plugin_class = _PLUGIN_REGISTRY.get(plugin)
        if plugin_class is None:
            available = ", ".join(sorted(_PLUGIN_REGISTRY)) or "none"
            raise ValueError(
                f"Unknown plugin '{plugin}'. Register it first. Available plugins: {available}"
            )
        spec = _PluginSpec(plugin_class, dict(config))
        instance = spec.instantiate(self)
        self._plugins.append(instance)
        for method, handler_spec in self.handlers.items():
            instance.on_register(self, method, handler_spec)
        return self

    def iter_plugins(self) -> List[BasePlugin]:
        """Return own plugins, then inherited ones not shadowed by name."""
        plugins = list(self._plugins)
        seen = {plugin.name for plugin in plugins}
        for ancestor in self.iter_ancestors():
            for plugin in getattr(ancestor, "_plugins", ()):
                if plugin.name not in seen:
                    seen.add(plugin.name)
                    plugins.append(plugin)
        return plugins

    def get_config(self, plugin_name: str, method: Optional[str] = None) -> Dict[str, Any]:
        """Return plugin config (node level + per-method override) for a reachable plugin."""
        return self._find_plugin(plugin_name).configuration(method)

    def _find_plugin(self, plugin_name: str) -> BasePlugin:
        for plugin in self.iter_plugins():
            if plugin.name == plugin_name:
                return plugin
        raise AttributeError(f"No plugin named '{plugin_name}' reachable from {self!r}")

    def __getattr__(self, name: str) -> Any:
        if name.startswith("_"):
            raise AttributeError(name)
        return self._find_plugin(name)

    def _after_handler_registered(self, method: str, spec: HandlerSpec) -> None:  # type: ignore[override]
        for plugin in self.iter_plugins():
            plugin.on_register(self, method, spec)

    # ------------------------------------------------------------------
    # Construction helpers
    # ------------------------------------------------------------------
    def resource(
        self,
        path: Optional[str] = None,
        title: Optional[str] = None,
        description: Optional[str] = None,
        base: Union["ResourceNode", NodeConfig, Mapping[str, Any], None] = None,
    ) -> "ResourceNode":
        """Create (or adopt ``base`` as) a sub-resource attached to this node."""
        return resource(self, path, title, description, base)

    # ------------------------------------------------------------------
    # Self-test
    # ------------------------------------------------------------------
    async def run_tests(
        self,
        base_url: Optional[str] = None,
        *,
        results: Optional[TestResults] = None,
        **options: Any,
    ) -> TestResults:
        """Test this subtree against its own examples."""
        opts = SmartOptions(options, defaults=self.TEST_DEFAULTS)
        timeout = getattr(opts, "timeout", None)
        if timeout is None:
            timeout = DEFAULT_TIMEOUT
        client = getattr(opts, "client", None)
        rng = getattr(opts, "rng", None)
        results = results if results is not None else TestResults()
        base_url = base_url or DEFAULT_BASE_URL
        try:
            if client is not None:
                await run_tree(self, base_url, results, client=client, timeout=timeout, rng=rng)
            else:
                # wait_for in the runner is the only bound on an exchange.
                async with httpx.AsyncClient(timeout=None) as owned_client:
                    await run_tree(
                        self, base_url, results, client=owned_client, timeout=timeout, rng=rng
                    )
        except ConfigurationError as exc:
            exc.results = results
            raise
        return results

    def test(
        self,
        base_url: Optional[str] = None,
        callback: Optional[Callable[[Optional[BaseException], TestResults], Any]] = None,
        **options: Any,
    ) -> TestResults:
        """Run :meth:`run_tests` to completion and report through ``callback``.

        Must not be called from a running event loop; await ``run_tests`` there.
        """
        callback = callback or report_results
        results = TestResults()
        try:
            asyncio.run(self.run_tests(base_url, results=results, **options))
        except Exception as exc:  # reported through the callback
            callback(exc, results)
            return results
        callback(None, results)
        return results


# ----------------------------------------------------------------------
# Named constructors
# ----------------------------------------------------------------------
def new_node(config: Union[NodeConfig, Mapping[str, Any], None] = None) -> ResourceNode:
    """Create a node from a ``NodeConfig`` or a mapping."""
    if config is None or isinstance(config, NodeConfig):
        return ResourceNode(config)
    return ResourceNode(NodeConfig.from_mapping(config))


def child_of(
    parent: Any,
    path: Optional[str] = None,
    title: Optional[str] = None,
    description: Optional[str] = None,
) -> ResourceNode:
    """Create a node attached to ``parent`` (a node or a host app)."""
    return resource(parent, path, title, description)


def resource(
    parent: Any = None,
    path: Optional[str] = None,
    title: Optional[str] = None,
    description: Optional[str] = None,
    base: Union[ResourceNode, NodeConfig, Mapping[str, Any], None] = None,
) -> ResourceNode:
    """Build or adopt a node, apply explicit overrides, then attach it to ``parent``."""
    if is_node(base):
        node = base
        base_parent = None
    else:
        if base is None:
            config = NodeConfig()
        elif isinstance(base, NodeConfig):
            config = base
        else:
            config = NodeConfig.from_mapping(base)
        base_parent = config.parent
        node = ResourceNode(replace(config, parent=None))

    if path:
        node.path = path
    if title:
        node.title = title
    if description:
        node.description = description

    target = parent if parent is not None else base_parent
    if target is not None:
        node.attach(target)
    return node
