"""selfapi public API surface.

Rules:
- Public exports: ``ResourceNode``, ``NodeConfig``, the named constructors
  (``resource``, ``new_node``, ``child_of``), the fixture models, the host
  adapter probe, ``TestResults`` and ``ConfigurationError``.
- Plugin registration: built-in plugins (``logging``) are imported for their
  side effect of calling ``ResourceNode.register_plugin(<class>)``. Imports
  are done via ``import_module`` to avoid cycles.
- Importing must stay lightweight: no node instantiation and no I/O.
"""

from importlib import import_module

__version__ = "0.3.0"

from .core import (
    ConfigurationError,
    Example,
    ExampleRequest,
    ExampleResponse,
    HandlerSpec,
    HostSink,
    NodeConfig,
    ResourceNode,
    TestResults,
    child_of,
    host_sink,
    new_node,
    normalize_path,
    resource,
)

# Import plugins to trigger auto-registration (lazy to avoid cycles)
for _plugin in ("logging",):
    import_module(f"{__name__}.plugins.{_plugin}")
del _plugin

__all__ = [
    "ConfigurationError",
    "Example",
    "ExampleRequest",
    "ExampleResponse",
    "HandlerSpec",
    "HostSink",
    "NodeConfig",
    "ResourceNode",
    "TestResults",
    "child_of",
    "host_sink",
    "new_node",
    "normalize_path",
    "resource",
]
