"""Core runtime aggregator.

Expose the runtime building blocks from a single module; no extra logic
beyond imports/exports:

* ``paths`` -> ``normalize_path``
* ``fixtures`` -> ``HandlerSpec``, ``Example``, ``ExampleRequest``, ``ExampleResponse``
* ``hosts`` -> ``HostSink``, ``host_sink``
* ``base_node`` -> ``BaseNode`` (plugin-free tree), ``NodeConfig``
* ``node`` -> ``ResourceNode`` (plugins + self-test) and named constructors
* ``orchestrator`` -> ``TestResults``
* ``errors`` -> ``ConfigurationError``
"""

from .base_node import METHODS, BaseNode, NodeConfig
from .errors import ConfigurationError
from .fixtures import Example, ExampleRequest, ExampleResponse, HandlerSpec
from .hosts import HostSink, host_sink
from .node import ResourceNode, child_of, new_node, resource
from .orchestrator import TestResults
from .paths import normalize_path

__all__ = [
    "BaseNode",
    "ConfigurationError",
    "Example",
    "ExampleRequest",
    "ExampleResponse",
    "HandlerSpec",
    "HostSink",
    "METHODS",
    "NodeConfig",
    "ResourceNode",
    "TestResults",
    "child_of",
    "host_sink",
    "new_node",
    "normalize_path",
    "resource",
]
