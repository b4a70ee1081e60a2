"""Plugin-free resource node and handler export protocol.

The module exposes :class:`BaseNode` (tree structure, handler storage, export
protocol, documentation surface) and the :class:`NodeConfig` record.

Construction
------------
``BaseNode(config=None, **fields)`` takes a :class:`NodeConfig` and/or its
fields as keywords (keywords win). ``config.parent``, when set, is attached
last so handlers registered later or earlier end up in the same place.

State
-----
- ``path``: canonical absolute path (``None`` for the root), normalized on
  assignment via :func:`~selfapi.core.paths.normalize_path`.
- ``title`` / ``description``: documentation.
- ``before_each_test`` / ``after_each_test``: optional hooks (validated only
  when a test run starts).
- ``parent``: ``None``, another node, or a :class:`~selfapi.core.hosts.HostSink`.
- ``children``: relative path -> child node (insertion ordered).
- ``handlers``: HTTP method -> :class:`~selfapi.core.fixtures.HandlerSpec`.

Registration
------------
``add_handler(method, path=None, spec=None, **fields)``

- ``method`` must be one of :data:`METHODS`; anything else raises
  ``ValueError``.
- ``spec`` may be a ``HandlerSpec``, a mapping or omitted in favour of keyword
  fields. A non-string ``path`` is taken as the handler spec.
- Without any handler the call returns a decorator registering the decorated
  function (returned unchanged).
- A ``path`` normalizing to a real sub-path delegates to the child stored under
  that path, created and attached on first use. Otherwise the handler spec is
  stored in ``handlers`` and exported immediately.

Export protocol
---------------
- ``export_handler(method, path, spec)`` prefixes ``path`` with the node path
  and forwards to the parent; with no parent it is a no-op and the handler
  stays buffered in ``handlers``.
- ``export_all_handlers()`` re-emits own and descendant handlers.
- ``attach(parent)`` resolves the parent reference in order:

  1. same parent as now: no-op;
  2. another node: linked both ways (``parent.children[path] = self``,
     unlinking from a previous node parent), then everything is re-exported;
  3. a ``HostSink`` or an object accepted by
     :func:`~selfapi.core.hosts.host_sink`: wrapped and re-exported;
  4. anything else: detached, handlers kept but export-inert.

  Attaching to itself or to a descendant raises ``ValueError``; so does a
  different node already registered under the same child path.

Invariants
----------
- Attach-then-populate and populate-then-attach yield identical sink
  registrations.
- ``full_path`` equals the normalized concatenation of ancestor paths.
- The tree is append-only; nothing here starts I/O.
"""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional, Union

from smartseeds.typeutils import safe_is_instance

from .fixtures import HandlerSpec, coerce_spec
from .hosts import HostSink, host_sink
from .paths import normalize_path

__all__ = ["BaseNode", "METHODS", "NodeConfig"]

METHODS = ("get", "post", "patch", "put", "delete")

_NODE_CLASS_PATH = "selfapi.core.base_node.BaseNode"

_CONFIG_ALIASES = {
    "beforeEachTest": "before_each_test",
    "afterEachTest": "after_each_test",
}


@dataclass
class NodeConfig:
    """Construction record for a resource node."""

    path: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    before_each_test: Any = None
    after_each_test: Any = None
    parent: Any = None

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any]) -> "NodeConfig":
        """Build a config from snake_case or camelCase keys."""
        fields = {_CONFIG_ALIASES.get(key, key): value for key, value in data.items()}
        return cls(**fields)


def is_node(obj: Any) -> bool:
    """Return True when ``obj`` is a resource node."""
    return safe_is_instance(obj, _NODE_CLASS_PATH)


class BaseNode:
    """Resource tree node without plugin support."""

    __slots__ = (
        "_path",
        "title",
        "description",
        "before_each_test",
        "after_each_test",
        "_parent",
        "children",
        "handlers",
    )

    def __init__(self, config: Optional[NodeConfig] = None, **fields: Any) -> None:
        if config is None:
            config = NodeConfig(**fields)
        elif fields:
            config = replace(config, **fields)
        self.path = config.path
        self.title = config.title
        self.description = config.description
        self.before_each_test = config.before_each_test
        self.after_each_test = config.after_each_test
        self._parent: Union[None, BaseNode, HostSink] = None
        self.children: Dict[Optional[str], BaseNode] = {}
        self.handlers: Dict[str, HandlerSpec] = {}
        if config.parent is not None:
            self.attach(config.parent)

    # ------------------------------------------------------------------
    # Properties
    # ------------------------------------------------------------------
    @property
    def path(self) -> Optional[str]:
        return self._path

    @path.setter
    def path(self, value: Optional[str]) -> None:
        self._path = normalize_path(value)

    @property
    def parent(self) -> Union[None, "BaseNode", HostSink]:
        return self._parent

    @property
    def full_path(self) -> Optional[str]:
        """Normalized concatenation of every ancestor path, root to this node."""
        full: Optional[str] = None
        for node in reversed([self, *self.iter_ancestors()]):
            full = normalize_path(node.path, full)
        return full

    def iter_ancestors(self) -> Iterator["BaseNode"]:
        """Yield node parents from the closest up to the root-most node."""
        node = self._parent
        while is_node(node):
            yield node
            node = node._parent

    # ------------------------------------------------------------------
    # Registration
    # ------------------------------------------------------------------
    def add_handler(
        self,
        method: str,
        path: Any = None,
        spec: Union[HandlerSpec, Mapping[str, Any], None] = None,
        **fields: Any,
    ) -> Any:
        """Register a handler spec for ``method`` on this node or a sub-path.

        Returns self (to allow chaining), or a decorator when no handler is given.
        """
        method = self._check_method(method)
        if spec is None and path is not None and not isinstance(path, str):
            path, spec = None, path

        if spec is None and "handler" not in fields:

            def decorator(func: Callable) -> Callable:
                self.add_handler(method, path, handler=func, **fields)
                return func

            return decorator

        handler_spec = coerce_spec(spec, **fields)
        sub_path = normalize_path(path)
        if sub_path is None:
            self.handlers[method] = handler_spec
            self._after_handler_registered(method, handler_spec)
            self.export_handler(method, None, handler_spec)
            return self

        child = self.children.get(sub_path)
        if child is None:
            child = type(self)(path=sub_path)
            child.attach(self)
        child.add_handler(method, None, handler_spec)
        return self

    def get(self, path: Any = None, spec: Any = None, **fields: Any) -> Any:
        return self.add_handler("get", path, spec, **fields)

    def post(self, path: Any = None, spec: Any = None, **fields: Any) -> Any:
        return self.add_handler("post", path, spec, **fields)

    def patch(self, path: Any = None, spec: Any = None, **fields: Any) -> Any:
        return self.add_handler("patch", path, spec, **fields)

    def put(self, path: Any = None, spec: Any = None, **fields: Any) -> Any:
        return self.add_handler("put", path, spec, **fields)

    def delete(self, path: Any = None, spec: Any = None, **fields: Any) -> Any:
        return self.add_handler("delete", path, spec, **fields)

    def _check_method(self, method: str) -> str:
        normalized = str(method).strip().lower()
        if normalized not in METHODS:
            raise ValueError(f"Unsupported HTTP method {method!r}; expected one of {METHODS}")
        return normalized

    # ------------------------------------------------------------------
    # Export protocol
    # ------------------------------------------------------------------
    def export_handler(self, method: str, path: Optional[str], spec: HandlerSpec) -> None:
        """Forward a registration one level up, prefixed with this node's path."""
        if self._parent is None:
            return
        self._parent.export_handler(method, normalize_path(path, self.path), spec)

    def export_all_handlers(self) -> None:
        """(Re-)export every handler of this subtree."""
        if self._parent is None:
            return
        for method, spec in self.handlers.items():
            self.export_handler(method, None, spec)
        for child in self.children.values():
            child.export_all_handlers()

    def attach(self, parent: Any) -> "BaseNode":
        """Set this node's parent reference and re-export the subtree."""
        current = self._parent
        if parent is current or (isinstance(current, HostSink) and current.app is parent):
            return self

        if is_node(parent):
            if parent is self or self in parent.iter_ancestors():
                raise ValueError("Cannot attach a node to itself or to one of its descendants")
            key = self.path
            existing = parent.children.get(key)
            if existing is not None and existing is not self:
                raise ValueError(f"Child path collision: {key!r}")
            self._unlink()
            parent.children[key] = self
            self._parent = parent
            self.export_all_handlers()
            return self

        sink = host_sink(parent)
        self._unlink()
        self._parent = sink
        if sink is not None:
            self.export_all_handlers()
        return self

    def detach(self) -> "BaseNode":
        """Drop the parent reference; handlers stay on the node."""
        return self.attach(None)

    def _unlink(self) -> None:
        current = self._parent
        if is_node(current) and current.children.get(self.path) is self:
            del current.children[self.path]

    # ------------------------------------------------------------------
    # Documentation surface
    # ------------------------------------------------------------------
    def describe(self) -> Dict[str, Any]:
        """Return the documentation tree rooted at this node."""
        return {
            "path": self.path,
            "full_path": self.full_path,
            "title": self.title,
            "description": self.description,
            "handlers": self._describe_handlers(),
            "children": [child.describe() for child in self.children.values()],
        }

    def _describe_handlers(self) -> List[Dict[str, Any]]:
        return [
            {
                "method": method,
                "title": spec.title,
                "description": spec.description,
                "examples": list(spec.examples),
            }
            for method, spec in self.handlers.items()
        ]

    def iter_nodes(self) -> Iterator["BaseNode"]:
        """Yield this node and every descendant, depth first."""
        yield self
        for child in self.children.values():
            yield from child.iter_nodes()

    # ------------------------------------------------------------------
    # Hooks for subclasses
    # ------------------------------------------------------------------
    def _after_handler_registered(self, method: str, spec: HandlerSpec) -> None:
        """Hook invoked after a handler is stored on this node."""
        return None

    def __repr__(self) -> str:
        return f"<{type(self).__name__} path={self.path!r} title={self.title!r}>"
