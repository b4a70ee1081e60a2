"""Plugin contract definitions used by the resource tree.

Objects
~~~~~~~
``ExampleTask``
    Dataclass describing one scheduled example run. Fields:

    - ``node`` - resource node owning the handler
    - ``method`` - HTTP method (lowercase)
    - ``spec`` - the :class:`~selfapi.core.fixtures.HandlerSpec`
    - ``example`` - the :class:`~selfapi.core.fixtures.Example` under test
    - ``base_url`` - URL of the owning node (placeholders not yet filled)

    The ``url`` property gives the concrete request URL of the example.

``BasePlugin``
    Base class every plugin subclasses. Responsibilities:

    - config helpers delegating to the owning node's ``_plugin_info`` store
    - optional hooks ``on_register(node, method, spec)`` and
      ``wrap_example(node, task, call_next)``

    Required class attributes: ``plugin_code`` (registry key) and
    ``plugin_description``.

    Constructor: ``BasePlugin(node, **config)``; ``**config`` goes through
    ``configure()``.

    ``configure(**config)``
        Subclasses declare accepted options in the signature. The method is
        wrapped by ``__init_subclass__`` to parse ``flags`` (``"before:off"``;
        ``off``/``false``/``no``/``0`` switch an option off),
        route ``_target`` (``"--base--"`` for node level, a method name such
        as ``"get"``, or a comma list of methods), validate with pydantic's
        ``validate_call`` and write to the store.

    ``configuration(method=None)``
        Node-level config merged with the per-method override.

    ``wrap_example``
        Receives the node, the :class:`ExampleTask` and the next coroutine
        function; returns a coroutine function with the same signature
        (no arguments, returns an ``ExampleOutcome``).
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Dict, Optional

from pydantic import validate_call

from selfapi.core.runner import build_request_url

__all__ = ["BasePlugin", "ExampleTask"]

BASE_TARGET = "--base--"

_FALSE_WORDS = frozenset({"off", "false", "no", "0"})


@dataclass
class ExampleTask:
    """One example scheduled for execution."""

    node: Any
    method: str
    spec: Any
    example: Any
    base_url: str

    @property
    def url(self) -> str:
        """Concrete request URL (placeholders filled, query appended)."""
        return build_request_url(self.base_url, self.example.request)


def _wrap_configure(original_configure: Callable) -> Callable:
    """Wrap a plugin's configure() to handle flags, _target, validation and storage."""
    validated = validate_call(original_configure)

    def wrapper(
        self: "BasePlugin", *, _target: str = BASE_TARGET, flags: Optional[str] = None, **kwargs: Any
    ) -> None:
        if flags:
            kwargs.update(self._parse_flags(flags))

        if "," in _target:
            for target in (t.strip() for t in _target.split(",")):
                if target:
                    wrapper(self, _target=target, **kwargs)
            return

        validated(self, **kwargs)
        self._write_config(_target, kwargs)

    return wrapper


class BasePlugin:
    """Hook interface + configuration helpers for resource node plugins."""

    __slots__ = ("name", "_node")

    plugin_code: str = ""
    plugin_description: str = ""

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        if "configure" in cls.__dict__:
            cls.configure = _wrap_configure(cls.__dict__["configure"])

    def __init__(self, node: Any, **config: Any):
        self.name = self.plugin_code
        self._node = node
        self._init_store()
        self.configure(**config)

    def _init_store(self) -> None:
        store = self._get_store()
        store.setdefault(self.name, {}).setdefault(
            BASE_TARGET, {"config": {"enabled": True}, "locals": {}}
        )

    def configure(self, *, _target: str = BASE_TARGET, flags: Optional[str] = None) -> None:
        """Override in subclasses to declare accepted configuration parameters."""
        if flags:
            self._write_config(_target, self._parse_flags(flags))

    def _write_config(self, target: str, config: Dict[str, Any]) -> None:
        if not config:
            return
        plugin_bucket = self._get_store().setdefault(self.name, {})
        bucket = plugin_bucket.setdefault(target, {"config": {}, "locals": {}})
        bucket["config"].update(config)

    def configuration(self, method: Optional[str] = None) -> Dict[str, Any]:
        """Read merged configuration (node level + optional per-method override)."""
        plugin_bucket = self._get_store().get(self.name)
        if not plugin_bucket:
            return {}
        merged = dict(plugin_bucket.get(BASE_TARGET, {}).get("config", {}))
        if method:
            merged.update(plugin_bucket.get(method, {}).get("config", {}))
        return merged

    def _parse_flags(self, flags: str) -> Dict[str, bool]:
        """Turn ``"enabled,before:off"`` into ``{"enabled": True, "before": False}``."""
        mapping: Dict[str, bool] = {}
        for chunk in filter(None, (part.strip() for part in flags.split(","))):
            name, _, value = chunk.partition(":")
            mapping[name.strip()] = value.strip().lower() not in _FALSE_WORDS
        return mapping

    def on_register(self, node: Any, method: str, spec: Any) -> None:  # pragma: no cover
        """Hook run when a handler is stored on a node carrying this plugin."""

    def wrap_example(self, node: Any, task: ExampleTask, call_next: Callable) -> Callable:
        """Wrap one example run; default passthrough."""
        return call_next

    def _get_store(self) -> Dict[str, Any]:
        return getattr(self._node, "_plugin_info")
