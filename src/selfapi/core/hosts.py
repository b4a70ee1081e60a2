"""Host adapters: turn an external web framework into an export sink.

A resource tree never routes requests itself. The root-most node hands every
``(method, path, spec)`` export to a :class:`HostSink`, which registers
``spec.handler`` with the real framework.

``host_sink(app)`` tries the adapters in :data:`SINK_FACTORIES` order and
returns the first one accepting ``app`` (or ``None``):

1. :class:`ApiRouteSink` - ``app.add_api_route(path, endpoint, methods=[...])``
   (FastAPI/Starlette). ``:name`` placeholders become ``{name}``.
2. :class:`UrlRuleSink` - ``app.add_url_rule(rule, endpoint, view_func,
   methods=[...])`` (Flask). ``:name`` placeholders become ``<name>``.
3. :class:`VerbSink` - per-verb entry points ``app.get(path, handler)``
   covering at least ``get``/``post``/``put``, on an app that also exposes
   ``use`` or ``handle`` (HTTP clients with ``get``/``post`` are not hosts).
   ``delete`` falls back to the ``del_`` and ``del`` aliases when the host has
   no ``delete``.

A ``None`` path (the root) is registered as ``"/"``.
"""

from __future__ import annotations

import re
from typing import Any, Callable, Optional, Tuple, Type

from .fixtures import HandlerSpec

__all__ = [
    "ApiRouteSink",
    "HostSink",
    "SINK_FACTORIES",
    "UrlRuleSink",
    "VerbSink",
    "host_sink",
]

_PLACEHOLDER = re.compile(r":([A-Za-z_][A-Za-z0-9_]*)")

REQUIRED_VERBS = ("get", "post", "put")
APP_MARKERS = ("use", "handle")
DELETE_ALIASES = ("delete", "del_", "del")


class HostSink:
    """Terminal export target wrapping a host application."""

    __slots__ = ("app",)

    def __init__(self, app: Any) -> None:
        self.app = app

    @classmethod
    def accepts(cls, app: Any) -> bool:  # pragma: no cover - overridden
        return False

    def export_handler(self, method: str, path: Optional[str], spec: HandlerSpec) -> None:
        self.register(method, path or "/", spec.handler)

    def register(self, method: str, path: str, handler: Callable) -> None:  # pragma: no cover
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.app!r})"


class ApiRouteSink(HostSink):
    """Sink for hosts exposing ``add_api_route`` (FastAPI style)."""

    __slots__ = ()

    @classmethod
    def accepts(cls, app: Any) -> bool:
        return callable(getattr(app, "add_api_route", None))

    def register(self, method: str, path: str, handler: Callable) -> None:
        route_path = _PLACEHOLDER.sub(r"{\1}", path)
        self.app.add_api_route(route_path, handler, methods=[method.upper()])


class UrlRuleSink(HostSink):
    """Sink for hosts exposing ``add_url_rule`` (Flask style)."""

    __slots__ = ()

    @classmethod
    def accepts(cls, app: Any) -> bool:
        return callable(getattr(app, "add_url_rule", None))

    def register(self, method: str, path: str, handler: Callable) -> None:
        rule = _PLACEHOLDER.sub(r"<\1>", path)
        # Flask endpoints must be unique per app.
        endpoint = f"{method}:{rule}"
        self.app.add_url_rule(rule, endpoint, handler, methods=[method.upper()])


class VerbSink(HostSink):
    """Sink for express-like hosts with one registration callable per verb."""

    __slots__ = ()

    @classmethod
    def accepts(cls, app: Any) -> bool:
        if app is None:
            return False
        if not any(callable(getattr(app, marker, None)) for marker in APP_MARKERS):
            return False
        return all(callable(getattr(app, verb, None)) for verb in REQUIRED_VERBS)

    def register(self, method: str, path: str, handler: Callable) -> None:
        self._entry_point(method)(path, handler)

    def _entry_point(self, method: str) -> Callable:
        candidates = DELETE_ALIASES if method == "delete" else (method,)
        for name in candidates:
            entry = getattr(self.app, name, None)
            if callable(entry):
                return entry
        raise AttributeError(f"Host {self.app!r} cannot register '{method}' handlers")


SINK_FACTORIES: Tuple[Type[HostSink], ...] = (ApiRouteSink, UrlRuleSink, VerbSink)


def host_sink(app: Any) -> Optional[HostSink]:
    """Wrap ``app`` with the first adapter accepting it, or return ``None``."""
    if isinstance(app, HostSink):
        return app
    for factory in SINK_FACTORIES:
        if factory.accepts(app):
            return factory(app)
    return None
