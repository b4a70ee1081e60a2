"""Logging plugin.

Responsibilities
----------------
- Wrap each example run and emit configurable messages:
  * ``before`` (default True): ``"<METHOD> <uri> start"``
  * ``after`` (default True): ``"<METHOD> <uri> end (<ms> ms) passed|failed"``
    with ``{elapsed:.2f}`` formatting.
- Sinks:
  * when ``print`` is true: always ``print(message)``;
  * else when ``log`` is true: ``logger.info(message)`` if the logger reports
    handlers via ``hasHandlers()``, otherwise ``print(message)``;
  * else: no output.
- ``enabled`` gates the plugin entirely (default True).
- Uses a provided ``logging.Logger`` (default ``logging.getLogger("selfapi")``).

Configuration
-------------
Accepted keys (node level or per method): ``enabled``, ``before``, ``after``,
``log``, ``print``, as kwargs to ``plug("logging", ...)`` or through
``flags`` (``"enabled:off,before:on"``). Per method:
``node.logging.configure(_target="get", before=False)``.

A plugin plugged on a node also wraps the examples of its descendants; the
``<uri>`` is always the concrete request URL of the example.

Registration
------------
At import the plugin registers itself as ``"logging"`` via
``ResourceNode.register_plugin(LoggingPlugin)``.
"""

from __future__ import annotations

import logging
import time
from typing import Callable, Dict, Optional

from selfapi.core.node import ResourceNode
from selfapi.plugins._base_plugin import BasePlugin, ExampleTask

DEFAULTS: Dict[str, bool] = {
    "enabled": True,
    "before": True,
    "after": True,
    "log": True,
    "print": False,
}


class LoggingPlugin(BasePlugin):
    """Reports every example run with its duration and verdict."""

    plugin_code = "logging"
    plugin_description = "Logs example runs with timing"

    __slots__ = ("_logger",)

    def __init__(self, node, *, logger: Optional[logging.Logger] = None, **cfg):
        self._logger = logger or logging.getLogger("selfapi")
        super().__init__(node, **cfg)

    def configure(
        self,
        enabled: bool = True,
        before: bool = True,
        after: bool = True,
        log: bool = True,
        print: bool = False,  # noqa: A002 - mirrors the option name
    ):
        """Declare the accepted options; storage is done by the base wrapper."""

    def wrap_example(self, node, task: ExampleTask, call_next: Callable):
        cfg = self._effective_config(task.method)
        if not cfg["enabled"]:
            return call_next
        sink = self._sink(cfg)
        if sink is None:
            return call_next
        label = f"{task.method.upper()} {task.url}"

        async def logged():
            if cfg["before"]:
                sink(f"{label} start")
            started = time.perf_counter()
            outcome = await call_next()
            if cfg["after"]:
                elapsed = (time.perf_counter() - started) * 1000
                verdict = "passed" if outcome.passed else "failed"
                sink(f"{label} end ({elapsed:.2f} ms) {verdict}")
            return outcome

        return logged

    def _sink(self, cfg: Dict[str, bool]) -> Optional[Callable[[str], None]]:
        if cfg["print"]:
            return print
        if not cfg["log"]:
            return None
        has_handlers = getattr(self._logger, "hasHandlers", None)
        if callable(has_handlers) and has_handlers():
            return self._logger.info
        return print

    def _effective_config(self, method: str) -> Dict[str, bool]:
        cfg = self.configuration(method)
        return {
            key: default if cfg.get(key) is None else bool(cfg[key])
            for key, default in DEFAULTS.items()
        }


ResourceNode.register_plugin(LoggingPlugin)
