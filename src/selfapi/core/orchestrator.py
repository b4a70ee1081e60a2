"""Recursive self-test driver.

``run_tree(node, base_url, results, *, client, timeout, rng)`` tests one node
and its subtree:

1. Resolve the node URL (base URL + node path). Only ``http``/``https`` base
   URLs with a host are accepted; anything else raises ``ConfigurationError``.
2. Validate the ``before_each_test``/``after_each_test`` hooks (``None`` or a
   callable); anything else raises ``ConfigurationError``.
3. Build one :class:`ExampleTask` per ``(method, example)`` pair and put them
   in random order (explicit pick-and-remove shuffle, ``rng`` injectable).
4. Add the own example count to ``results.total`` and run every own task and
   every child subtree concurrently with ``asyncio.gather``.
5. Once everything scheduled has finished, re-raise the first fault of the
   subtree, if any. Outcomes already recorded stay in ``results``.

Each example run is ``before hook -> plugin-wrapped run_example -> record ->
after hook``. Hooks may be plain or coroutine functions and take no arguments;
a continuation-style hook ``hook(resume)`` must drop its parameter and simply
return (or be ``async`` and return when done).
"""

from __future__ import annotations

import asyncio
import inspect
import json
import random
import sys
import threading
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional
from urllib.parse import urlsplit, urlunsplit

import httpx

from selfapi.core.errors import ConfigurationError
from selfapi.core.paths import join_url_path
from selfapi.core.runner import DEFAULT_TIMEOUT, ExampleOutcome, run_example
from selfapi.plugins._base_plugin import ExampleTask

__all__ = [
    "DEFAULT_BASE_URL",
    "TestResults",
    "report_results",
    "resolve_node_url",
    "run_tree",
    "shuffled",
]

DEFAULT_BASE_URL = "http://localhost"

SUPPORTED_SCHEMES = ("http", "https")


class TestResults:
    """Aggregated verdicts of a test run.

    ``record`` and ``schedule`` serialize on an internal lock, so concurrently
    completing tasks never need the caller to synchronize.
    """

    __test__ = False  # not a pytest test class

    def __init__(self) -> None:
        self.passed: List[ExampleOutcome] = []
        self.failed: List[ExampleOutcome] = []
        self.total = 0
        self._lock = threading.Lock()

    def schedule(self, count: int) -> None:
        with self._lock:
            self.total += count

    def record(self, outcome: ExampleOutcome) -> None:
        with self._lock:
            if outcome.passed:
                self.passed.append(outcome)
            else:
                self.failed.append(outcome)

    @property
    def completed(self) -> int:
        return len(self.passed) + len(self.failed)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "passed": [outcome.to_dict() for outcome in self.passed],
            "failed": [outcome.to_dict() for outcome in self.failed],
            "total": self.total,
        }

    def __repr__(self) -> str:
        return f"<TestResults passed={len(self.passed)} failed={len(self.failed)} total={self.total}>"


def resolve_node_url(base_url: str, path: Optional[str]) -> str:
    """Append a node path to a base URL, validating the scheme."""
    parts = urlsplit(str(base_url))
    if parts.scheme not in SUPPORTED_SCHEMES or not parts.netloc:
        raise ConfigurationError(
            f'Invalid base site: {base_url} (should start with "http://" or "https://")'
        )
    return urlunsplit((parts.scheme, parts.netloc, join_url_path(path, parts.path), "", ""))


def shuffled(items: Iterable[Any], rng: Optional[random.Random] = None) -> List[Any]:
    """Return ``items`` in uniformly random order (repeated pick-and-remove)."""
    rng = rng or random.Random()
    remaining = list(items)
    ordered = []
    while remaining:
        ordered.append(remaining.pop(rng.randrange(len(remaining))))
    return ordered


def _check_hook(hook: Any, name: str) -> Optional[Callable]:
    if hook is None:
        return None
    if not callable(hook):
        raise ConfigurationError(f'"{name}" should be a function')
    return hook


async def _call_hook(hook: Optional[Callable]) -> None:
    if hook is None:
        return
    result = hook()
    if inspect.isawaitable(result):
        await result


async def run_tree(
    node: Any,
    base_url: str,
    results: "TestResults",
    *,
    client: httpx.AsyncClient,
    timeout: float = DEFAULT_TIMEOUT,
    rng: Optional[random.Random] = None,
) -> "TestResults":
    """Test ``node`` and its descendants, recording into ``results``.

    Hooks are called with no arguments; a ``hook(resume)`` signature raises
    ``TypeError``, surfaced as a run-level error.
    """
    node_url = resolve_node_url(base_url, node.path)
    before = _check_hook(node.before_each_test, "before_each_test")
    after = _check_hook(node.after_each_test, "after_each_test")

    tasks = [
        ExampleTask(node=node, method=method, spec=spec, example=example, base_url=node_url)
        for method, spec in node.handlers.items()
        for example in spec.examples
    ]
    results.schedule(len(tasks))

    jobs: List[Awaitable[Any]] = [
        _run_task(task, client=client, timeout=timeout, before=before, after=after, results=results)
        for task in shuffled(tasks, rng)
    ]
    jobs.extend(
        run_tree(child, node_url, results, client=client, timeout=timeout, rng=rng)
        for child in node.children.values()
    )
    if not jobs:
        return results

    outcomes = await asyncio.gather(*jobs, return_exceptions=True)
    for outcome in outcomes:
        if isinstance(outcome, BaseException):
            raise outcome
    return results


async def _run_task(
    task: ExampleTask,
    *,
    client: httpx.AsyncClient,
    timeout: float,
    before: Optional[Callable],
    after: Optional[Callable],
    results: TestResults,
) -> None:
    async def execute() -> ExampleOutcome:
        return await run_example(
            client, task.method, task.spec, task.example, task.base_url, timeout=timeout
        )

    call: Callable[[], Awaitable[ExampleOutcome]] = execute
    for plugin in reversed(task.node.iter_plugins()):
        call = plugin.wrap_example(task.node, task, call)

    await _call_hook(before)
    try:
        results.record(await call())
    finally:
        await _call_hook(after)


def report_results(error: Optional[BaseException], results: TestResults) -> None:
    """Default ``test()`` callback: print counts and dump failures."""
    if error is not None:
        print(f"Error: {error}", file=sys.stderr)
    total = results.total
    print(f"Results: {len(results.passed)}/{total} test{'' if total == 1 else 's'} passed.")
    if results.failed:
        failed = [outcome.to_dict() for outcome in results.failed]
        print("Failed:", json.dumps(failed, indent=2, default=repr), file=sys.stderr)
