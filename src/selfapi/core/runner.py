"""Example test runner: one ``(method, spec, example)`` triple as a real HTTP call.

Steps
-----
1. Build the concrete URL (:func:`build_request_url`): each ``url_parameters``
   entry replaces its ``:name`` placeholders (whole names only) or, when the
   path has no such placeholder, the first ``*`` wildcard. ``query_parameters``
   are appended URL-encoded (``key=value``, bare ``key`` for empty values).
2. Send it through the shared ``httpx.AsyncClient`` and buffer the response.
   The whole exchange is bounded by ``timeout`` seconds.
3. Compare status, headers (case-insensitive names on both sides, first
   mismatch stops header checks) and body (``strip()`` on both sides).
4. Return an :class:`ExampleOutcome`.

Connection failures and timeouts become failed outcomes carrying
``actual_response = {"error": message}``; nothing raised by the network ever
escapes :func:`run_example`.
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass
from typing import Any, Dict, Mapping, Optional
from urllib.parse import quote, urlsplit, urlunsplit

import httpx

from .fixtures import Example, ExampleRequest, ExampleResponse, HandlerSpec

__all__ = [
    "DEFAULT_TIMEOUT",
    "ExampleOutcome",
    "build_request_url",
    "match_response",
    "run_example",
]

logger = logging.getLogger("selfapi")

DEFAULT_TIMEOUT = 10.0


@dataclass
class ExampleOutcome:
    """Verdict for one example.

    ``response`` is set on success; ``expected_response`` and
    ``actual_response`` on failure.
    """

    handler: str
    method: str
    uri: str
    request: Dict[str, Any]
    passed: bool = False
    response: Optional[Dict[str, Any]] = None
    expected_response: Optional[Dict[str, Any]] = None
    actual_response: Optional[Dict[str, Any]] = None

    def to_dict(self) -> Dict[str, Any]:
        data: Dict[str, Any] = {
            "handler": self.handler,
            "method": self.method,
            "uri": self.uri,
            "request": self.request,
        }
        if self.passed:
            data["response"] = self.response
        else:
            data["expectedResponse"] = self.expected_response
            data["actualResponse"] = self.actual_response
        return data


def _fill_placeholders(path: str, parameters: Mapping[str, Any]) -> str:
    for name, value in parameters.items():
        text = str(value)
        pattern = re.compile(rf":{re.escape(name)}(?![A-Za-z0-9_])")
        if pattern.search(path):
            path = pattern.sub(lambda _match: text, path)
        elif "*" in path:
            path = path.replace("*", text, 1)
    return path


def _encode_query(parameters: Mapping[str, Any]) -> str:
    pairs = []
    for name, value in parameters.items():
        key = quote(str(name), safe="")
        if value is None or value == "":
            pairs.append(key)
        else:
            pairs.append(f"{key}={quote(str(value), safe='')}")
    return "&".join(pairs)


def build_request_url(base_url: str, request: ExampleRequest) -> str:
    """Return ``base_url`` with placeholders filled and the query string appended."""
    parts = urlsplit(base_url)
    path = _fill_placeholders(parts.path or "/", request.url_parameters)
    query = _encode_query(request.query_parameters) if request.query_parameters else parts.query
    return urlunsplit((parts.scheme, parts.netloc, path, query, ""))


def _check(expected: Any, actual: Any) -> bool:
    if callable(expected):
        try:
            return bool(expected(actual))
        except Exception:  # noqa: BLE001 - a raising predicate is a mismatch
            logger.debug("predicate %r raised for %r", expected, actual, exc_info=True)
            return False
    return expected == actual


def match_response(expected: ExampleResponse, status: int, headers: Mapping[str, str], body: str) -> bool:
    """Return True when the observed response satisfies ``expected``."""
    if not _check(expected.status, status):
        return False
    if expected.headers:
        actual_headers = httpx.Headers(headers)
        for name, value in expected.headers.items():
            actual = actual_headers.get(name)
            if actual is None or not _check(value, actual):
                return False
    if expected.body is not None:
        actual_body = body.strip()
        wanted = expected.body if callable(expected.body) else expected.body.strip()
        if not _check(wanted, actual_body):
            return False
    return True


async def run_example(
    client: httpx.AsyncClient,
    method: str,
    spec: HandlerSpec,
    example: Example,
    base_url: str,
    *,
    timeout: float = DEFAULT_TIMEOUT,
) -> ExampleOutcome:
    """Issue the example request against ``base_url`` and judge the response."""
    request = example.request
    expected = example.response
    url = build_request_url(base_url, request)
    outcome = ExampleOutcome(
        handler=spec.display_title,
        method=method,
        uri=url,
        request=request.model_dump(by_alias=True, exclude_defaults=True),
    )

    try:
        response = await asyncio.wait_for(
            client.request(
                method.upper(),
                url,
                headers=dict(request.headers),
                content=request.body,
            ),
            timeout,
        )
    except (asyncio.TimeoutError, httpx.TimeoutException):
        return _failed(outcome, expected, {"error": "timed out"})
    except httpx.HTTPError as exc:
        logger.debug("request %s %s failed: %s", method.upper(), url, exc)
        return _failed(outcome, expected, {"error": str(exc) or type(exc).__name__})

    body = response.text
    if match_response(expected, response.status_code, response.headers, body):
        outcome.passed = True
        outcome.response = expected.expectation()
        return outcome

    actual: Dict[str, Any] = {"status": response.status_code}
    if expected.headers is not None:
        actual["headers"] = dict(response.headers)
    if expected.body is not None:
        actual["body"] = body
    return _failed(outcome, expected, actual)


def _failed(outcome: ExampleOutcome, expected: ExampleResponse, actual: Dict[str, Any]) -> ExampleOutcome:
    outcome.passed = False
    outcome.expected_response = expected.expectation()
    outcome.actual_response = actual
    return outcome
