"""Tests for the single-example runner."""

import asyncio

import httpx
import pytest
import respx

from selfapi import Example, ExampleRequest, ExampleResponse, HandlerSpec
from selfapi.core.runner import build_request_url, match_response, run_example

BASE = "http://api.test/api/things"


def handler(request, response):
    return None


SPEC = HandlerSpec(title="Things", handler=handler)


def example(request=None, **response):
    return Example.model_validate({"request": request or {}, "response": response})


def recording_client(responder):
    seen = []

    def handle(request):
        seen.append(request)
        return responder(request)

    return httpx.AsyncClient(transport=httpx.MockTransport(handle)), seen


# ----------------------------------------------------------------------
# URL building
# ----------------------------------------------------------------------
def test_named_placeholders_replace_whole_names_only():
    request = ExampleRequest(url_parameters={"id": 7})
    url = build_request_url("http://h/users/:id/:identity", request)
    assert url == "http://h/users/7/:identity"


def test_wildcard_used_when_no_named_placeholder():
    request = ExampleRequest(url_parameters={"file": "a.txt"})
    assert build_request_url("http://h/static/*", request) == "http://h/static/a.txt"


def test_query_parameters_are_encoded():
    request = ExampleRequest(query_parameters={"q": "a b&c", "flag": ""})
    assert build_request_url("http://h/search", request) == "http://h/search?q=a%20b%26c&flag"


def test_root_url_keeps_a_slash():
    assert build_request_url("http://h", ExampleRequest()) == "http://h/"


# ----------------------------------------------------------------------
# Matching
# ----------------------------------------------------------------------
def test_match_response_header_names_case_insensitive():
    expected = ExampleResponse(headers={"content-type": "application/json"})
    assert match_response(expected, 200, {"Content-Type": "application/json"}, "")
    assert not match_response(expected, 200, {"Content-Type": "text/plain"}, "")
    assert not match_response(expected, 200, {}, "")


def test_match_response_predicate_that_raises_is_a_mismatch():
    def broken(value):
        raise RuntimeError("boom")

    assert not match_response(ExampleResponse(status=broken), 200, {}, "")


def test_match_response_strips_bodies():
    assert match_response(ExampleResponse(body="  pong\n"), 200, {}, "pong  ")


# ----------------------------------------------------------------------
# Execution
# ----------------------------------------------------------------------
@pytest.mark.asyncio
async def test_literal_expectation_passes():
    with respx.mock:
        route = respx.get(BASE).mock(return_value=httpx.Response(200, text="ok"))
        async with httpx.AsyncClient() as client:
            outcome = await run_example(client, "get", SPEC, example(body="ok"), BASE)

    assert route.called
    assert outcome.passed
    assert outcome.handler == "Things"
    assert outcome.method == "get"
    assert outcome.uri == BASE
    assert outcome.response == {"status": 200, "body": "ok"}
    assert outcome.to_dict()["response"] == {"status": 200, "body": "ok"}


@pytest.mark.asyncio
async def test_status_mismatch_reports_actual_status():
    with respx.mock:
        respx.get(BASE).mock(return_value=httpx.Response(200, text="fine"))
        async with httpx.AsyncClient() as client:
            outcome = await run_example(client, "get", SPEC, example(status=418), BASE)

    assert not outcome.passed
    assert outcome.expected_response == {"status": 418}
    assert outcome.actual_response == {"status": 200}
    data = outcome.to_dict()
    assert data["expectedResponse"] == {"status": 418}
    assert data["actualResponse"] == {"status": 200}
    assert "response" not in data


@pytest.mark.asyncio
@pytest.mark.parametrize("status, passed", [(201, True), (404, False)])
async def test_status_predicate(status, passed):
    in_2xx = lambda code: 200 <= code < 300  # noqa: E731
    with respx.mock:
        respx.post(BASE).mock(return_value=httpx.Response(status))
        async with httpx.AsyncClient() as client:
            outcome = await run_example(client, "post", SPEC, example(status=in_2xx), BASE)
    assert outcome.passed is passed


@pytest.mark.asyncio
async def test_failed_outcome_includes_checked_headers_and_body():
    with respx.mock:
        respx.get(BASE).mock(
            return_value=httpx.Response(200, text="actual", headers={"X-Kind": "real"})
        )
        async with httpx.AsyncClient() as client:
            outcome = await run_example(
                client,
                "get",
                SPEC,
                example(headers={"x-kind": "real"}, body="expected"),
                BASE,
            )

    assert not outcome.passed
    assert outcome.actual_response["status"] == 200
    assert outcome.actual_response["body"] == "actual"
    assert outcome.actual_response["headers"]["x-kind"] == "real"


@pytest.mark.asyncio
async def test_request_carries_method_headers_body_and_filled_url():
    client, seen = recording_client(lambda request: httpx.Response(204))
    fixture = example(
        {
            "urlParameters": {"id": "42"},
            "queryParameters": {"dry run": "yes"},
            "headers": {"X-Token": "secret"},
            "body": '{"name": "x"}',
        },
        status=204,
    )
    async with client:
        outcome = await run_example(client, "put", SPEC, fixture, "http://api.test/items/:id")

    assert outcome.passed
    assert outcome.uri == "http://api.test/items/42?dry%20run=yes"
    assert outcome.request == {
        "urlParameters": {"id": "42"},
        "queryParameters": {"dry run": "yes"},
        "headers": {"X-Token": "secret"},
        "body": '{"name": "x"}',
    }
    (request,) = seen
    assert request.method == "PUT"
    assert request.url.path == "/items/42"
    assert request.headers["x-token"] == "secret"
    assert request.content == b'{"name": "x"}'


@pytest.mark.asyncio
async def test_connection_error_becomes_failed_outcome():
    with respx.mock:
        respx.get(BASE).mock(side_effect=httpx.ConnectError)
        async with httpx.AsyncClient() as client:
            outcome = await run_example(client, "get", SPEC, example(), BASE)

    assert not outcome.passed
    assert set(outcome.actual_response) == {"error"}
    assert outcome.expected_response == {"status": 200}


@pytest.mark.asyncio
async def test_slow_response_times_out():
    async def slow(request):
        await asyncio.sleep(5)
        return httpx.Response(200)

    async with httpx.AsyncClient(transport=httpx.MockTransport(slow)) as client:
        outcome = await run_example(client, "get", SPEC, example(), BASE, timeout=0.05)

    assert not outcome.passed
    assert outcome.actual_response == {"error": "timed out"}
