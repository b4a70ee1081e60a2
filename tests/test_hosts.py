"""Tests for host adapters."""

import httpx
import pytest
from fastapi import FastAPI
from fastapi.routing import APIRoute

from selfapi import HandlerSpec, host_sink, resource
from selfapi.core.hosts import ApiRouteSink, HostSink, UrlRuleSink, VerbSink


class RuleApp:
    def __init__(self):
        self.rules = []

    def add_url_rule(self, rule, endpoint, view_func, methods):
        self.rules.append((rule, endpoint, view_func, tuple(methods)))


class VerbApp:
    def __init__(self):
        self.calls = []

    def use(self, *middleware):
        return None

    def get(self, path, handler):
        self.calls.append(("get", path, handler))

    def post(self, path, handler):
        self.calls.append(("post", path, handler))

    def put(self, path, handler):
        self.calls.append(("put", path, handler))


class AliasApp(VerbApp):
    def del_(self, path, handler):
        self.calls.append(("del_", path, handler))


def handler(*args, **kwargs):
    return None


def test_host_sink_picks_first_matching_adapter():
    assert isinstance(host_sink(FastAPI()), ApiRouteSink)
    assert isinstance(host_sink(RuleApp()), UrlRuleSink)
    assert isinstance(host_sink(VerbApp()), VerbSink)
    assert host_sink(object()) is None
    assert host_sink(None) is None


def test_host_sink_returns_existing_sink():
    sink = VerbSink(VerbApp())
    assert host_sink(sink) is sink


def test_root_path_registers_slash():
    app = VerbApp()
    VerbSink(app).export_handler("get", None, HandlerSpec(handler=handler))
    assert app.calls == [("get", "/", handler)]


def test_verb_sink_uses_delete_alias():
    app = AliasApp()
    VerbSink(app).export_handler("delete", "/items/:id", HandlerSpec(handler=handler))
    assert app.calls == [("del_", "/items/:id", handler)]


def test_verb_sink_without_delete_entry_point_raises():
    sink = VerbSink(VerbApp())
    with pytest.raises(AttributeError, match="cannot register 'delete'"):
        sink.export_handler("delete", "/items", HandlerSpec(handler=handler))


def test_url_rule_sink_converts_placeholders():
    app = RuleApp()
    api = resource(app, "/api")
    api.get("/users/:user_id", handler=handler)
    api.delete("/users/:user_id", handler=handler)
    assert app.rules == [
        ("/api/users/<user_id>", "get:/api/users/<user_id>", handler, ("GET",)),
        ("/api/users/<user_id>", "delete:/api/users/<user_id>", handler, ("DELETE",)),
    ]


def test_api_route_sink_registers_fastapi_routes():
    app = FastAPI()
    api = resource(app, "/api")

    @api.get("/items/:item_id", title="Read item")
    async def read_item(item_id: str):
        return {"item_id": item_id}

    @api.post(title="Create")
    async def create():
        return {}

    routes = {
        (route.path, method)
        for route in app.routes
        if isinstance(route, APIRoute)
        for method in route.methods
    }
    assert routes == {("/api/items/{item_id}", "GET"), ("/api", "POST")}


def test_custom_sink_subclass_is_used_as_is():
    class Recorder(HostSink):
        __slots__ = ()

        def register(self, method, path, handler):
            self.app.append((method, path))

    exported = []
    api = resource(Recorder(exported), "/api")
    api.put("/settings", handler=handler)
    assert exported == [("put", "/api/settings")]


def test_http_clients_are_not_hosts():
    with httpx.Client() as client:
        assert host_sink(client) is None

        app = VerbApp()
        api = resource(app, "/api")
        api.attach(client)
        assert api.parent is None
        api.post(handler=handler)
    assert app.calls == []


def test_verb_host_with_handle_marker_is_accepted():
    class HandleApp(VerbApp):
        use = None

        def handle(self, request):
            return None

    assert isinstance(host_sink(HandleApp()), VerbSink)
    assert VerbSink.accepts(HandleApp())
