"""Tests for resource path normalization."""

import pytest

from selfapi import normalize_path
from selfapi.core.paths import join_url_path


@pytest.mark.parametrize(
    "path, base, expected",
    [
        (None, None, None),
        ("", None, None),
        ("/", None, None),
        ("//", None, None),
        (".", None, None),
        ("api", None, "/api"),
        ("/api/", None, "/api"),
        ("/api//v1", None, "/api/v1"),
        ("/api/./v1/../v2", None, "/api/v2"),
        ("/../../api", None, "/api"),
        ("/users", "/api", "/api/users"),
        ("users", "/api/", "/api/users"),
        (None, "/api", "/api"),
        ("/:id", "/api/users", "/api/users/:id"),
        ("..", "/api", None),
        ("//double", None, "/double"),
    ],
)
def test_normalize_path(path, base, expected):
    assert normalize_path(path, base) == expected


@pytest.mark.parametrize(
    "path",
    [None, "", "/", "a", "/a/b/", "a//b", "/a/../b", "///x/./y/..", "/:name/*"],
)
def test_normalize_path_is_idempotent(path):
    once = normalize_path(path)
    assert normalize_path(once) == once


def test_normalize_path_does_not_touch_filesystem(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    assert normalize_path("relative/segment") == "/relative/segment"


def test_join_url_path_never_returns_none():
    assert join_url_path(None, None) == "/"
    assert join_url_path("/users", "/api") == "/api/users"
