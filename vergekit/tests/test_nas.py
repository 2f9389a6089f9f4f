"""Tests for the ``nas`` module."""

import json

import pytest

import vergekit
from vergekit.errors import BrowseResultInvalid, VergeError
from vergekit.nas import normalize_path, parse_listing


def test_parse_listing():
    assert parse_listing(None) == []
    assert parse_listing("") == []
    entries = parse_listing(
        [
            {"name": "docs", "type": "dir", "date": 1700000000},
            {"name": "a.txt", "type": "file", "size": 12},
        ]
    )
    assert [e.name for e in entries] == ["docs", "a.txt"]
    assert entries[0].is_dir
    assert entries[0].modified == 1700000000
    assert not entries[1].is_dir
    assert entries[1].size == 12


def test_parse_listing_json_string():
    entries = parse_listing(json.dumps([{"name": "b.bin", "size": 3}]))
    assert entries[0].name == "b.bin"
    assert entries[0].type == "file"


def test_normalize_path():
    assert normalize_path("/") == "/"
    assert normalize_path("") == "/"
    assert normalize_path("data/logs/") == "/data/logs"


def test_list_volume_files(conn, respond_with):
    conn.routes[("post", "/volume_browser")] = {"$key": "b1"}
    conn.routes[("get", "/volume_browser/b1")] = respond_with(
        {"status": "pending"},
        {
            "status": "complete",
            "result": json.dumps([{"name": "x.iso", "size": 100}]),
        },
    )
    entries = vergekit.nas.list_volume_files(
        conn, 3, path="isos", interval_seconds=0.01
    )
    assert [e.name for e in entries] == ["x.iso"]
    body = conn.calls[0][2]["json"]
    assert body["volume"] == 3
    assert body["query"] == "get-dir"
    assert body["params"]["dir"] == "/isos"


def test_list_empty_directory(conn):
    conn.routes[("post", "/volume_browser")] = {"$key": "b1"}
    conn.routes[("get", "/volume_browser/b1")] = {
        "status": "complete",
        "result": None,
    }
    assert vergekit.nas.list_volume_files(conn, 3) == []


@pytest.mark.parametrize(
    "result",
    ["no entries", 42, ["a.txt"], [{"size": 3}], '{"entries": "x"}'],
)
def test_parse_listing_unreadable(result):
    with pytest.raises(BrowseResultInvalid, match="browse b1"):
        parse_listing(result, key="b1")


def test_list_volume_files_non_json_result(conn):
    conn.routes[("post", "/volume_browser")] = {"$key": "b1"}
    conn.routes[("get", "/volume_browser/b1")] = {
        "status": "complete",
        "result": "no entries",
    }
    with pytest.raises(VergeError, match="b1"):
        vergekit.nas.list_volume_files(conn, 3, "/")
