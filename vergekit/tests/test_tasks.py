"""Tests for the ``tasks`` module."""

import pytest

import vergekit
from vergekit.errors import JobTimeout, JobVanished
from vergekit.models import PollPolicy


def test_to_snapshot():
    snap = vergekit.tasks.to_snapshot(
        {"$key": 1, "status": "running", "is_running": True, "progress": 40}
    )
    assert snap.state == "running"
    assert snap.is_running
    assert snap.status_info == "40%"
    snap = vergekit.tasks.to_snapshot({"$key": 1, "is_running": False})
    assert snap.state == "idle"
    assert not snap.is_running


def test_wait_idle_task(conn):
    conn.routes[("get", "/tasks/5")] = {
        "$key": 5,
        "name": "Nightly backup",
        "status": "idle",
        "is_running": False,
    }
    snap = vergekit.tasks.wait(conn, 5)
    assert snap.state == "idle"
    assert len(conn.calls) == 1


def test_wait_running_task(conn, clock, respond_with):
    conn.routes[("get", "/tasks/5")] = respond_with(
        {"$key": 5, "name": "Sync", "status": "running", "is_running": True},
        {"$key": 5, "name": "Sync", "status": "running", "is_running": True},
        {"$key": 5, "name": "Sync", "status": "idle", "is_running": False},
        {"$key": 5, "name": "Sync", "status": "idle", "is_running": False},
    )
    task = vergekit.tasks.wait(
        conn,
        5,
        policy=PollPolicy(
            polling_interval_seconds=2, wants_result_on_success=True
        ),
        sleep=clock.sleep,
        clock=clock,
    )
    assert task["name"] == "Sync"
    assert clock.sleeps == [2, 2]


def test_wait_timeout(conn, clock):
    conn.routes[("get", "/tasks/7")] = {
        "$key": 7,
        "status": "running",
        "is_running": True,
    }
    with pytest.raises(JobTimeout):
        vergekit.tasks.wait(
            conn,
            7,
            policy=PollPolicy(timeout_seconds=10, polling_interval_seconds=2),
            sleep=clock.sleep,
            clock=clock,
        )
    assert 10 <= clock.now < 12


def test_wait_missing_task(conn, clock):
    with pytest.raises(JobVanished):
        vergekit.tasks.wait(conn, 99, sleep=clock.sleep, clock=clock)
