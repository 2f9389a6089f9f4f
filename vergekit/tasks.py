"""Tasks."""

from __future__ import annotations

import threading

from vergekit.connection import Connection
from vergekit.errors import ApiError
from vergekit.jobs import wait_for_completion
from vergekit.models import AsyncJobHandle, JobStatusSnapshot, PollPolicy
from vergekit.progress import ProgressReporter

TASK_FIELDS = "$key,name,status,is_running,progress"


def get(conn: Connection, key: int | str) -> dict | None:
    """Get a task record, or ``None`` if it doesn't exist."""
    try:
        resp = conn.get(f"/tasks/{key}", params={"fields": TASK_FIELDS})
    except ApiError as e:
        if e.status_code == 404:
            return None
        raise
    return resp or None


def to_snapshot(task: dict) -> JobStatusSnapshot:
    state = str(task.get("status") or "").lower()
    is_running = task.get("is_running")
    if is_running is None:
        is_running = state == "running"
    if not state:
        state = "running" if is_running else "idle"
    info = task.get("progress")
    return JobStatusSnapshot(
        state=state,
        status_info=None if info is None else f"{info}%",
        is_running=bool(is_running),
    )


def get_status(conn: Connection, key: int | str) -> JobStatusSnapshot | None:
    task = get(conn, key)
    if task is None:
        return None
    return to_snapshot(task)


def wait(
    conn: Connection,
    key: int | str,
    policy: PollPolicy | None = None,
    progress: ProgressReporter | None = None,
    cancel: threading.Event | None = None,
    **kwargs,
) -> dict | JobStatusSnapshot:
    """Wait for a task to stop running.

    Returns the full task record when ``policy.wants_result_on_success``,
    otherwise the final status snapshot. Extra keyword arguments are passed
    to ``wait_for_completion``.
    """
    if policy is None:
        policy = PollPolicy()
    task = get(conn, key)
    name = str(key) if task is None else task.get("name") or str(key)
    handle = AsyncJobHandle(id=key, kind="task", display_name=name)
    snapshot = wait_for_completion(
        handle,
        lambda k: get_status(conn, k),
        policy=policy,
        progress=progress,
        cancel=cancel,
        initial=None if task is None else to_snapshot(task),
        **kwargs,
    )
    if policy.wants_result_on_success:
        return get(conn, key) or {}
    return snapshot
