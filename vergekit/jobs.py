"""Waiting on server-side asynchronous jobs.

Tasks, VM imports and NAS directory browse requests all run asynchronously on
the server. They differ only in how their status is fetched and which states
are terminal, so a single poll loop serves all of them: callers pass an
``AsyncJobHandle`` naming the kind of job and a ``fetch_status`` function
that returns a ``JobStatusSnapshot`` (or ``None`` once the job is gone).
"""

from __future__ import annotations

import asyncio
import inspect
import logging
import threading
import time
from typing import Any, Awaitable, Callable, Union

from vergekit.errors import JobFailed, JobTimeout, JobVanished, PollCancelled
from vergekit.models import (
    ERROR_STATES,
    AsyncJobHandle,
    JobStatusSnapshot,
    PollPolicy,
)
from vergekit.progress import ProgressReporter, report

logger = logging.getLogger(__package__)

FetchStatus = Callable[[Union[str, int]], Union[JobStatusSnapshot, None]]
AsyncFetchStatus = Callable[
    [Union[str, int]],
    Union[Awaitable[Union[JobStatusSnapshot, None]], JobStatusSnapshot, None],
]

BROWSE_MAX_ATTEMPTS = 30
BROWSE_INTERVAL_SECONDS = 0.5


def is_cancelled(cancel: Any) -> bool:
    return cancel is not None and cancel.is_set()


def percent_elapsed(elapsed: float, timeout_seconds: float) -> float | None:
    """Approximate completion as the fraction of the timeout used up.

    Returns ``None`` when there is no timeout, meaning progress is
    indeterminate.
    """
    if not timeout_seconds:
        return None
    return min(100.0, elapsed / timeout_seconds * 100)


def status_message(snapshot: JobStatusSnapshot) -> str:
    if snapshot.status_info:
        return f"{snapshot.state}: {snapshot.status_info}"
    return snapshot.state


def check_terminal(
    handle: AsyncJobHandle, snapshot: JobStatusSnapshot | None
) -> JobStatusSnapshot | None:
    """Return the snapshot if the job succeeded, ``None`` if it is still
    running, and raise if it vanished or failed.
    """
    if snapshot is None:
        raise JobVanished(handle)
    if snapshot.state in ERROR_STATES[handle.kind]:
        raise JobFailed(handle, snapshot.state, snapshot.status_info)
    if not snapshot.is_running:
        return snapshot
    return None


class _PollState:
    """The poll state machine, shared by the blocking and async loops."""

    def __init__(
        self,
        handle: AsyncJobHandle,
        policy: PollPolicy,
        progress: ProgressReporter | None,
        cancel: Any,
        clock: Callable[[], float],
    ):
        if isinstance(handle.id, str) and not handle.id.strip():
            raise ValueError("Job handle has an empty id")
        self.handle = handle
        self.policy = policy
        self.progress = progress
        self.cancel = cancel
        self.clock = clock
        self.start = clock()
        self.last: JobStatusSnapshot | None = None
        self.ticks = 0

    def first(self, snapshot: JobStatusSnapshot | None):
        self.last = snapshot
        done = check_terminal(self.handle, snapshot)
        if done is not None:
            logger.debug(
                f"{self.handle.kind} {self.handle.id} already {done.state}"
            )
        return done

    def check_cancel(self) -> None:
        if is_cancelled(self.cancel):
            logger.info(
                f"Cancelled wait for {self.handle.kind} {self.handle.id}"
            )
            raise PollCancelled(self.handle)

    def tick(self, snapshot: JobStatusSnapshot | None):
        self.ticks += 1
        elapsed = self.clock() - self.start
        if snapshot is None:
            raise JobVanished(self.handle)
        self.last = snapshot
        logger.debug(
            f"Poll {self.ticks} of {self.handle.kind} {self.handle.id}: "
            f"{snapshot.state} after {elapsed:.1f}s"
        )
        report(
            self.progress,
            percent_elapsed(elapsed, self.policy.timeout_seconds),
            status_message(snapshot),
        )
        done = check_terminal(self.handle, snapshot)
        if done is not None:
            logger.info(
                f"{self.handle.kind.capitalize()} "
                f"'{self.handle.display_name}' finished with state "
                f"{done.state} after {elapsed:.1f}s"
            )
            return done
        timeout = self.policy.timeout_seconds
        if timeout > 0 and elapsed >= timeout:
            raise JobTimeout(self.handle, elapsed, last=snapshot)
        return None


def _default_sleep(cancel: Any) -> Callable[[float], Any]:
    # A threading.Event lets the sleep end as soon as the caller cancels
    if isinstance(cancel, threading.Event):
        return cancel.wait
    return time.sleep


def wait_for_completion(
    handle: AsyncJobHandle,
    fetch_status: FetchStatus,
    policy: PollPolicy | None = None,
    progress: ProgressReporter | None = None,
    cancel: threading.Event | None = None,
    initial: JobStatusSnapshot | None = None,
    sleep: Callable[[float], Any] | None = None,
    clock: Callable[[], float] = time.monotonic,
) -> JobStatusSnapshot:
    """Block until a job reaches a terminal state.

    If ``initial`` (the most recently known status) or an immediate fetch
    shows the job is no longer running, its snapshot is evaluated without
    sleeping. Otherwise the status is fetched every
    ``policy.polling_interval_seconds`` until the job succeeds, fails,
    vanishes, or the timeout elapses.

    Raises ``JobVanished``, ``JobFailed``, ``JobTimeout`` or
    ``PollCancelled``. Nothing is retried.
    """
    if policy is None:
        policy = PollPolicy()
    if sleep is None:
        sleep = _default_sleep(cancel)
    state = _PollState(handle, policy, progress, cancel, clock)
    if initial is not None and initial.is_running:
        state.last = initial
    else:
        snapshot = initial if initial is not None else fetch_status(handle.id)
        done = state.first(snapshot)
        if done is not None:
            return done
    while True:
        state.check_cancel()
        sleep(policy.polling_interval_seconds)
        state.check_cancel()
        done = state.tick(fetch_status(handle.id))
        if done is not None:
            return done


async def async_wait_for_completion(
    handle: AsyncJobHandle,
    fetch_status: AsyncFetchStatus,
    policy: PollPolicy | None = None,
    progress: ProgressReporter | None = None,
    cancel: asyncio.Event | threading.Event | None = None,
    initial: JobStatusSnapshot | None = None,
    sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> JobStatusSnapshot:
    """Non-blocking version of ``wait_for_completion``.

    ``fetch_status`` may be a coroutine function or a plain function. Plain
    functions are run in a worker thread so the event loop is never blocked
    by HTTP calls. Cancelling the awaiting task stops the wait.
    """
    if policy is None:
        policy = PollPolicy()

    async def fetch():
        if inspect.iscoroutinefunction(fetch_status):
            return await fetch_status(handle.id)
        res = await asyncio.to_thread(fetch_status, handle.id)
        if inspect.isawaitable(res):
            res = await res
        return res

    state = _PollState(handle, policy, progress, cancel, clock)
    if initial is not None and initial.is_running:
        state.last = initial
    else:
        snapshot = initial if initial is not None else await fetch()
        done = state.first(snapshot)
        if done is not None:
            return done
    while True:
        state.check_cancel()
        await sleep(policy.polling_interval_seconds)
        state.check_cancel()
        done = state.tick(await fetch())
        if done is not None:
            return done


def wait_for_browse(
    handle: AsyncJobHandle,
    fetch_status: FetchStatus,
    max_attempts: int = BROWSE_MAX_ATTEMPTS,
    interval_seconds: float = BROWSE_INTERVAL_SECONDS,
    progress: ProgressReporter | None = None,
    cancel: threading.Event | None = None,
    sleep: Callable[[float], Any] | None = None,
    clock: Callable[[], float] = time.monotonic,
) -> JobStatusSnapshot:
    """Wait for a directory browse request.

    Browse requests are short lived, so instead of a wall-clock timeout the
    status is fetched at most ``max_attempts`` times, ``interval_seconds``
    apart. A completed browse with no result is a success (empty directory).
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")
    if sleep is None:
        sleep = _default_sleep(cancel)
    start = clock()
    last = None
    for attempt in range(1, max_attempts + 1):
        if is_cancelled(cancel):
            raise PollCancelled(handle)
        if attempt > 1:
            sleep(interval_seconds)
        snapshot = fetch_status(handle.id)
        if snapshot is None:
            raise JobVanished(handle)
        last = snapshot
        report(progress, attempt / max_attempts * 100, snapshot.state)
        done = check_terminal(handle, snapshot)
        if done is not None:
            logger.debug(
                f"Browse {handle.id} finished after {attempt} attempt(s)"
            )
            return done
    raise JobTimeout(handle, clock() - start, last=last)
