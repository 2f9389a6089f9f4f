"""Progress reporting for long running waits and transfers."""

from __future__ import annotations

import logging
import threading
from typing import Protocol

from tqdm import tqdm

logger = logging.getLogger(__package__)


class ProgressReporter(Protocol):
    def update(self, percent: float | None, message: str | None = None): ...

    def close(self): ...


class TqdmProgress:
    """A ``tqdm`` bar usable from several threads at once.

    A ``percent`` of ``None`` means the total is unknown, in which case the
    bar is shown as a spinner counting ticks.
    """

    def __init__(self, desc: str, unit: str = "%", **kwargs):
        self._lock = threading.Lock()
        self._desc = desc
        self._unit = unit
        self._kwargs = kwargs
        self._bar: tqdm | None = None
        self._indeterminate = False

    def _ensure_bar(self, indeterminate: bool) -> tqdm:
        if self._bar is None:
            self._indeterminate = indeterminate
            self._bar = tqdm(
                desc=self._desc,
                total=None if indeterminate else 100,
                unit="tick" if indeterminate else self._unit,
                leave=False,
                **self._kwargs,
            )
        return self._bar

    def update(self, percent: float | None, message: str | None = None):
        with self._lock:
            bar = self._ensure_bar(indeterminate=percent is None)
            if percent is None or self._indeterminate:
                bar.update(1)
            else:
                bar.n = min(100.0, max(0.0, float(percent)))
                bar.refresh()
            if message:
                bar.set_postfix_str(message, refresh=True)

    def close(self):
        with self._lock:
            if self._bar is not None:
                self._bar.close()
                self._bar = None


def report(
    sink: ProgressReporter | None,
    percent: float | None,
    message: str | None = None,
) -> None:
    """Send an update to a progress sink, never letting it raise."""
    if sink is None:
        return
    try:
        sink.update(percent, message)
    except Exception as e:
        logger.debug(f"Progress reporting failed: {e}")


def close(sink: ProgressReporter | None) -> None:
    if sink is None:
        return
    try:
        sink.close()
    except Exception as e:
        logger.debug(f"Closing progress reporter failed: {e}")
