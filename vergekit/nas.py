"""Browsing files on NAS volumes."""

from __future__ import annotations

import json
import threading

from pydantic import ValidationError

from vergekit.connection import Connection
from vergekit.errors import ApiError, BrowseResultInvalid, VergeError
from vergekit.jobs import (
    BROWSE_INTERVAL_SECONDS,
    BROWSE_MAX_ATTEMPTS,
    wait_for_browse,
)
from vergekit.models import AsyncJobHandle, DirectoryEntry, JobStatusSnapshot

BROWSE_LIMIT = 1000


def browse(
    conn: Connection, volume_key: int | str, path: str = "/"
) -> int | str:
    """Ask the server to list a directory and return the browse job key."""
    resp = conn.post(
        "/volume_browser",
        json={
            "volume": volume_key,
            "query": "get-dir",
            "params": {"dir": normalize_path(path), "limit": BROWSE_LIMIT},
        },
    )
    key = resp.get("$key") if isinstance(resp, dict) else None
    if key is None:
        raise VergeError(
            f"Server returned no key browsing volume {volume_key}"
        )
    return key


def normalize_path(path: str) -> str:
    return "/" + path.strip().strip("/")


def get_browse_status(
    conn: Connection, key: int | str
) -> JobStatusSnapshot | None:
    try:
        resp = conn.get(
            f"/volume_browser/{key}", params={"fields": "status,result"}
        )
    except ApiError as e:
        if e.status_code == 404:
            return None
        raise
    if not resp:
        return None
    result = resp.get("result")
    state = resp.get("status") or "pending"
    info = None
    if state == "error" and isinstance(result, str):
        info = result
    return JobStatusSnapshot.from_state(
        "browse", state, status_info=info, result=result
    )


def parse_listing(result, key=None) -> list[DirectoryEntry]:
    """Convert a browse result into directory entries.

    The result may be a list, a JSON encoded string, or empty when the
    directory has no entries. Anything else raises ``BrowseResultInvalid``
    naming the browse ``key``.
    """
    if result is None or result == "":
        return []
    if isinstance(result, str):
        try:
            result = json.loads(result)
        except json.JSONDecodeError as e:
            raise BrowseResultInvalid(key, f"not JSON ({e})") from e
    if isinstance(result, dict):
        result = result.get("entries") or result.get("files") or []
    if not isinstance(result, list):
        raise BrowseResultInvalid(
            key, f"expected a list, got {type(result).__name__}"
        )
    entries = []
    for item in result:
        if not isinstance(item, dict):
            raise BrowseResultInvalid(
                key, f"entry is not an object: {item!r}"
            )
        item = dict(item)
        if "modified" not in item:
            item["modified"] = item.pop("date", None) or item.pop(
                "mtime", None
            )
        try:
            entries.append(DirectoryEntry.model_validate(item))
        except ValidationError as e:
            raise BrowseResultInvalid(key, str(e)) from e
    return entries


def list_volume_files(
    conn: Connection,
    volume_key: int | str,
    path: str = "/",
    max_attempts: int = BROWSE_MAX_ATTEMPTS,
    interval_seconds: float = BROWSE_INTERVAL_SECONDS,
    cancel: threading.Event | None = None,
) -> list[DirectoryEntry]:
    """List the files in a directory of a NAS volume."""
    key = browse(conn, volume_key, path=path)
    handle = AsyncJobHandle(
        id=key, kind="browse", display_name=f"{volume_key}:{path}"
    )
    snapshot = wait_for_browse(
        handle,
        lambda k: get_browse_status(conn, k),
        max_attempts=max_attempts,
        interval_seconds=interval_seconds,
        cancel=cancel,
    )
    return parse_listing(snapshot.result, key=key)
