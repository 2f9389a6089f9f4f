"""Files in the VergeOS media catalog."""

from __future__ import annotations

import requests

from vergekit.connection import Connection
from vergekit.errors import ApiError

FILE_FIELDS = (
    "$key,name,description,type,filesize,allocated_bytes,preferred_tier,"
    "modified"
)
TIERS = (1, 2, 3, 4, 5)


def get(conn: Connection, key: int | str) -> dict | None:
    try:
        resp = conn.get(f"/files/{key}", params={"fields": FILE_FIELDS})
    except ApiError as e:
        if e.status_code == 404:
            return None
        raise
    return resp or None


def list_files(conn: Connection, name: str | None = None) -> list[dict]:
    """List catalog files, optionally only those whose name contains
    ``name``.
    """
    params = {"fields": FILE_FIELDS, "sort": "+name"}
    records = conn.get("/files", params=params) or []
    if name is not None:
        records = [r for r in records if name in (r.get("name") or "")]
    return records


def create_entry(
    conn: Connection,
    name: str,
    size: int,
    description: str | None = None,
    tier: int | None = None,
) -> str | int | None:
    """Create an empty catalog entry for a file about to be uploaded and
    return its key.
    """
    body = {"name": name, "filesize": size, "allocated_bytes": size}
    if description is not None:
        body["description"] = description
    if tier is not None:
        if tier not in TIERS:
            raise ValueError(f"Tier must be one of {TIERS}")
        body["preferred_tier"] = str(tier)
    resp = conn.post("/files", json=body)
    if not isinstance(resp, dict):
        return None
    return resp.get("$key")


def write_chunk(
    conn: Connection, key: int | str, offset: int, data: bytes
) -> None:
    """Write bytes into an uploaded file at a given position."""
    conn.put(
        f"/files/{key}",
        params={"filepos": offset},
        data=data,
        headers={"Content-Type": "application/octet-stream"},
        as_json=False,
    )


def open_download(
    conn: Connection, key: int | str, filename: str | None = None
) -> requests.Response:
    """Start a streamed download of a file's content.

    The caller is responsible for closing the response.
    """
    params = {"download": 1}
    if filename is not None:
        params["filename"] = filename
    return conn.get(
        f"/files/{key}", params=params, as_json=False, stream=True
    )


def delete(conn: Connection, key: int | str) -> None:
    conn.delete(f"/files/{key}", as_json=False)
