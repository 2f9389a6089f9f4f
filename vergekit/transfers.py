"""Uploading and downloading files.

Uploads create a catalog entry first and then send the content as a series
of positioned writes, one chunk at a time in increasing offset order, so a
file never has to be held in memory. Downloads are a single streamed
request written straight to disk.
"""

from __future__ import annotations

import asyncio
import logging
import os
import threading

import requests

from vergekit import files
from vergekit.config import DEFAULT_CHUNK_SIZE
from vergekit.connection import Connection
from vergekit.errors import (
    ChunkWriteFailed,
    DestinationDirectoryMissing,
    DestinationExists,
    EntryCreationFailed,
    TransferCancelled,
    TransferError,
    VergeError,
)
from vergekit.models import LocalFileRef, RemoteFileRef, TransferSession
from vergekit.progress import ProgressReporter, report

logger = logging.getLogger(__package__)

DOWNLOAD_BLOCK_SIZE = 1024 * 1024


def _check_cancel(cancel: threading.Event | None, what: str) -> None:
    if cancel is not None and cancel.is_set():
        raise TransferCancelled(f"{what} cancelled")


def upload_file(
    conn: Connection,
    local_path: str,
    name: str | None = None,
    description: str | None = None,
    tier: int | None = None,
    chunk_size: int = DEFAULT_CHUNK_SIZE,
    progress: ProgressReporter | None = None,
    cancel: threading.Event | None = None,
) -> RemoteFileRef:
    """Upload a local file to the media catalog.

    A failed chunk write aborts the upload without retrying. The catalog
    entry created for the upload is left behind in that case and must be
    removed by the caller.
    """
    if chunk_size <= 0:
        raise ValueError("Chunk size must be positive")
    local_path = os.path.expanduser(local_path)
    if not os.path.isfile(local_path):
        raise FileNotFoundError(f"No such file: '{local_path}'")
    if name is None:
        name = os.path.basename(local_path)
    total = os.path.getsize(local_path)
    _check_cancel(cancel, "Upload")
    logger.info(f"Uploading {local_path} ({total} bytes) as {name}")
    key = files.create_entry(
        conn, name=name, size=total, description=description, tier=tier
    )
    if key is None or key == "":
        raise EntryCreationFailed(
            f"Server returned no key when creating file entry '{name}'"
        )
    session = TransferSession(
        local_path=local_path,
        remote_id=key,
        total_bytes=total,
        chunk_size=chunk_size,
        direction="upload",
    )
    total_chunks = session.total_chunks
    chunks_done = 0
    try:
        with open(local_path, "rb") as f:
            while session.bytes_transferred < total:
                _check_cancel(cancel, "Upload")
                offset = session.bytes_transferred
                data = f.read(min(chunk_size, total - offset))
                if not data:
                    break
                try:
                    files.write_chunk(conn, key, offset, data)
                except (VergeError, requests.RequestException) as e:
                    raise ChunkWriteFailed(key, offset, str(e)) from e
                session.advance(len(data))
                chunks_done += 1
                report(
                    progress,
                    round(chunks_done / total_chunks * 100),
                    f"{session.bytes_transferred}/{total} bytes",
                )
    except TransferError:
        logger.warning(
            f"Upload of {local_path} aborted after "
            f"{session.bytes_transferred} bytes; file {key} is incomplete"
        )
        raise
    if not session.complete:
        raise TransferError(
            f"{local_path} ended after {session.bytes_transferred} of "
            f"{total} bytes; file {key} is incomplete"
        )
    logger.info(f"Uploaded {name} as file {key}")
    return RemoteFileRef(key=key, name=name, size=total)


def resolve_destination(
    conn: Connection,
    remote_id: int | str,
    destination: str,
    filename: str | None = None,
) -> str:
    """Turn a destination directory into a file path inside it, named after
    the remote file.
    """
    destination = os.path.abspath(os.path.expanduser(destination))
    if not os.path.isdir(destination):
        return destination
    if filename is None:
        record = files.get(conn, remote_id)
        if record is None:
            raise TransferError(f"File {remote_id} not found")
        filename = record.get("name") or ""
    name = os.path.basename(filename.replace("\\", "/"))
    if name in ("", ".", ".."):
        raise TransferError(
            f"File {remote_id} has no usable name: {filename!r}"
        )
    return os.path.join(destination, name)


def check_destination(destination: str, overwrite: bool = False) -> None:
    parent = os.path.dirname(os.path.abspath(destination))
    if not os.path.isdir(parent):
        raise DestinationDirectoryMissing(parent)
    if os.path.exists(destination) and not overwrite:
        raise DestinationExists(destination)


def download_file(
    conn: Connection,
    remote_id: int | str,
    destination: str,
    overwrite: bool = False,
    filename: str | None = None,
    progress: ProgressReporter | None = None,
    cancel: threading.Event | None = None,
) -> LocalFileRef:
    """Download a file from the media catalog to a local path.

    If ``destination`` is an existing directory the file is saved inside it.
    The destination is checked before any request is made. A failed
    download leaves the partially written file in place.
    """
    destination = os.path.expanduser(destination)
    if not os.path.isdir(destination):
        # Fail fast before touching the network
        check_destination(destination, overwrite=overwrite)
    destination = resolve_destination(
        conn, remote_id, destination, filename=filename
    )
    check_destination(destination, overwrite=overwrite)
    _check_cancel(cancel, "Download")
    logger.info(f"Downloading file {remote_id} to {destination}")
    resp = files.open_download(
        conn, remote_id, filename=filename or os.path.basename(destination)
    )
    written = 0
    with resp:
        length = resp.headers.get("Content-Length")
        session = None
        if length is not None and length.isdigit():
            session = TransferSession(
                local_path=destination,
                remote_id=remote_id,
                total_bytes=int(length),
                direction="download",
            )
        try:
            with open(destination, "wb") as f:
                for block in resp.iter_content(chunk_size=DOWNLOAD_BLOCK_SIZE):
                    _check_cancel(cancel, "Download")
                    if not block:
                        continue
                    f.write(block)
                    written += len(block)
                    if session is not None and written <= session.total_bytes:
                        session.advance(len(block))
                        percent = (
                            session.bytes_transferred
                            / max(session.total_bytes, 1)
                            * 100
                        )
                    else:
                        percent = None
                    report(progress, percent, f"{written} bytes")
        except requests.RequestException as e:
            logger.warning(
                f"Download of file {remote_id} failed after {written} bytes; "
                f"partial output left at {destination}"
            )
            raise TransferError(
                f"Download of file {remote_id} failed: {e}"
            ) from e
    logger.info(f"Saved {written} bytes to {destination}")
    return LocalFileRef(path=destination, size=written)


async def async_upload_file(conn: Connection, local_path: str, **kwargs):
    """Run ``upload_file`` in a worker thread."""
    return await asyncio.to_thread(upload_file, conn, local_path, **kwargs)


async def async_download_file(
    conn: Connection, remote_id: int | str, destination: str, **kwargs
):
    """Run ``download_file`` in a worker thread."""
    return await asyncio.to_thread(
        download_file, conn, remote_id, destination, **kwargs
    )
