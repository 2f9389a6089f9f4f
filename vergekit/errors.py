"""Exceptions."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from vergekit.models import AsyncJobHandle, JobStatusSnapshot


class VergeError(Exception):
    pass


class ApiError(VergeError):
    """The API answered with an HTTP error status."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        super().__init__(f"{status_code}: {message}")


class PollError(VergeError):
    """Base class for errors raised while waiting on a job."""

    def __init__(self, handle: AsyncJobHandle, message: str):
        self.handle = handle
        super().__init__(message)


class JobTimeout(PollError):
    def __init__(
        self,
        handle: AsyncJobHandle,
        elapsed: float,
        last: JobStatusSnapshot | None = None,
    ):
        self.elapsed = elapsed
        self.last = last
        super().__init__(
            handle,
            f"Timed out after {elapsed:.1f} seconds waiting for "
            f"{handle.kind} '{handle.display_name}'",
        )


class JobFailed(PollError):
    def __init__(
        self, handle: AsyncJobHandle, state: str, status_info: str | None
    ):
        self.state = state
        self.status_info = status_info
        msg = f"{handle.kind.capitalize()} '{handle.display_name}' {state}"
        if status_info:
            msg += f": {status_info}"
        super().__init__(handle, msg)


class JobVanished(PollError):
    def __init__(self, handle: AsyncJobHandle):
        super().__init__(
            handle,
            f"{handle.kind.capitalize()} '{handle.display_name}' "
            f"(key {handle.id}) no longer exists",
        )


class PollCancelled(PollError):
    def __init__(self, handle: AsyncJobHandle):
        super().__init__(
            handle,
            f"Stopped waiting for {handle.kind} '{handle.display_name}'",
        )


class TransferError(VergeError):
    pass


class EntryCreationFailed(TransferError):
    pass


class ChunkWriteFailed(TransferError):
    def __init__(self, remote_id: str | int, offset: int, reason: str):
        self.remote_id = remote_id
        self.offset = offset
        super().__init__(
            f"Failed to write chunk at offset {offset} to file {remote_id}: "
            f"{reason}"
        )


class DestinationExists(TransferError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(
            f"Destination '{path}' already exists; use overwrite to replace it"
        )


class DestinationDirectoryMissing(TransferError):
    def __init__(self, path: str):
        self.path = path
        super().__init__(f"Destination directory '{path}' does not exist")


class TransferCancelled(TransferError):
    pass


class BrowseResultInvalid(VergeError):
    def __init__(self, key: str | int | None, reason: str):
        self.key = key
        super().__init__(
            f"Unreadable directory listing from browse {key}: {reason}"
        )
