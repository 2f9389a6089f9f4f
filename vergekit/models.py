"""Data models."""

from __future__ import annotations

from typing import Any, Literal

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

from vergekit.config import DEFAULT_CHUNK_SIZE

JobKind = Literal["task", "import", "browse"]
TransferDirection = Literal["upload", "download"]

# Terminal states keyed by job kind
SUCCESS_STATES: dict[str, frozenset[str]] = {
    "task": frozenset(["idle", "complete", "finished"]),
    "import": frozenset(["complete"]),
    "browse": frozenset(["complete"]),
}
ERROR_STATES: dict[str, frozenset[str]] = {
    "task": frozenset(["error", "aborted"]),
    "import": frozenset(["error", "aborted"]),
    "browse": frozenset(["error"]),
}


class AsyncJobHandle(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str | int
    kind: JobKind
    display_name: str = ""

    @field_validator("id")
    @classmethod
    def _id_not_empty(cls, value):
        if isinstance(value, str) and not value.strip():
            raise ValueError("Job id must not be empty")
        return value

    @model_validator(mode="before")
    @classmethod
    def _default_display_name(cls, data: Any) -> Any:
        if isinstance(data, dict) and not data.get("display_name"):
            data = dict(data, display_name=str(data.get("id", "")))
        return data


class JobStatusSnapshot(BaseModel):
    """One read of a job's status."""

    model_config = ConfigDict(frozen=True)

    state: str
    status_info: str | None = None
    result: Any = None
    is_running: bool

    @classmethod
    def from_state(
        cls,
        kind: JobKind,
        state: str,
        status_info: str | None = None,
        result: Any = None,
    ) -> JobStatusSnapshot:
        """Build a snapshot whose running flag is derived from its state."""
        state = (state or "").lower()
        is_running = not (
            state in SUCCESS_STATES[kind] or state in ERROR_STATES[kind]
        )
        return cls(
            state=state,
            status_info=status_info,
            result=result,
            is_running=is_running,
        )


class PollPolicy(BaseModel):
    model_config = ConfigDict(frozen=True)

    timeout_seconds: float = Field(default=0, ge=0)
    polling_interval_seconds: float = Field(default=5, ge=1, le=60)
    wants_result_on_success: bool = False


class TransferSession(BaseModel):
    """Progress of one file transfer."""

    local_path: str
    remote_id: str | int | None = None
    total_bytes: int = Field(ge=0)
    bytes_transferred: int = Field(default=0, ge=0)
    chunk_size: int = Field(default=DEFAULT_CHUNK_SIZE, gt=0)
    direction: TransferDirection

    @property
    def complete(self) -> bool:
        return self.bytes_transferred == self.total_bytes

    @property
    def total_chunks(self) -> int:
        return -(-self.total_bytes // self.chunk_size)

    def advance(self, n: int) -> None:
        if n < 0:
            raise ValueError("Transferred byte count cannot decrease")
        if self.bytes_transferred + n > self.total_bytes:
            raise ValueError(
                f"Transferred {self.bytes_transferred + n} bytes, more than "
                f"the declared total of {self.total_bytes}"
            )
        self.bytes_transferred += n


class RemoteFileRef(BaseModel):
    key: str | int
    name: str
    size: int


class LocalFileRef(BaseModel):
    path: str
    size: int


class DirectoryEntry(BaseModel):
    model_config = ConfigDict(extra="allow")

    name: str
    type: str = "file"
    size: int | None = None
    modified: int | str | None = None

    @property
    def is_dir(self) -> bool:
        return self.type in ("dir", "directory")
