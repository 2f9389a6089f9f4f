"""Importing virtual machines."""

from __future__ import annotations

import logging
import threading

from vergekit.connection import Connection
from vergekit.errors import ApiError, VergeError
from vergekit.jobs import wait_for_completion
from vergekit.models import AsyncJobHandle, JobStatusSnapshot, PollPolicy
from vergekit.progress import ProgressReporter

logger = logging.getLogger(__package__)

IMPORT_FIELDS = "$key,name,status,status_info,vm"
VM_FIELDS = "$key,name,description,machine,cpu_cores,ram,created"


def start_import(
    conn: Connection,
    file_key: int | str,
    name: str | None = None,
    preserve_macs: bool = True,
    tier: int | None = None,
) -> int | str:
    """Start importing a VM from an uploaded file (OVA, OVF, VMDK, ...) and
    return the key of the import job.
    """
    body = {
        "file": file_key,
        "importing": True,
        "preserve_macs": preserve_macs,
    }
    if name is not None:
        body["name"] = name
    if tier is not None:
        body["preferred_tier"] = str(tier)
    resp = conn.post("/vm_imports", json=body)
    key = resp.get("$key") if isinstance(resp, dict) else None
    if key is None:
        raise VergeError(
            f"Server returned no key for import of file {file_key}"
        )
    logger.info(f"Started VM import {key} from file {file_key}")
    return key


def get_import(conn: Connection, key: int | str) -> dict | None:
    try:
        resp = conn.get(f"/vm_imports/{key}", params={"fields": IMPORT_FIELDS})
    except ApiError as e:
        if e.status_code == 404:
            return None
        raise
    return resp or None


def get_import_status(
    conn: Connection, key: int | str
) -> JobStatusSnapshot | None:
    job = get_import(conn, key)
    if job is None:
        return None
    return JobStatusSnapshot.from_state(
        "import",
        job.get("status") or "initializing",
        status_info=job.get("status_info") or None,
        result=job.get("vm"),
    )


def get_vm(conn: Connection, key: int | str) -> dict:
    return conn.get(f"/vms/{key}", params={"fields": VM_FIELDS})


def import_vm(
    conn: Connection,
    file_key: int | str,
    name: str | None = None,
    preserve_macs: bool = True,
    tier: int | None = None,
    policy: PollPolicy | None = None,
    progress: ProgressReporter | None = None,
    cancel: threading.Event | None = None,
    **kwargs,
) -> JobStatusSnapshot | dict:
    """Import a VM and wait for the import to finish.

    Returns the imported VM record when ``policy.wants_result_on_success``,
    otherwise the final import status, whose ``result`` is the VM key.
    """
    if policy is None:
        policy = PollPolicy()
    key = start_import(
        conn, file_key, name=name, preserve_macs=preserve_macs, tier=tier
    )
    handle = AsyncJobHandle(
        id=key, kind="import", display_name=name or f"import {key}"
    )
    snapshot = wait_for_completion(
        handle,
        lambda k: get_import_status(conn, k),
        policy=policy,
        progress=progress,
        cancel=cancel,
        **kwargs,
    )
    if policy.wants_result_on_success and snapshot.result is not None:
        return get_vm(conn, snapshot.result)
    return snapshot
