"""
clouddetect/ip_ranges/snapshot.py - Subnet snapshot file

The snapshot is the last successfully fetched record list, shared between
processes through a common path. Its timestamp is the file's mtime; the body
carries only the records::

    {"cache": [{"providerName": "Amazon Web Services", "region": "us-east-1", "subnet": "3.5.140.0/22"}, ...]}

동시성 보호:
    - 쓰기: temp file + ``os.replace`` under a ``filelock`` so readers never see
      a partial body and concurrent writers from other processes are serialised
    - 읽기: no lock (a reader sees either the old or the new file)
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from collections.abc import Sequence

from filelock import FileLock

from clouddetect.exceptions import DiskCacheExpiredError, SnapshotError

from .types import SubnetRecord

logger = logging.getLogger(__name__)

WRITE_LOCK_SUFFIX = ".write.lock"

# 파일 락 타임아웃 (초)
FILE_LOCK_TIMEOUT = 10


def encode_records(records: Sequence[SubnetRecord]) -> dict:
    return {"cache": [r.to_dict() for r in records]}


def decode_records(data: object, path: str = "") -> list[SubnetRecord]:
    """Parse a snapshot body

    Raises:
        SnapshotError: Body is not a valid snapshot
    """
    if not isinstance(data, dict) or not isinstance(data.get("cache"), list):
        raise SnapshotError(path, "missing 'cache' list")

    records: list[SubnetRecord] = []
    for i, item in enumerate(data["cache"]):
        if not isinstance(item, dict):
            raise SnapshotError(path, f"entry {i} is not an object")
        try:
            records.append(SubnetRecord.from_dict(item))
        except (KeyError, ValueError) as e:
            raise SnapshotError(path, f"entry {i} is invalid", cause=e) from e
    return records


def load_snapshot(path: str, min_mod_time: float = 0.0) -> tuple[list[SubnetRecord], float]:
    """Load the snapshot at ``path``

    Args:
        path: Snapshot file
        min_mod_time: Reject files modified before this epoch time (0 accepts anything)

    Returns:
        (records, mtime) - mtime is the data timestamp for the caller

    Raises:
        FileNotFoundError / OSError: File absent or unreadable
        DiskCacheExpiredError: File is older than ``min_mod_time``
        SnapshotError: Body could not be parsed
    """
    with open(path, encoding="utf-8") as f:
        mtime = os.fstat(f.fileno()).st_mtime
        if min_mod_time > mtime:
            raise DiskCacheExpiredError(path, mtime, min_mod_time)

        try:
            data = json.load(f)
        except json.JSONDecodeError as e:
            raise SnapshotError(path, "not valid JSON", cause=e) from e

    records = decode_records(data, path)
    logger.debug("Loaded %d records from %s", len(records), path)
    return records, mtime


def save_snapshot(path: str, records: Sequence[SubnetRecord]) -> None:
    """Write ``records`` to ``path`` atomically

    Raises:
        OSError: Directory or file could not be written
        filelock.Timeout: Another writer held the write lock too long
    """
    directory = os.path.dirname(os.path.abspath(path))
    os.makedirs(directory, exist_ok=True)
    body = encode_records(records)

    with FileLock(path + WRITE_LOCK_SUFFIX, timeout=FILE_LOCK_TIMEOUT):
        fd, tmp_path = tempfile.mkstemp(prefix=".clouddetect-", suffix=".tmp", dir=directory)
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(body, f, ensure_ascii=False)
            os.replace(tmp_path, path)
        except BaseException:
            try:
                os.remove(tmp_path)
            except OSError:
                pass
            raise

    logger.debug("Saved %d records to %s", len(records), path)
