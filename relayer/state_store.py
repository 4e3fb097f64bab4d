"""
Relay Checkpoint IO
File: state_store.py

Purpose: Persist the watcher cursor together with the dedup map so a
restart resumes without reprocessing confirmed commitments.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from core.schemas.bridge import ProcessedCommitment
from core.schemas.canonical import dumps_canonical
from core.schemas.versioning import (
    SCHEMA_VERSION,
    UnsupportedSchemaVersionError,
    assert_supported_schema_version,
)

logger = logging.getLogger(__name__)


class CheckpointIOError(Exception):
    """Error during checkpoint IO operations."""
    pass


class RelayCheckpoint(BaseModel):
    """Snapshot of relay progress."""

    model_config = ConfigDict(extra="forbid")

    schema_version: str = SCHEMA_VERSION
    cursor: int = Field(default=0, ge=0, description="Last-seen source event timestamp (ms)")
    records: list[ProcessedCommitment] = Field(default_factory=list)


def save_checkpoint(checkpoint: RelayCheckpoint, path: str | Path) -> Path:
    """
    Write a checkpoint as canonical JSON.

    The file is written to a temp file in the same directory and renamed
    over the target, so readers never see a partial checkpoint.
    """
    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    data = dumps_canonical(checkpoint).encode("utf-8")

    fd, tmp_name = tempfile.mkstemp(prefix=f".{out_path.name}.", dir=out_path.parent)
    try:
        with os.fdopen(fd, "wb") as f:
            f.write(data)
            f.flush()
            os.fsync(f.fileno())
        os.replace(tmp_name, out_path)
    except OSError as e:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise CheckpointIOError(f"Failed to write checkpoint {out_path}: {e}") from e

    logger.debug(f"Checkpoint saved: {len(checkpoint.records)} records, cursor {checkpoint.cursor}")
    return out_path


def load_checkpoint(path: str | Path) -> Optional[RelayCheckpoint]:
    """
    Load a checkpoint.

    Returns:
        The checkpoint, or None when no file exists yet

    Raises:
        CheckpointIOError: If the file is unreadable, malformed, or has an
            unsupported schema version
    """
    in_path = Path(path)
    if not in_path.exists():
        return None

    try:
        data = json.loads(in_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        raise CheckpointIOError(f"Unreadable checkpoint {in_path}: {e}") from e

    if not isinstance(data, dict):
        raise CheckpointIOError(f"Checkpoint {in_path} is not a JSON object")

    try:
        assert_supported_schema_version(str(data.get("schema_version", "")))
        return RelayCheckpoint.model_validate(data)
    except UnsupportedSchemaVersionError as e:
        raise CheckpointIOError(str(e)) from e
    except ValidationError as e:
        raise CheckpointIOError(f"Invalid checkpoint {in_path}: {e}") from e


__all__ = [
    "CheckpointIOError",
    "RelayCheckpoint",
    "save_checkpoint",
    "load_checkpoint",
]
