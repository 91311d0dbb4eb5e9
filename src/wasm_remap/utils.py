"""Shared utilities for wasm-remap."""

import contextlib
import os
from pathlib import Path


def atomic_write_bytes(filepath: Path, data: bytes) -> None:
    """Write bytes to a file atomically so a crash never leaves a truncated binary."""
    tmp_path = filepath.with_suffix(filepath.suffix + ".tmp")
    try:
        tmp_path.write_bytes(data)
        os.replace(tmp_path, filepath)
    except BaseException:
        with contextlib.suppress(OSError):
            tmp_path.unlink()
        raise
