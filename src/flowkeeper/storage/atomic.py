"""Atomic file replacement."""

import os
import tempfile
from pathlib import Path
from typing import Optional, Union


def atomic_write_text(path: Union[str, Path], text: str) -> None:
    """Write ``text`` to ``path`` atomically.

    The write is performed via a temporary file in the destination directory
    followed by an ``os.replace`` once the contents are flushed and fsynced.
    A crash mid-write leaves the previous file untouched.

    Raises:
        OSError: If the directory cannot be created or the write fails
    """
    destination = Path(path).expanduser()
    destination.parent.mkdir(parents=True, exist_ok=True)

    fd: Optional[int] = None
    tmp_path: Optional[str] = None
    try:
        fd, tmp_path = tempfile.mkstemp(
            dir=str(destination.parent),
            prefix=destination.name,
            suffix=".tmp",
            text=True,
        )
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            fd = None  # Ownership transferred to file object
            handle.write(text)
            handle.flush()
            os.fsync(handle.fileno())

        os.replace(tmp_path, destination)
        tmp_path = None
    finally:
        if fd is not None:
            os.close(fd)
        if tmp_path is not None:
            try:
                os.unlink(tmp_path)
            except FileNotFoundError:
                pass
