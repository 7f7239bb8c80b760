"""Copying files into the sorted tree."""

from __future__ import annotations

import os
import shutil


def copy_file(src_path: str | os.PathLike, dest_path: str | os.PathLike) -> None:
    """Copy ``src_path`` to ``dest_path``, creating the destination directory first.

    The destination is overwritten if it exists and is synced to disk after copying.
    Any failure is raised as :class:`OSError`.
    """
    dest_dir = os.path.dirname(os.fspath(dest_path)) or "."
    os.makedirs(dest_dir, mode=0o755, exist_ok=True)

    with open(src_path, "rb") as source, open(dest_path, "wb") as destination:
        shutil.copyfileobj(source, destination)
        destination.flush()
        os.fsync(destination.fileno())