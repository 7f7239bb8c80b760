"""Writing the text report of a sorting run."""

from __future__ import annotations

import os
from collections.abc import Sequence
from dataclasses import dataclass


@dataclass
class DuplicateInfo:
    """A pair of duplicate files and why one of them was discarded."""

    kept_file: str
    discarded_file: str
    reason: str


def generate_report(
    report_path: str | os.PathLike,
    duplicates: Sequence[DuplicateInfo],
    copied_files_count: int,
    processed_files_count: int,
    files_to_copy_count: int,
    pixel_hash_unsupported_count: int,
) -> None:
    """Write the summary report to ``report_path``, creating its directory.

    ``files_to_copy_count`` is accepted for completeness; it equals the copied
    count and is not printed separately.
    """
    report_dir = os.path.dirname(os.fspath(report_path)) or "."
    try:
        os.makedirs(report_dir, mode=0o755, exist_ok=True)
    except OSError as exc:
        raise OSError(
            f"failed to create directory for report '{report_dir}': {exc}"
        ) from exc

    lines = [
        "Photo Sorting Report\n",
        "====================\n\n",
        "Summary:\n",
        f"  - Total files scanned: {processed_files_count}\n",
        f"  - Files successfully copied: {copied_files_count}\n",
        f"  - Duplicate files found and discarded/skipped: {len(duplicates)}\n",
        "  - Image files where pixel hashing was not supported "
        f"(fallback to file hash): {pixel_hash_unsupported_count}\n",
    ]
    if duplicates:
        lines.append("\nDuplicate Details:\n")
        for dup in duplicates:
            lines.append(f"  - Kept: {dup.kept_file}\n")
            lines.append(f"    Discarded: {dup.discarded_file}\n")
            lines.append(f"    Reason: {dup.reason}\n\n")

    try:
        with open(report_path, "w", encoding="utf-8") as report:
            report.writelines(lines)
    except OSError as exc:
        raise OSError(
            f"failed to create report file '{os.fspath(report_path)}': {exc}"
        ) from exc

    print(f"Report generated at {os.fspath(report_path)}")