"""Sorting a source tree of photos into a dated target tree."""

from __future__ import annotations

import os
import sys
from dataclasses import dataclass, field
from datetime import datetime, timezone

from photosort.copier import copy_file
from photosort.duplicates import (
    HashType,
    Reason,
    are_files_potentially_duplicate,
    get_image_resolution,
)
from photosort.filesystem import (
    create_target_directory,
    get_photo_creation_date,
    is_image_extension,
    scan_source_directory,
)
from photosort.reporter import DuplicateInfo, generate_report

REPORT_FILE_NAME = "report.txt"
_NAME_COLLISION_REASON = "Content different, but name collision; existing target preserved"
_COMPARISON_ERROR_REASON = "Comparison error, existing target kept"
_REPLACEMENT_FAILED_REASON = "Attempted replacement failed, original target kept"


@dataclass
class RunResult:
    """Counts and duplicate details of one sorting run."""

    processed_files_count: int = 0
    copied_files_count: int = 0
    files_to_copy_count: int = 0
    duplicates: list[DuplicateInfo] = field(default_factory=list)
    pixel_hash_unsupported_count: int = 0


@dataclass
class _FileOutcome:
    copied: bool = False
    final_target_path: str = ""
    duplicate: DuplicateInfo | None = None
    used_file_hash: bool = False


def _log(verbose: bool, message: str) -> None:
    if verbose:
        print(message, file=sys.stderr)


def _extension(file_path: str) -> str:
    name = os.path.basename(file_path)
    dot = name.rfind(".")
    return name[dot:] if dot >= 0 else ""


def _format_timestamp(moment: datetime) -> str:
    return (
        f"{moment.year:04d}-{moment.month:02d}-{moment.day:02d} "
        f"{moment.hour:02d}:{moment.minute:02d}:{moment.second:02d}"
    )


def _ensure_target_directory(target_base_dir: str) -> None:
    try:
        os.stat(target_base_dir)
    except FileNotFoundError:
        print(f"Target directory {target_base_dir} does not exist, attempting to create it.")
        try:
            os.makedirs(target_base_dir, mode=0o755, exist_ok=True)
        except OSError as exc:
            raise OSError(
                f"failed to create target base directory '{target_base_dir}': {exc}"
            ) from exc
    except OSError as exc:
        raise OSError(
            f"error accessing target base directory '{target_base_dir}': {exc}"
        ) from exc


def _scan_source(source_dir: str, verbose: bool) -> list[str]:
    print(f"Scanning source directory: {source_dir}")
    try:
        return scan_source_directory(source_dir)
    except OSError as exc:
        _log(
            verbose,
            f"Warning during scanning source directory '{source_dir}': {exc}. "
            "Attempting to continue with any found files.",
        )
        raise OSError(
            f"critical error: No files could be read from source directory '{source_dir}'"
        ) from exc


def _determine_photo_date(source_path: str, verbose: bool) -> datetime:
    """Use the EXIF date if there is one, otherwise the file's modification time."""
    try:
        photo_date = get_photo_creation_date(source_path)
        date_source = "EXIF"
    except Exception:  # any EXIF failure falls back to the modification time
        try:
            stat = os.stat(source_path)
        except OSError as exc:
            _log(
                verbose,
                f"  - Error getting file info for {source_path}: {exc}. Skipping this file.",
            )
            raise OSError(f"error getting file info: {exc}") from exc
        photo_date = datetime.fromtimestamp(stat.st_mtime).astimezone()
        date_source = "FileModTime"
    _log(
        verbose,
        f"  - Determined date ({date_source}) for {source_path}: "
        f"{_format_timestamp(photo_date)}",
    )
    return photo_date


def _determine_target_path(
    target_base_dir: str, photo_date: datetime, source_path: str, verbose: bool
) -> str:
    try:
        month_dir = create_target_directory(target_base_dir, photo_date)
    except OSError as exc:
        _log(
            verbose,
            f"  - Error creating/accessing target month directory for {source_path} "
            f"(date: {photo_date}): {exc}. Skipping.",
        )
        raise OSError(f"error creating target month directory: {exc}") from exc

    utc = photo_date.astimezone(timezone.utc)
    base_name = (
        f"{utc.year:04d}-{utc.month:02d}-{utc.day:02d}-"
        f"{utc.hour:02d}{utc.minute:02d}{utc.second:02d}"
    )
    target_path = os.path.join(month_dir, base_name + _extension(source_path))
    _log(verbose, f"  - Proposed target path: {target_path}")
    return target_path


def _copy_if_target_empty(source_path: str, target_path: str, verbose: bool) -> bool:
    """Copy when nothing sits at ``target_path``; return whether a copy was made."""
    try:
        os.stat(target_path)
    except FileNotFoundError:
        pass
    except OSError as exc:
        _log(
            verbose,
            f"  - Error checking target path {target_path}: {exc}. "
            f"Skipping source file {source_path}.",
        )
        raise OSError(f"error checking target path {target_path}: {exc}") from exc
    else:
        _log(verbose, f"  - File already exists at target path: {target_path}")
        return False

    _log(verbose, f"  - Target path {target_path} is empty. Copying {source_path} directly.")
    try:
        copy_file(source_path, target_path)
    except OSError as exc:
        _log(verbose, f"  - Error copying file {source_path} to {target_path}: {exc}.")
        raise OSError(f"error copying file {source_path} to {target_path}: {exc}") from exc
    _log(verbose, f"  - Successfully copied {source_path} to {target_path}")
    return True


def _handle_target_conflict(
    source_path: str,
    target_path: str,
    width: int,
    height: int,
    verbose: bool,
) -> _FileOutcome:
    _log(verbose, f"    - Comparing source {source_path} with existing target {target_path}")
    try:
        comparison = are_files_potentially_duplicate(source_path, target_path)
    except (OSError, ValueError) as exc:
        _log(
            verbose,
            f"      - Error comparing source {source_path} with target {target_path}: "
            f"{exc}. Assuming target is kept.",
        )
        return _FileOutcome(
            final_target_path=target_path,
            duplicate=DuplicateInfo(target_path, source_path, _COMPARISON_ERROR_REASON),
        )

    used_file_hash = comparison.hash_type == HashType.FILE and is_image_extension(source_path)
    reason = comparison.reason.value

    if not comparison.are_duplicates:
        _log(
            verbose,
            f"      - Source {source_path} and target {target_path} are deemed different "
            "by content comparison, but share the same target path. "
            "Discarding source to protect existing target.",
        )
        return _FileOutcome(
            final_target_path=target_path,
            duplicate=DuplicateInfo(target_path, source_path, _NAME_COLLISION_REASON),
            used_file_hash=used_file_hash,
        )

    _log(
        verbose,
        f"      - Duplicate found: Source {source_path} and Target {target_path}. "
        f"Reason: {reason}",
    )
    target_better_or_equal = True

    if comparison.reason == Reason.PIXEL_HASH_MATCH:
        try:
            target_width, target_height = get_image_resolution(target_path)
        except (OSError, ValueError) as exc:
            _log(
                verbose,
                f"      - Warning: Could not get resolution for target {target_path}: "
                f"{exc}. Source might replace if it has resolution.",
            )
            if width * height > 0:
                target_better_or_equal = False
            else:
                _log(
                    verbose,
                    f"      - Target {target_path} kept (pixel hash match, resolution "
                    "error for target and source has no resolution).",
                )
                return _FileOutcome(
                    final_target_path=target_path,
                    duplicate=DuplicateInfo(
                        target_path,
                        source_path,
                        reason
                        + " (existing target kept - resolution error for target, "
                        "source has no resolution or also error)",
                    ),
                    used_file_hash=used_file_hash,
                )
        else:
            _log(verbose, f"      - Target resolution: {target_width}x{target_height}")
            if width * height > target_width * target_height:
                target_better_or_equal = False

    if not target_better_or_equal:
        _log(
            verbose,
            f"      - Source {source_path} ({width}x{height}) is better than target "
            f"{target_path}. Replacing target.",
        )
        try:
            copy_file(source_path, target_path)
        except OSError as exc:
            _log(
                verbose,
                f"      - Error overwriting target file {target_path} with source "
                f"{source_path}: {exc}. Original target remains.",
            )
            return _FileOutcome(
                final_target_path=target_path,
                duplicate=DuplicateInfo(target_path, source_path, _REPLACEMENT_FAILED_REASON),
                used_file_hash=used_file_hash,
            )
        _log(verbose, f"      - Successfully overwrote {target_path} with {source_path}")
        return _FileOutcome(
            copied=True,
            final_target_path=target_path,
            duplicate=DuplicateInfo(
                source_path, target_path, reason + " (source is better resolution)"
            ),
            used_file_hash=used_file_hash,
        )

    if comparison.reason == Reason.PIXEL_HASH_MATCH:
        suffix = " (existing target kept - resolution)"
    else:
        suffix = " (existing target kept)"
    _log(
        verbose,
        f"      - Target {target_path} kept (source {source_path} discarded). "
        f"Reason: {reason + suffix}",
    )
    return _FileOutcome(
        final_target_path=target_path,
        duplicate=DuplicateInfo(target_path, source_path, reason + suffix),
        used_file_hash=used_file_hash,
    )


def _process_single_file(source_path: str, target_base_dir: str, verbose: bool) -> _FileOutcome:
    _log(verbose, f"\nProcessing: {source_path}")
    photo_date = _determine_photo_date(source_path, verbose)
    target_path = _determine_target_path(target_base_dir, photo_date, source_path, verbose)

    try:
        width, height = get_image_resolution(source_path)
    except (OSError, ValueError) as exc:
        _log(
            verbose,
            f"  - Warning: Could not get resolution for {source_path}: {exc}. "
            "Proceeding with 0x0 resolution.",
        )
        width = height = 0
    else:
        _log(verbose, f"  - Source resolution: {width}x{height}")

    if _copy_if_target_empty(source_path, target_path, verbose):
        return _FileOutcome(copied=True, final_target_path=target_path)
    return _handle_target_conflict(source_path, target_path, width, height, verbose)


def run_application_logic(
    source_dir: str | os.PathLike, target_base_dir: str | os.PathLike, verbose: bool = False
) -> RunResult:
    """Sort the images below ``source_dir`` into ``target_base_dir/YYYY/MM``.

    Duplicates are detected against files already at the target path, and a
    report is written to ``target_base_dir/report.txt``. Raises OSError when the
    target cannot be prepared, the source cannot be scanned or the report
    cannot be written; failures on single files are skipped.
    """
    source_dir = os.fspath(source_dir)
    target_base_dir = os.fspath(target_base_dir)
    report_path = os.path.join(target_base_dir, REPORT_FILE_NAME)
    print(
        f"Photo Sorter Initializing...\nSource: {source_dir}\n"
        f"Target: {target_base_dir}\nReport: {report_path}"
    )

    _ensure_target_directory(target_base_dir)
    image_files = _scan_source(source_dir, verbose)

    if not image_files:
        print("No image files found in source directory.")
        print("\n--- Photo Sorting Process Completed ---")
        try:
            generate_report(report_path, [], 0, 0, 0, 0)
        except OSError as exc:
            raise OSError(f"failed to generate empty report: {exc}") from exc
        return RunResult()

    total = len(image_files)
    print(f"Found {total} image file(s) to process.")
    progress_interval = 1 if total < 10 else total // 10

    result = RunResult(processed_files_count=total)
    used_file_hash: set[str] = set()
    kept_source_to_target: dict[str, str] = {}
    errors: list[OSError] = []

    for index, source_path in enumerate(image_files, 1):
        try:
            outcome = _process_single_file(source_path, target_base_dir, verbose)
        except OSError as exc:
            errors.append(exc)
            outcome = _FileOutcome()

        if outcome.used_file_hash:
            used_file_hash.add(source_path)
        if outcome.copied:
            result.copied_files_count += 1
            kept_source_to_target[source_path] = outcome.final_target_path
        if outcome.duplicate is not None:
            result.duplicates.append(outcome.duplicate)

        if not verbose and index % progress_interval == 0 and index != total:
            print(f"Processed {index} of {total} files...")

    if not verbose:
        print("All files processed.")

    if errors and verbose:
        _log(verbose, f"Encountered {len(errors)} non-critical errors during file processing:")
        for exc in errors:
            _log(verbose, f"  - {exc}")

    result.pixel_hash_unsupported_count = len(used_file_hash)
    result.files_to_copy_count = result.copied_files_count

    for dup in result.duplicates:
        dup.kept_file = kept_source_to_target.get(dup.kept_file, dup.kept_file)

    print("\n--- Photo Sorting Process Completed ---")
    try:
        generate_report(
            report_path,
            result.duplicates,
            result.copied_files_count,
            result.processed_files_count,
            result.files_to_copy_count,
            result.pixel_hash_unsupported_count,
        )
    except OSError as exc:
        raise OSError(f"failed to generate final report: {exc}") from exc
    return result