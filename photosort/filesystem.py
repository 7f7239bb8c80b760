"""Scanning sources, reading photo dates and laying out the target tree."""

from __future__ import annotations

import os
from collections.abc import Iterator
from datetime import datetime, timezone

from PIL import Image

IMAGE_EXTENSIONS = frozenset(
    {
        ".jpg",
        ".jpeg",
        ".png",
        ".heic",
        ".heif",
        ".gif",
        ".raw",
        ".cr2",
        ".nef",
        ".arw",
        ".orf",
        ".rw2",
        ".pef",
        ".dng",
    }
)

_EXIF_IFD = 0x8769
_DATE_TIME_ORIGINAL = 0x9003
_DATE_TIME_DIGITIZED = 0x9004
_EXIF_LAYOUT = "%Y:%m:%d %H:%M:%S"
_EXIF_DATE_ONLY_LAYOUT = "%Y:%m:%d"
_DIGITS = frozenset("0123456789")


class NoExifDateError(ValueError):
    """EXIF data was found but holds no usable date tag."""

    def __init__(self, message: str = "no EXIF date tag found") -> None:
        super().__init__(message)


def _extension(file_path: str | os.PathLike) -> str:
    """Return the extension of the last path element, dot included, or ''."""
    name = os.path.basename(os.fspath(file_path))
    dot = name.rfind(".")
    return name[dot:] if dot >= 0 else ""


def is_image_extension(file_path: str | os.PathLike) -> bool:
    """Tell whether the path carries a known image extension (case-insensitive)."""
    return _extension(file_path).lower() in IMAGE_EXTENSIONS


def _walk_files(path: str) -> Iterator[str]:
    """Yield non-directory paths under ``path`` in lexical order, depth first."""
    try:
        with os.scandir(path) as it:
            entries = sorted(it, key=lambda entry: entry.name)
    except OSError as exc:
        print(f'Warning: Error accessing path "{path}": {exc}')
        return
    for entry in entries:
        try:
            is_dir = entry.is_dir(follow_symlinks=False)
        except OSError as exc:
            print(f'Warning: Error accessing path "{entry.path}": {exc}')
            continue
        if is_dir:
            yield from _walk_files(entry.path)
        else:
            yield entry.path


def scan_source_directory(source_dir: str | os.PathLike) -> list[str]:
    """Recursively collect image files below ``source_dir``."""
    source_dir = os.fspath(source_dir)
    try:
        is_dir = os.path.isdir(source_dir) if os.stat(source_dir) else False
    except FileNotFoundError:
        raise FileNotFoundError(
            f"source directory '{source_dir}' does not exist"
        ) from None
    except OSError as exc:
        raise OSError(
            f"error accessing source directory '{source_dir}': {exc}"
        ) from exc
    if not is_dir:
        raise NotADirectoryError(f"source path '{source_dir}' is not a directory")

    return [path for path in _walk_files(source_dir) if is_image_extension(path)]


def create_target_directory(target_base_dir: str | os.PathLike, date: datetime) -> str:
    """Create ``target_base_dir/YYYY/MM`` for ``date`` and return that path."""
    month_dir = os.path.join(
        os.fspath(target_base_dir), f"{date.year:04d}", f"{date.month:02d}"
    )
    try:
        os.makedirs(month_dir, mode=0o755, exist_ok=True)
    except OSError as exc:
        raise OSError(f"failed to create target directory {month_dir}: {exc}") from exc
    return month_dir


def _parse_exif_datetime(value: object) -> datetime:
    if isinstance(value, bytes):
        value = value.decode("ascii", errors="replace")
    date_str = str(value).rstrip("\x00")
    try:
        parsed = datetime.strptime(date_str, _EXIF_LAYOUT)
    except ValueError as exc:
        try:
            parsed = datetime.strptime(date_str, _EXIF_DATE_ONLY_LAYOUT)
        except ValueError:
            raise ValueError(
                f"failed to parse EXIF date string '{date_str}' with layout "
                f"'{_EXIF_LAYOUT}' or '{_EXIF_DATE_ONLY_LAYOUT}': {exc}"
            ) from exc
    return parsed.replace(tzinfo=timezone.utc)


def get_photo_creation_date(photo_path: str | os.PathLike) -> datetime:
    """Read the photo's creation date from EXIF DateTimeOriginal or DateTimeDigitized.

    Raises FileNotFoundError (or another OSError) if the file cannot be opened,
    ValueError if no EXIF data can be decoded, and NoExifDateError if EXIF is
    present but carries no date tag.
    """
    with open(photo_path, "rb") as handle:
        try:
            with Image.open(handle) as img:
                exif = img.getexif()
                exif_ifd = dict(exif.get_ifd(_EXIF_IFD))
                top_level = dict(exif)
        except (OSError, ValueError, SyntaxError) as exc:
            raise ValueError(
                f"failed to decode EXIF data from {os.fspath(photo_path)}: {exc}"
            ) from exc

    if not top_level and not exif_ifd:
        raise ValueError(
            f"failed to decode EXIF data from {os.fspath(photo_path)}: no EXIF data found"
        )

    for tag in (_DATE_TIME_ORIGINAL, _DATE_TIME_DIGITIZED):
        for source in (exif_ifd, top_level):
            if tag in source:
                return _parse_exif_datetime(source[tag])
    raise NoExifDateError()


def find_potential_target_conflicts(
    target_month_dir: str | os.PathLike,
    base_name_without_ext: str,
    extension: str,
) -> list[str]:
    """List files in ``target_month_dir`` named ``base[-N]ext`` (case-insensitive)."""
    target_month_dir = os.fspath(target_month_dir)
    if not extension.startswith("."):
        extension = "." + extension
    prefix = base_name_without_ext.lower()
    suffix = extension.lower()

    try:
        with os.scandir(target_month_dir) as it:
            entries = sorted(it, key=lambda entry: entry.name)
    except FileNotFoundError:
        return []
    except OSError as exc:
        raise OSError(
            f"failed to read target directory {target_month_dir}: {exc}"
        ) from exc

    conflicts = []
    for entry in entries:
        if entry.is_dir(follow_symlinks=False):
            continue
        name_lower = entry.name.lower()
        if len(name_lower) < len(prefix) + len(suffix):
            continue
        if not (name_lower.startswith(prefix) and name_lower.endswith(suffix)):
            continue
        middle = name_lower[len(prefix) : len(name_lower) - len(suffix)]
        if middle == "":
            conflicts.append(os.path.join(target_month_dir, entry.name))
        elif middle.startswith("-"):
            version = middle[1:]
            if version and set(version) <= _DIGITS:
                conflicts.append(os.path.join(target_month_dir, entry.name))
    return conflicts