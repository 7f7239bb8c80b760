"""Deciding whether two files hold the same photo."""

from __future__ import annotations

import hashlib
import os
from dataclasses import dataclass
from enum import Enum

from PIL import Image

_CHUNK_SIZE = 1 << 16
_DECODABLE_FORMATS = frozenset({"PNG", "JPEG", "GIF"})

_EXIF_IFD = 0x8769
_SIGNATURE_TAGS = (
    0x9003,  # DateTimeOriginal
    0x010F,  # Make
    0x0110,  # Model
    0x0100,  # ImageWidth
    0x0101,  # ImageLength
)
_MISSING = "NA"
_UNREADABLE = "ERR"


class Reason(str, Enum):
    """Why a comparison ended the way it did."""

    SIZE_MISMATCH = "size_mismatch"
    EXIF_MISMATCH = "exif_mismatch"
    PIXEL_HASH_MATCH = "pixel_hash_match"
    PIXEL_HASH_MISMATCH = "pixel_hash_mismatch"
    FILE_HASH_MATCH = "file_hash_match"
    FILE_HASH_MISMATCH = "file_hash_mismatch"
    ERROR = "error"
    NOT_COMPARED = "not_compared"
    TARGET_NOT_FOUND = "target_not_found"
    PIXEL_HASH_NOT_ATTEMPTED = "pixel_hash_not_attempted"

    def __str__(self) -> str:
        return self.value


class HashType(str, Enum):
    """Kind of hash or signature that settled a comparison."""

    PIXEL = "pixel_sha256"
    FILE = "file_sha256"
    EXIF = "exif_signature"

    def __str__(self) -> str:
        return self.value


class NoExifError(ValueError):
    """The file carries no usable EXIF data."""

    def __init__(self, message: str = "EXIF data not found") -> None:
        super().__init__(message)


class UnsupportedForPixelHashingError(ValueError):
    """The file cannot be decoded into pixels for hashing."""


@dataclass
class ComparisonResult:
    """Outcome of comparing two files."""

    file_path1: str
    file_path2: str
    are_duplicates: bool = False
    reason: Reason = Reason.NOT_COMPARED
    hash1: str = ""
    hash2: str = ""
    hash_type: HashType | None = None


def _file_size(file_path: str) -> int:
    try:
        return os.stat(file_path).st_size
    except OSError as exc:
        raise OSError(f"error getting size for {file_path}: {exc}") from exc


def _tag_text(value: object) -> str:
    if isinstance(value, bytes):
        value = value.decode("ascii", errors="replace")
    return str(value).strip().rstrip("\x00").strip()


def _exif_signature(file_path: str) -> str:
    """Build a signature from key EXIF tags; raise NoExifError if none are present."""
    try:
        handle = open(file_path, "rb")
    except OSError as exc:
        raise OSError(f"failed to open file for EXIF parsing {file_path}: {exc}") from exc
    with handle:
        try:
            with Image.open(handle) as img:
                exif = img.getexif()
                top_level = dict(exif)
                exif_ifd = dict(exif.get_ifd(_EXIF_IFD))
        except (OSError, ValueError, SyntaxError):
            raise NoExifError() from None

    parts = []
    for tag in _SIGNATURE_TAGS:
        if tag in exif_ifd:
            value = exif_ifd[tag]
        elif tag in top_level:
            value = top_level[tag]
        else:
            parts.append(_MISSING)
            continue
        try:
            parts.append(_tag_text(value))
        except (TypeError, ValueError):
            parts.append(_UNREADABLE)

    if all(part in (_MISSING, _UNREADABLE) for part in parts):
        raise NoExifError()
    return "_".join(parts)


def _compare_by_exif(file_path1: str, file_path2: str) -> tuple[bool, bool, str, str]:
    """Return (match, conclusive, sig1, sig2); raise OSError on real read errors."""
    signatures: list[str] = []
    errors: list[tuple[str, Exception]] = []
    for path in (file_path1, file_path2):
        try:
            signatures.append(_exif_signature(path))
        except NoExifError:
            signatures.append("")
        except OSError as exc:
            signatures.append("")
            errors.append((path, exc))

    if len(errors) == 2:
        (p1, e1), (p2, e2) = errors
        raise OSError(f"EXIF read error for {p1} ({e1}) and {p2} ({e2})")
    if errors:
        path, exc = errors[0]
        raise OSError(f"EXIF read error for {path}: {exc}") from exc

    sig1, sig2 = signatures
    if sig1 and sig2:
        if sig1 == sig2:
            return True, False, sig1, sig2
        return False, True, sig1, sig2
    return False, False, sig1, sig2


def calculate_file_hash(file_path: str | os.PathLike) -> str:
    """Return the hex SHA-256 of the file's content."""
    digest = hashlib.sha256()
    try:
        with open(file_path, "rb") as handle:
            for chunk in iter(lambda: handle.read(_CHUNK_SIZE), b""):
                digest.update(chunk)
    except OSError as exc:
        raise OSError(f"failed to hash file {os.fspath(file_path)}: {exc}") from exc
    return digest.hexdigest()


def get_image_resolution(file_path: str | os.PathLike) -> tuple[int, int]:
    """Return (width, height) of an image without decoding its pixels."""
    path = os.fspath(file_path)
    try:
        handle = open(path, "rb")
    except OSError as exc:
        raise OSError(f"failed to open image file {path} for resolution: {exc}") from exc
    with handle:
        try:
            with Image.open(handle) as img:
                if img.format not in _DECODABLE_FORMATS:
                    raise ValueError(f"unknown format {img.format}")
                return img.size
        except (OSError, ValueError, SyntaxError) as exc:
            raise ValueError(f"failed to decode image config for {path}: {exc}") from exc


def calculate_pixel_data_hash(file_path: str | os.PathLike) -> str:
    """Return the hex SHA-256 of the image's premultiplied 8-bit RGBA pixels."""
    path = os.fspath(file_path)
    try:
        handle = open(path, "rb")
    except OSError as exc:
        raise OSError(f"failed to open file {path} for pixel hashing: {exc}") from exc
    with handle:
        try:
            with Image.open(handle) as img:
                if img.format not in _DECODABLE_FORMATS:
                    raise UnsupportedForPixelHashingError(
                        "file format not supported for pixel data hashing: "
                        f"format {img.format}"
                    )
                img.load()
                pixels = img.convert("RGBA").convert("RGBa").tobytes()
        except UnsupportedForPixelHashingError:
            raise
        except (OSError, ValueError, SyntaxError) as exc:
            raise UnsupportedForPixelHashingError(
                "file format not supported for pixel data hashing: "
                f"decoding image data for {path}: {exc}"
            ) from exc
    return hashlib.sha256(pixels).hexdigest()


def _compare_by_pixel_hash(file_path1: str, file_path2: str) -> tuple[bool, bool, str, str]:
    """Return (match, conclusive, hash1, hash2); conclusive only if both hashed."""
    try:
        hash1 = calculate_pixel_data_hash(file_path1)
    except UnsupportedForPixelHashingError:
        print(f"Info: Pixel hash unsupported for {file_path1}.")
        try:
            hash2 = calculate_pixel_data_hash(file_path2)
        except UnsupportedForPixelHashingError:
            return False, False, "", ""
        return False, False, "", hash2

    try:
        hash2 = calculate_pixel_data_hash(file_path2)
    except UnsupportedForPixelHashingError:
        print(
            f"Info: Pixel hash for {file_path1} succeeded, "
            f"but unsupported for {file_path2}."
        )
        return False, False, hash1, ""

    return hash1 == hash2, True, hash1, hash2


def are_files_potentially_duplicate(
    file_path1: str | os.PathLike, file_path2: str | os.PathLike
) -> ComparisonResult:
    """Compare two files by size, EXIF, pixel data and full content, in that order.

    A missing ``file_path2`` is reported as TARGET_NOT_FOUND; other failures
    raise OSError.
    """
    path1 = os.fspath(file_path1)
    path2 = os.fspath(file_path2)
    result = ComparisonResult(file_path1=path1, file_path2=path2)

    try:
        os.stat(path2)
    except FileNotFoundError:
        result.reason = Reason.TARGET_NOT_FOUND
        return result
    except OSError:
        pass

    size1 = _file_size(path1)
    size2 = _file_size(path2)

    if size1 == 0 and size2 == 0:
        result.are_duplicates = True
        result.reason = Reason.FILE_HASH_MATCH
        result.hash_type = HashType.FILE
        result.hash1 = result.hash2 = "zero_bytes"
        return result

    pixel_hashing_attempted = False

    if is_image_pair(path1, path2):
        result.hash_type = HashType.EXIF
        try:
            exif_match, exif_conclusive, sig1, sig2 = _compare_by_exif(path1, path2)
        except OSError as exc:
            print(
                f"Warning: EXIF comparison error for {path1}, {path2}: {exc}. "
                "Proceeding to pixel hash."
            )
            result.reason = Reason.NOT_COMPARED
        else:
            result.hash1, result.hash2 = sig1, sig2
            if exif_conclusive and not exif_match:
                result.reason = Reason.EXIF_MISMATCH
                return result

        try:
            px_match, px_conclusive, px1, px2 = _compare_by_pixel_hash(path1, path2)
        except OSError as exc:
            raise OSError(
                f"error during pixel hash comparison for {path1} and {path2}: {exc}"
            ) from exc
        pixel_hashing_attempted = True
        result.hash1, result.hash2 = px1, px2

        if px_conclusive:
            result.hash_type = HashType.PIXEL
            result.are_duplicates = px_match
            result.reason = (
                Reason.PIXEL_HASH_MATCH if px_match else Reason.PIXEL_HASH_MISMATCH
            )
            return result
        result.reason = Reason.PIXEL_HASH_NOT_ATTEMPTED

    if not pixel_hashing_attempted and size1 != size2:
        result.reason = Reason.SIZE_MISMATCH
        result.hash_type = None
        return result

    result.hash_type = HashType.FILE
    try:
        hash1 = calculate_file_hash(path1)
    except OSError as exc:
        raise OSError(f"error full file hashing for {path1}: {exc}") from exc
    result.hash1 = hash1
    try:
        hash2 = calculate_file_hash(path2)
    except OSError as exc:
        raise OSError(f"error full file hashing for {path2}: {exc}") from exc
    result.hash2 = hash2

    result.are_duplicates = hash1 == hash2
    result.reason = (
        Reason.FILE_HASH_MATCH if result.are_duplicates else Reason.FILE_HASH_MISMATCH
    )
    return result


def is_image_pair(file_path1: str, file_path2: str) -> bool:
    """Tell whether both paths carry image extensions."""
    from photosort.filesystem import is_image_extension

    return is_image_extension(file_path1) and is_image_extension(file_path2)