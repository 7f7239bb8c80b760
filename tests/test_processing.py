import io
import os
from datetime import datetime, timezone

import pytest
from PIL import Image

from photosort.processing import RunResult, run_application_logic

NAME_COLLISION = "Content different, but name collision; existing target preserved"


def _png(size, colour):
    buffer = io.BytesIO()
    Image.new("RGBA", (size, size), colour).save(buffer, format="PNG")
    return buffer.getvalue()


PNG_2X2_A = _png(2, (255, 0, 0, 255))
PNG_4X4_A = _png(4, (255, 0, 0, 255))
PNG_2X2_B = _png(2, (0, 0, 255, 255))


def _write(base, rel_path, content, moment=None):
    full = os.path.join(base, rel_path)
    os.makedirs(os.path.dirname(full), exist_ok=True)
    with open(full, "wb") as handle:
        handle.write(content)
    if moment is not None:
        ts = moment.timestamp()
        os.utime(full, (ts, ts))
    return full


def _read(path):
    with open(path, "rb") as handle:
        return handle.read()


@pytest.fixture
def dirs(tmp_path):
    source = tmp_path / "source"
    target = tmp_path / "target"
    source.mkdir()
    target.mkdir()
    return str(source), str(target)


def test_source_to_empty_target_direct_copy(dirs):
    source, target = dirs
    moment = datetime(2023, 11, 15, 10, 0, 0, tzinfo=timezone.utc)
    _write(source, "photoD.png", PNG_2X2_A, moment)

    result = run_application_logic(source, target, False)

    assert result.processed_files_count == 1
    assert result.copied_files_count == 1
    assert result.files_to_copy_count == 1
    assert result.duplicates == []
    assert result.pixel_hash_unsupported_count == 0
    assert os.path.isfile(os.path.join(target, "2023", "11", "2023-11-15-100000.png"))


def test_two_identical_source_files_target_empty(dirs):
    source, target = dirs
    moment = datetime(2023, 12, 1, 12, 0, 0, tzinfo=timezone.utc)
    s1 = _write(source, "photoE1.png", PNG_2X2_A, moment)
    s2 = _write(source, "photoE2.png", PNG_2X2_A, moment)

    result = run_application_logic(source, target, False)

    expected = os.path.join(target, "2023", "12", "2023-12-01-120000.png")
    assert result.processed_files_count == 2
    assert result.copied_files_count == 1
    assert result.files_to_copy_count == 1
    assert len(result.duplicates) == 1
    assert result.duplicates[0].kept_file == expected
    assert result.duplicates[0].discarded_file in (s1, s2)
    assert "pixel_hash_match" in result.duplicates[0].reason
    assert os.path.isfile(expected)
    assert len(os.listdir(os.path.join(target, "2023", "12"))) == 1


@pytest.mark.parametrize(
    "target_content, source_content",
    [(PNG_4X4_A, PNG_2X2_A), (PNG_2X2_A, PNG_4X4_A), (PNG_2X2_A, PNG_2X2_B)],
    ids=["lower_res_source", "higher_res_source", "different_content"],
)
def test_target_exists_with_different_content_is_preserved(dirs, target_content, source_content):
    source, target = dirs
    moment = datetime(2023, 10, 27, 15, 30, 0, tzinfo=timezone.utc)
    target_file = _write(
        target, os.path.join("2023", "10", "2023-10-27-153000.png"), target_content, moment
    )
    source_file = _write(source, "photo.png", source_content, moment)

    result = run_application_logic(source, target, False)

    assert result.processed_files_count == 1
    assert result.copied_files_count == 0
    assert result.files_to_copy_count == 0
    assert len(result.duplicates) == 1
    assert result.duplicates[0].kept_file == target_file
    assert result.duplicates[0].discarded_file == source_file
    assert result.duplicates[0].reason == NAME_COLLISION
    assert _read(target_file) == target_content
    assert len(os.listdir(os.path.join(target, "2023", "10"))) == 1


def test_pixel_hash_unsupported_falls_back_to_file_hash(dirs):
    source, target = dirs
    moment = datetime(2024, 1, 10, 10, 0, 0, tzinfo=timezone.utc)
    target_content = b"This is target file T1 masquerading as PNG."
    target_file = _write(
        target, os.path.join("2024", "01", "2024-01-10-100000.png"), target_content, moment
    )
    s1 = _write(source, "S1.png", target_content, moment)
    s2 = _write(source, "S2.png", b"This is source file S2, different content, also as PNG.", moment)

    result = run_application_logic(source, target, False)

    assert result.processed_files_count == 2
    assert result.copied_files_count == 0
    assert result.files_to_copy_count == 0
    assert result.pixel_hash_unsupported_count == 2
    by_source = {dup.discarded_file: dup for dup in result.duplicates}
    assert set(by_source) == {s1, s2}
    assert by_source[s1].kept_file == target_file
    assert by_source[s1].reason == "file_hash_match (existing target kept)"
    assert by_source[s2].kept_file == target_file
    assert by_source[s2].reason == NAME_COLLISION
    assert len(os.listdir(os.path.join(target, "2024", "01"))) == 1


def test_source_conflicting_with_identical_target_is_duplicate(dirs):
    source, target = dirs
    moment = datetime(2024, 2, 20, 11, 0, 0, tzinfo=timezone.utc)
    target_file = _write(
        target, os.path.join("2024", "02", "2024-02-20-110000.png"), PNG_2X2_A, moment
    )
    source_file = _write(source, "source_identical.png", PNG_2X2_A, moment)

    result = run_application_logic(source, target, False)

    assert result.processed_files_count == 1
    assert result.copied_files_count == 0
    assert result.pixel_hash_unsupported_count == 0
    assert len(result.duplicates) == 1
    dup = result.duplicates[0]
    assert dup.kept_file == target_file
    assert dup.discarded_file == source_file
    assert dup.reason == "pixel_hash_match (existing target kept - resolution)"
    assert _read(target_file) == PNG_2X2_A


def test_sequential_sources_to_same_target(dirs):
    source, target = dirs
    moment = datetime(2024, 3, 10, 9, 0, 0, tzinfo=timezone.utc)
    _write(source, "s1_original.png", PNG_2X2_A, moment)
    s2 = _write(source, "s2_different.png", PNG_2X2_B, moment)
    s3 = _write(source, "s3_same_as_s1.png", PNG_2X2_A, moment)
    expected = os.path.join(target, "2024", "03", "2024-03-10-090000.png")

    result = run_application_logic(source, target, False)

    assert result.processed_files_count == 3
    assert result.copied_files_count == 1
    assert result.files_to_copy_count == 1
    assert result.pixel_hash_unsupported_count == 0
    assert _read(expected) == PNG_2X2_A
    by_source = {dup.discarded_file: dup for dup in result.duplicates}
    assert set(by_source) == {s2, s3}
    assert all(dup.kept_file == expected for dup in result.duplicates)
    assert by_source[s2].reason == NAME_COLLISION
    assert "pixel_hash_match" in by_source[s3].reason
    assert len(os.listdir(os.path.join(target, "2024", "03"))) == 1


def test_heic_support_and_report(dirs):
    source, target = dirs
    moment = datetime(2024, 7, 15, 14, 30, 0, tzinfo=timezone.utc)
    content = b"simulated heic content"
    _write(source, "sampleA.heic", content, moment)

    result = run_application_logic(source, target, False)

    assert result.processed_files_count == 1
    assert result.copied_files_count == 1
    assert result.files_to_copy_count == 1
    assert result.duplicates == []
    assert result.pixel_hash_unsupported_count == 0
    copied = os.path.join(target, "2024", "07", "2024-07-15-143000.heic")
    assert _read(copied) == content

    report = _read(os.path.join(target, "report.txt")).decode("utf-8")
    assert "Total files scanned: 1" in report
    assert "Files successfully copied: 1" in report
    assert "Duplicate files found and discarded/skipped: 0" in report
    assert "Image files where pixel hashing was not supported (fallback to file hash): 0" in report


def test_empty_source_writes_empty_report(dirs):
    source, target = dirs
    _write(source, "notes.txt", b"not a photo")

    result = run_application_logic(source, target, False)

    assert result == RunResult()
    report = _read(os.path.join(target, "report.txt")).decode("utf-8")
    assert "Total files scanned: 0" in report
    assert "Files successfully copied: 0" in report


def test_missing_target_directory_is_created(tmp_path):
    source = tmp_path / "source"
    source.mkdir()
    target = tmp_path / "new" / "target"
    moment = datetime(2022, 5, 5, 8, 0, 0, tzinfo=timezone.utc)
    _write(str(source), "pic.png", PNG_2X2_A, moment)

    result = run_application_logic(str(source), str(target), False)

    assert result.copied_files_count == 1
    assert os.path.isfile(os.path.join(str(target), "2022", "05", "2022-05-05-080000.png"))


def test_missing_source_directory_raises(tmp_path):
    target = tmp_path / "target"
    with pytest.raises(OSError, match="critical error"):
        run_application_logic(str(tmp_path / "absent"), str(target), False)


def test_verbose_run_logs_progress(dirs, capsys):
    source, target = dirs
    moment = datetime(2021, 6, 15, 12, 0, 0, tzinfo=timezone.utc)
    _write(source, "pic.png", PNG_2X2_A, moment)

    result = run_application_logic(source, target, True)

    assert result.copied_files_count == 1
    captured = capsys.readouterr()
    assert "Proposed target path" in captured.err
    assert "Source resolution: 2x2" in captured.err
    assert "All files processed." not in captured.out