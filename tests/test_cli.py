import calendar
import io
import os

import pytest
from PIL import Image

from photosort.cli import main, parse_arguments


def _png_bytes(size, colour):
    buffer = io.BytesIO()
    Image.new("RGBA", size, colour).save(buffer, format="PNG")
    return buffer.getvalue()


def test_parse_arguments_valid(tmp_path):
    target = tmp_path / "out"
    args = parse_arguments(["-sourceDir", str(tmp_path), "-targetDir", str(target), "-verbose"])
    assert args.source_dir == str(tmp_path)
    assert args.target_dir == str(target)
    assert args.verbose is True
    assert args.show_help is False


def test_parse_arguments_equals_form(tmp_path):
    args = parse_arguments([f"-sourceDir={tmp_path}", f"--targetDir={tmp_path}"])
    assert args.source_dir == str(tmp_path)
    assert args.target_dir == str(tmp_path)
    assert args.verbose is False


def test_parse_arguments_help_skips_validation():
    args = parse_arguments(["-help"])
    assert args.show_help is True
    assert args.source_dir == ""


def test_parse_arguments_missing_source(tmp_path):
    with pytest.raises(ValueError, match="-sourceDir flag is required"):
        parse_arguments(["-targetDir", str(tmp_path)])


def test_parse_arguments_missing_target(tmp_path):
    with pytest.raises(ValueError, match="-targetDir flag is required"):
        parse_arguments(["-sourceDir", str(tmp_path)])


def test_parse_arguments_source_does_not_exist(tmp_path):
    missing = tmp_path / "missing"
    with pytest.raises(FileNotFoundError, match="does not exist"):
        parse_arguments(["-sourceDir", str(missing), "-targetDir", str(tmp_path)])


def test_parse_arguments_source_is_file(tmp_path):
    file_path = tmp_path / "file.txt"
    file_path.write_text("text")
    with pytest.raises(NotADirectoryError, match="is not a directory"):
        parse_arguments(["-sourceDir", str(file_path), "-targetDir", str(tmp_path)])


def test_main_help(capsys):
    assert main(["-help"]) == 0
    out = capsys.readouterr().out
    assert out.startswith("Usage: photocp -sourceDir")
    assert "-targetDir" in out


def test_main_missing_flag_fails(capsys):
    assert main([]) == 1
    assert "-sourceDir flag is required" in capsys.readouterr().err


def test_main_copies_photo(tmp_path, capsys):
    source = tmp_path / "src"
    target = tmp_path / "dst"
    source.mkdir()
    photo = source / "photoD.png"
    content = _png_bytes((2, 2), (255, 0, 0, 255))
    photo.write_bytes(content)
    stamp = calendar.timegm((2023, 11, 15, 10, 0, 0))
    os.utime(photo, (stamp, stamp))

    assert main(["-sourceDir", str(source), "-targetDir", str(target)]) == 0

    expected = target / "2023" / "11" / "2023-11-15-100000.png"
    assert expected.read_bytes() == content
    assert (target / "report.txt").exists()
    out = capsys.readouterr().out
    assert "Run Summary: Processed: 1, Copied: 1, Duplicates Found: 0" in out


def test_main_empty_source(tmp_path, capsys):
    source = tmp_path / "src"
    target = tmp_path / "dst"
    source.mkdir()

    assert main(["-sourceDir", str(source), "-targetDir", str(target)]) == 0

    report = (target / "report.txt").read_text()
    assert "Total files scanned: 0" in report
    out = capsys.readouterr().out
    assert "No image files found in source directory." in out
    assert "Processed: 0, Copied: 0" in out