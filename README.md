# photosort

photosort copies photos from a source directory into a target directory.
Each photo goes into a `YYYY/MM` folder and is renamed after its capture
time, for example `2023/11/2023-11-15-100000.png`. The original extension is
kept. A `report.txt` summarising the run is written to the target directory.

## Installation

```
pip install .
```

This installs the `photocp` command. Pillow is the only dependency.

## Command line

```
photocp -sourceDir ~/Pictures/import -targetDir ~/Pictures/sorted
photocp -sourceDir ./card -targetDir ./archive -verbose
photocp -help
```

Options (each also accepts a double dash, e.g. `--sourceDir`):

- `-sourceDir` (required): the directory to scan. It must exist and be a
  directory.
- `-targetDir` (required): where sorted photos go. It is created if it does
  not exist.
- `-verbose`: log each step for every file to standard error instead of
  printing progress lines.
- `-help` / `-h`: print usage and the list of options.

The command exits with status 0 on success and 1 when a flag is missing, the
source directory is unusable, or the run fails (for example when the report
cannot be written). Problems with single files do not stop the run; those
files are skipped.

At the end a line such as
`Run Summary: Processed: 3, Copied: 1, Duplicates Found: 2, Pixel Hash Unsupported (Unique Files): 0`
is printed.

## How files are handled

- **Scanning.** The source directory is walked recursively. Files whose
  extension (case-insensitive) is one of `.jpg .jpeg .png .gif .heic .heif
  .raw .cr2 .nef .arw .orf .rw2 .pef .dng` are picked up.
- **Date.** The EXIF `DateTimeOriginal` tag is used, then `DateTimeDigitized`.
  EXIF is read through Pillow, so formats Pillow cannot open (such as HEIC and
  most RAW files) fall back to the file's modification time, as does any file
  without an EXIF date. The file name is built from the date in UTC.
- **Copying.** If nothing exists at the target path, the file is copied there.
- **Conflicts.** If a file already exists at the target path, the two are
  compared:
  - if both carry image extensions: first by an EXIF signature (capture date,
    make, model, width, height); differing signatures mean "not duplicates".
    Then by a SHA-256 hash of the decoded RGBA pixels, which works for PNG,
    JPEG and GIF. If pixels cannot be hashed for both files, the whole-file
    SHA-256 decides;
  - otherwise: files of different size are not duplicates, and files of the
    same size are compared by whole-file SHA-256;
  - two empty files are always duplicates.

  The existing target is kept in every case except one: when the pixel
  hashes match and the source has more pixels (width × height), the source
  overwrites the target. A source that differs from the target but maps to
  the same name is not copied; it is listed in the report as discarded.

## The report

`report.txt` holds the number of files scanned, files copied, duplicates
found, and image files whose comparison fell back to the whole-file hash,
followed by a "Duplicate Details" section listing, for each duplicate, the
kept file, the discarded file and the reason.

## Library use

```python
from photosort.processing import run_application_logic

result = run_application_logic("card", "archive", False)
print(result.processed_files_count, result.copied_files_count)
for dup in result.duplicates:
    print(dup.kept_file, dup.discarded_file, dup.reason)
```

Comparing two files directly:

```python
from photosort.duplicates import are_files_potentially_duplicate

res = are_files_potentially_duplicate("a.png", "b.png")
print(res.are_duplicates, res.reason, res.hash_type)
```

Other building blocks:

- `photosort.filesystem`: `scan_source_directory`, `get_photo_creation_date`
  (raises `NoExifDateError` when EXIF has no date), `create_target_directory`,
  `is_image_extension`, and `find_potential_target_conflicts`, which lists
  files named `base.ext` or `base-N.ext` in a directory.
- `photosort.duplicates`: `calculate_file_hash`, `calculate_pixel_data_hash`
  (raises `UnsupportedForPixelHashingError`), `get_image_resolution`, and the
  `Reason` and `HashType` enums.
- `photosort.copier.copy_file` and `photosort.reporter.generate_report`.

## What it does not do

- Conflicting files are never given numbered names such as `-1`; a source
  whose content differs from an existing target of the same name is left
  out rather than copied alongside it.
- HEIC/HEIF and RAW files are not decoded: they get no EXIF date, no
  resolution and no pixel hash, and are compared by whole-file hash.
- Source files are never moved or deleted.