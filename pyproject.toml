[build-system]
requires = ["setuptools>=64"]
build-backend = "setuptools.build_meta"

[project]
name = "photosort"
version = "0.1.0"
description = "Copy photos into a year/month tree named by capture date, skipping duplicates and writing a report."
requires-python = ">=3.10"
dependencies = [
    "pillow",
]
keywords = ["photos", "exif", "sorting", "duplicates", "images"]
classifiers = [
    "Development Status :: 4 - Beta",
    "Environment :: Console",
    "Intended Audience :: End Users/Desktop",
    "Operating System :: OS Independent",
    "Programming Language :: Python :: 3",
    "Programming Language :: Python :: 3 :: Only",
    "Programming Language :: Python :: 3.10",
    "Programming Language :: Python :: 3.11",
    "Programming Language :: Python :: 3.12",
    "Programming Language :: Python :: 3.13",
    "Topic :: Multimedia :: Graphics",
]

[project.optional-dependencies]
test = [
    "pytest",
    "pillow",
]

[project.scripts]
photocp = "photosort.cli:main"

[tool.setuptools.packages.find]
include = ["photosort*"]

[tool.pytest.ini_options]
testpaths = ["tests"]
addopts = "-ra"
