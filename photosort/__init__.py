"""Sort photos into a dated folder tree, detecting duplicates and writing a report."""

__version__ = "0.1.0"
__all__ = ["copier", "filesystem", "reporter", "duplicates", "processing", "cli"]