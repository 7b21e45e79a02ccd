"""Copy files with control over how the destination is opened and written, plus small file helpers."""

__version__ = "0.1.0"

__all__ = ["copier", "fileops", "options", "validation"]