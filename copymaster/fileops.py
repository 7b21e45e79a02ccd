"""Small file operations: creating, reading and writing at offsets, linking and listing."""

from __future__ import annotations

import os
import stat
import time
from dataclasses import dataclass, field

from copymaster.copier import format_mode

_CREATE_MODE = 0o644


@dataclass
class DirectorySummary:
    """A directory listing in the style of a DOS ``dir`` command, with totals."""

    path: str
    lines: list[str] = field(default_factory=list)
    files: int = 0
    file_bytes: int = 0
    dirs: int = 0
    dir_bytes: int = 0

    def __str__(self) -> str:
        header = f"Directory of {self.path}\n\n"
        body = "".join(line + "\n" for line in self.lines)
        footer = (
            f"\t\t\t{self.files} File(s)\t{self.file_bytes} bytes\n"
            f"\t\t\t{self.dirs} Dir(s)\t{self.dir_bytes} bytes free\n"
        )
        return header + body + footer


def touch(path: str, exclusive: bool = False) -> bool:
    """Open a file for reading, creating it with mode 0644 if it is missing.

    Returns True when the file was created. With ``exclusive`` an existing
    file raises FileExistsError.
    """
    try:
        fd = os.open(path, os.O_RDONLY | os.O_CREAT | os.O_EXCL, _CREATE_MODE)
    except FileExistsError:
        if exclusive:
            raise
        fd = os.open(path, os.O_RDONLY | os.O_CREAT, _CREATE_MODE)
        created = False
    else:
        created = True
    os.close(fd)
    return created


def read_bytes_at(path: str, offset: int = 0, count: int = 20) -> bytes:
    """Return up to ``count`` bytes of a file, starting at ``offset``."""
    if count < 0:
        raise ValueError(f"negative count: {count}")
    with open(path, "rb") as handle:
        handle.seek(offset)
        return handle.read(count)


def write_at(path: str, offset: int, data: bytes) -> int:
    """Overwrite an existing file with ``data`` at ``offset``; return the bytes written."""
    with open(path, "r+b") as handle:
        handle.seek(offset)
        return handle.write(data)


def fill_at(path: str, count: int, position: int, char: str) -> int:
    """Write the first character of ``char`` ``count`` times at ``position``.

    An empty ``char`` writes NUL bytes. Returns the number of bytes written.
    """
    byte = char.encode()[:1] or b"\0"
    return write_at(path, position, byte * max(count, 0))


def append_bytes(path: str, data: bytes) -> int:
    """Append ``data`` to an existing file and return its new size."""
    with open(path, "r+b") as handle:
        handle.seek(0, os.SEEK_END)
        handle.write(data)
        return handle.tell()


def describe_file(path: str) -> str:
    """Return a tab-separated, ``ls -l``-like line describing a file."""
    fd = os.open(path, os.O_RDONLY)
    try:
        info = os.fstat(fd)
    finally:
        os.close(fd)
    when = time.localtime(info.st_mtime)
    return (
        f"{format_mode(info.st_mode)}\t{info.st_nlink}\t{info.st_uid}\t{info.st_gid}\t"
        f"{info.st_size}\t{when.tm_mon}\t{when.tm_mday:02d}\t"
        f"{when.tm_hour}:{when.tm_min}\t{path}"
    )


def is_directory(path: str) -> bool:
    """Tell whether an existing path is a directory."""
    return stat.S_ISDIR(os.stat(path).st_mode)


def inode_of(path: str) -> int:
    """Return the inode number of a path."""
    return os.stat(path).st_ino


def link_either_way(first: str, second: str) -> tuple[str, str]:
    """Hard-link ``first`` as ``second``, or failing that ``second`` as ``first``.

    Returns the (existing, new) pair of the link that was made; raises the
    error of the second attempt when neither works.
    """
    try:
        os.link(first, second)
    except OSError:
        os.link(second, first)
        return second, first
    return first, second


def dos_listing(path: str) -> DirectorySummary:
    """List a directory, '.' and '..' included, with file and directory totals."""
    names = [".", ".."] + os.listdir(path)
    summary = DirectorySummary(path=os.path.realpath(path))
    for name in names:
        info = os.stat(os.path.join(path, name))
        when = time.localtime(info.st_mtime)
        stamp = (
            f"{when.tm_mon:02d}/{when.tm_mday:02d}/{when.tm_year:04d}\t"
            f"{when.tm_hour:02d}:{when.tm_min:02d}\t"
        )
        if stat.S_ISDIR(info.st_mode):
            column = "<DIR>\t\t"
            summary.dirs += 1
            summary.dir_bytes += info.st_size
        else:
            column = f"\t{info.st_size}\t"
            summary.files += 1
            summary.file_bytes += info.st_size
        summary.lines.append(f"{stamp}{column}{name}")
    return summary