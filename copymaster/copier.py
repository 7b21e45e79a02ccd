"""File copying, linking and directory listing driven by copymaster options."""

from __future__ import annotations

import errno as _errno
import os
import stat
import sys
import time
from contextlib import ExitStack, contextmanager
from typing import Iterator, Sequence

from copymaster.options import (
    CopymasterError,
    CopymasterOptions,
    format_options,
    parse_options,
)
from copymaster.validation import (
    apply_umask_changes,
    check_option_conflicts,
    validate_umask_changes,
)

_BUFFER_SIZE = 1_000_000
_SPARSE_BLOCK = 4096
_DEFAULT_MODE = 0o644
_TEMPORARY_UMASK = 0o046

_DEFAULT_FLAGS = os.O_RDWR | os.O_CREAT | os.O_TRUNC
_CREATE_FLAGS = os.O_RDWR | os.O_CREAT | os.O_EXCL
_OVERWRITE_FLAGS = os.O_RDWR
_APPEND_FLAGS = os.O_RDWR | os.O_APPEND
_CREATE_APPEND_FLAGS = os.O_RDWR | os.O_CREAT | os.O_EXCL | os.O_APPEND

_DEFAULT_ERROR = ("B", "INA CHYBA", 21)
_INFILE_ERRORS = {
    _CREATE_FLAGS: ("c", "INA CHYBA", 23),
    _OVERWRITE_FLAGS: ("o", "INA CHYBA", 24),
    _APPEND_FLAGS: ("a", "INA CHYBA", 22),
}
_OUTFILE_ERRORS = {
    _CREATE_FLAGS: ("c", "SUBOR EXISTUJE", 23),
    _OVERWRITE_FLAGS: ("o", "SUBOR NEEXISTUJE", 24),
    _APPEND_FLAGS: ("a", "SUBOR NEEXISTUJE", 22),
}

_ALL_SWITCHES = (
    "fast", "slow", "create", "overwrite", "append", "lseek", "directory",
    "delete", "chmod", "inode", "umask", "link", "truncate", "sparse",
)

_PERMISSION_BITS = (
    (stat.S_IRUSR, "r"), (stat.S_IWUSR, "w"), (stat.S_IXUSR, "x"),
    (stat.S_IRGRP, "r"), (stat.S_IWGRP, "w"), (stat.S_IXGRP, "x"),
    (stat.S_IROTH, "r"), (stat.S_IWOTH, "w"), (stat.S_IXOTH, "x"),
)


def _error(flag: str, message: str, status: int, exc: BaseException | None = None,
           code: int = 0) -> CopymasterError:
    number = getattr(exc, "errno", None) if exc is not None else None
    if exc is not None and not number:
        number = _errno.EINVAL
    return CopymasterError(flag, message, status, number or code)


@contextmanager
def _descriptor(path: str, flags: int, mode: int, error: tuple[str, str, int]) -> Iterator[int]:
    try:
        fd = os.open(path, flags, mode)
    except OSError as exc:
        raise _error(*error, exc) from exc
    try:
        yield fd
    finally:
        os.close(fd)


def _write_all(fd: int, data: bytes) -> None:
    view = memoryview(data)
    while view:
        written = os.write(fd, view)
        view = view[written:]


def _pump(src: int, dst: int, chunk: int) -> None:
    while True:
        try:
            data = os.read(src, chunk)
        except OSError:
            break
        if not data:
            break
        _write_all(dst, data)


def format_mode(mode: int) -> str:
    """Render a mode as a ten-character permission string, 'd' for directories."""
    kind = "d" if stat.S_ISDIR(mode) else "-"
    return kind + "".join(char if mode & bit else "-" for bit, char in _PERMISSION_BITS)


def list_directory(path: str) -> list[str]:
    """Return one listing line for each entry of a directory, '.' and '..' left out."""
    try:
        names = os.listdir(path)
    except NotADirectoryError as exc:
        raise _error("D", "VSTUPNY SUBOR NIE JE ADRESAR", 28, exc) from exc
    except OSError as exc:
        raise _error("D", "INA CHYBA", 28, exc) from exc

    lines = []
    for name in names:
        try:
            info = os.stat(os.path.join(path, name))
        except OSError as exc:
            raise _error("D", "stat", 28, exc) from exc
        when = time.localtime(info.st_mtime)
        lines.append(
            f"{format_mode(info.st_mode)} {info.st_nlink} {info.st_uid} {info.st_gid} "
            f"{info.st_size} {when.tm_mday:02d}-{when.tm_mon:02d}-{when.tm_year:02d} {name}"
        )
    return lines


def _plain_copy(options: CopymasterOptions) -> None:
    with _descriptor(options.infile, os.O_RDONLY, 0, ("B", "SUBOR NEEXISTUJE", 21)) as ifd:
        mode = stat.S_IMODE(os.fstat(ifd).st_mode)
        with _descriptor(options.outfile, _DEFAULT_FLAGS, mode, _DEFAULT_ERROR) as ofd:
            _pump(ifd, ofd, _BUFFER_SIZE)


def _sparse_copy(options: CopymasterOptions) -> None:
    error = ("S", "INA CHYBA", 41)
    with _descriptor(options.infile, os.O_RDONLY, 0, error) as ifd:
        source = os.fstat(ifd)
        with _descriptor(options.outfile, _DEFAULT_FLAGS, stat.S_IMODE(source.st_mode),
                         error) as ofd:
            while True:
                data = os.read(ifd, _SPARSE_BLOCK)
                if not data:
                    break
                if data.strip(b"\0"):
                    _write_all(ofd, data)
                else:
                    os.lseek(ofd, len(data), os.SEEK_CUR)
            os.ftruncate(ofd, source.st_size)
    target = os.stat(options.outfile)
    if target.st_blksize < source.st_blksize:
        raise CopymasterError("S", "RIEDKY SUBOR NEVYTVORENY", 41, 0)


def _lseek_copy(options: CopymasterOptions) -> bytes:
    error = ("l", "INA CHYBA", 33)
    seek = options.lseek_options
    with _descriptor(options.infile, os.O_RDONLY, 0, error) as ifd, \
            _descriptor(options.outfile, os.O_RDWR, 0, error) as ofd:
        try:
            os.lseek(ifd, seek.pos1, os.SEEK_SET)
        except (OSError, OverflowError) as exc:
            raise _error("l", "CHYBA POZICIE infile", 33, exc) from exc
        try:
            os.lseek(ofd, seek.pos2, seek.whence)
        except (OSError, OverflowError) as exc:
            raise _error("l", "CHYBA POZICIE outfile", 33, exc) from exc
        try:
            data = os.read(ifd, min(seek.num, _BUFFER_SIZE))
        except OSError:
            data = b""
        _write_all(ofd, data)
    return data


def _link(options: CopymasterOptions) -> None:
    try:
        os.link(options.infile, options.outfile)
    except FileExistsError as exc:
        raise _error("K", "VYSTUPNY SUBOR UZ EXISTUJE", 30, exc) from exc
    except OSError as exc:
        raise _error("K", "VSTUPNY SUBOR NEEXISTUJE", 30, exc) from exc


def _open_flags(options: CopymasterOptions) -> int:
    if options.create and options.append:
        return _CREATE_APPEND_FLAGS
    if options.append:
        return _APPEND_FLAGS
    if options.overwrite:
        return _OVERWRITE_FLAGS
    if options.create:
        return _CREATE_FLAGS
    return _DEFAULT_FLAGS


def _transfer(options: CopymasterOptions, source: os.stat_result | None) -> bytes | None:
    mode = stat.S_IMODE(source.st_mode) if source else _DEFAULT_MODE
    is_dir = source is not None and stat.S_ISDIR(source.st_mode)
    if options.create:
        mode = options.create_mode
        is_dir = stat.S_ISDIR(options.create_mode)

    if options.lseek:
        return _lseek_copy(options)
    if options.link:
        _link(options)
        return None

    flags = _open_flags(options)
    chunk = 1 if options.slow else _BUFFER_SIZE

    with ExitStack() as stack:
        ifd = stack.enter_context(_descriptor(
            options.infile, os.O_RDONLY, 0, _INFILE_ERRORS.get(flags, _DEFAULT_ERROR)))
        if options.inode:
            inode = source.st_ino if source else os.fstat(ifd).st_ino
            if inode != options.inode_number:
                raise CopymasterError("i", "ZLY INODE", 27, _errno.EINVAL)
            if is_dir:
                raise CopymasterError("i", "ZLY TYP VSTUPNEHO SUBORU", 27, _errno.EINVAL)
        ofd = stack.enter_context(_descriptor(
            options.outfile, flags, mode, _OUTFILE_ERRORS.get(flags, _DEFAULT_ERROR)))
        _pump(ifd, ofd, chunk)

    if options.delete:
        if is_dir:
            raise CopymasterError("d", "SUBOR NEBOL ZMAZANY", 26, _errno.EINVAL)
        try:
            os.unlink(options.infile)
        except OSError as exc:
            raise _error("d", "SUBOR NEBOL ZMAZANY", 26, exc) from exc

    if options.truncate:
        if options.truncate_size < 0:
            raise CopymasterError("t", "ZAPORNA VELKOST", 31, _errno.EINVAL)
        if is_dir:
            raise CopymasterError("t", "INA CHYBA", 31, _errno.EINVAL)
        try:
            os.truncate(options.infile, options.truncate_size)
        except (OSError, OverflowError) as exc:
            raise _error("t", "INA CHYBA", 31, exc) from exc

    if options.chmod:
        try:
            os.chmod(options.outfile, options.chmod_mode)
        except OSError as exc:
            raise _error("m", "INA CHYBA", 34, exc) from exc

    if options.directory:
        lines = list_directory(options.infile)
        with _descriptor(options.outfile, flags, mode,
                         ("D", "VYSTUPNY SUBOR - CHYBA", 28)) as fd:
            _write_all(fd, os.fsencode("".join(line + "\n" for line in lines)))

    return None


def copy(options: CopymasterOptions) -> bytes | None:
    """Carry out what the options ask for.

    Returns the bytes moved in lseek mode, otherwise None. Raises
    CopymasterError on failure.
    """
    check_option_conflicts(options)

    if not any(getattr(options, name) for name in _ALL_SWITCHES):
        _plain_copy(options)
        return None
    if options.sparse:
        _sparse_copy(options)
        return None

    try:
        source: os.stat_result | None = os.stat(options.infile)
    except OSError:
        source = None

    previous_umask = None
    if options.umask:
        validate_umask_changes(options.umask_options)
        previous_umask = os.umask(_TEMPORARY_UMASK)
        os.umask(apply_umask_changes(previous_umask & 0o777, options.umask_options))
    try:
        return _transfer(options, source)
    finally:
        if previous_umask is not None:
            os.umask(previous_umask)


def _write_stdout(data: bytes) -> None:
    sys.stdout.flush()
    buffer = getattr(sys.stdout, "buffer", None)
    if buffer is None:
        sys.stdout.write(data.decode(errors="replace"))
    else:
        buffer.write(data)
        buffer.flush()


def main(argv: Sequence[str] | None = None) -> int:
    """Run the tool on the given arguments and return its exit status."""
    args = sys.argv[1:] if argv is None else list(argv)
    try:
        options = parse_options(args)
        sys.stdout.write(format_options(options))
        data = copy(options)
    except CopymasterError as exc:
        sys.stdout.flush()
        print(exc, file=sys.stderr)
        return exc.exit_status
    if data:
        _write_stdout(data)
    return 0


if __name__ == "__main__":
    sys.exit(main())