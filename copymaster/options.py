"""Command-line options of the copymaster tool."""

from __future__ import annotations

import errno as _errno
import getopt
import os
import re
from dataclasses import dataclass, field
from typing import Sequence

PROGRAM = "copymaster"
UMASK_OPTIONS_MAX = 9

_SHORT_OPTIONS = "fsc:oal:Ddm:i:u:Kt:S"
_LONG_OPTIONS = [
    "fast",
    "slow",
    "create=",
    "overwrite",
    "append",
    "lseek=",
    "directory=",
    "delete",
    "chmod=",
    "inode=",
    "umask=",
    "link",
    "truncate=",
    "sparse",
]
_LONG_TO_SHORT = {
    "--fast": "-f",
    "--slow": "-s",
    "--create": "-c",
    "--overwrite": "-o",
    "--append": "-a",
    "--lseek": "-l",
    "--directory": "-D",
    "--delete": "-d",
    "--chmod": "-m",
    "--inode": "-i",
    "--umask": "-u",
    "--link": "-K",
    "--truncate": "-t",
    "--sparse": "-S",
}
_WHENCE = {"b": os.SEEK_SET, "e": os.SEEK_END, "c": os.SEEK_CUR}

_OCTAL = re.compile(r"\s*([+-]?)([0-7]+)")
_DECIMAL = re.compile(r"\s*([+-]?\d+)")
_LSEEK = re.compile(r"(.),\s*([+-]?\d+),\s*([+-]?\d+),\s*([+-]?\d+)", re.DOTALL)

_MODE_BITS = 2**32
_SIZE_BITS = 2**64


class CopymasterError(Exception):
    """A fatal error tied to one option, with the exit status it carries."""

    def __init__(self, flag: str, message: str, exit_status: int, errno: int = 0):
        self.flag = flag
        self.message = message
        self.exit_status = exit_status
        self.errno = errno
        super().__init__(str(self))

    def __str__(self) -> str:
        return f"{self.flag}:{self.errno}:{os.strerror(self.errno)}:{self.message}"


class UsageError(CopymasterError):
    """The command line could not be understood."""

    def __init__(self, reason: str, program: str = PROGRAM):
        self.reason = reason
        self.program = program
        super().__init__("?", reason, 1, 0)

    def __str__(self) -> str:
        return f"Usage: {self.program} [OPTION]... SOURCE DEST\n({self.reason})"


@dataclass
class LseekOptions:
    """Arguments of the lseek option: whence, input offset, output offset, count."""

    whence: int = 0
    pos1: int = 0
    pos2: int = 0
    num: int = 0


@dataclass
class CopymasterOptions:
    """Every setting that the command line can carry."""

    infile: str = ""
    outfile: str = ""
    fast: bool = False
    slow: bool = False
    create: bool = False
    create_mode: int = 0
    overwrite: bool = False
    append: bool = False
    lseek: bool = False
    lseek_options: LseekOptions = field(default_factory=LseekOptions)
    directory: bool = False
    delete: bool = False
    chmod: bool = False
    chmod_mode: int = 0
    inode: bool = False
    inode_number: int = 0
    umask: bool = False
    umask_options: list[str] = field(default_factory=list)
    link: bool = False
    truncate: bool = False
    truncate_size: int = 0
    sparse: bool = False


def _scan_octal(text: str) -> int | None:
    match = _OCTAL.match(text)
    if match is None:
        return None
    value = int(match.group(2), 8)
    if match.group(1) == "-":
        value = -value % _MODE_BITS
    return value


def _scan_long(text: str) -> int | None:
    match = _DECIMAL.match(text)
    return int(match.group(1)) if match else None


def _scan_unsigned(text: str) -> int | None:
    value = _scan_long(text)
    return None if value is None else value % _SIZE_BITS


def _parse_mode(text: str, previous: int, flag: str, exit_status: int) -> int:
    value = _scan_octal(text)
    if value is None:
        value = previous
    if value > 0o777:
        raise CopymasterError(flag, "ZLE PRAVA", exit_status, _errno.EINVAL)
    return value


def _parse_umask(text: str) -> list[str]:
    changes = []
    for token in (t for t in text.split(",") if t):
        if len(changes) == UMASK_OPTIONS_MAX:
            break
        if len(token) != 3:
            raise UsageError("umask - unexpected value of UTR option")
        changes.append(token)
    return changes


def parse_options(argv: Sequence[str]) -> CopymasterOptions:
    """Parse the arguments that follow the program name."""
    try:
        pairs, positional = getopt.gnu_getopt(list(argv), _SHORT_OPTIONS, _LONG_OPTIONS)
    except getopt.GetoptError as exc:
        raise UsageError(exc.msg) from None

    options = CopymasterOptions()
    last_long = -1  # shared by --lseek and --truncate, as a failed scan leaves it as is

    for name, value in pairs:
        flag = _LONG_TO_SHORT.get(name, name)
        if flag == "-f":
            options.fast = True
        elif flag == "-s":
            options.slow = True
        elif flag == "-c":
            options.create = True
            options.create_mode = _parse_mode(value, options.create_mode, "c", 23)
        elif flag == "-o":
            options.overwrite = True
        elif flag == "-a":
            options.append = True
        elif flag == "-l":
            options.lseek = True
            match = _LSEEK.match(value)
            if match is None:
                raise UsageError("lseek - failed to scan 4 values")
            x, pos1, pos2, num = match.groups()
            last_long = int(pos1)
            options.lseek_options = LseekOptions(
                whence=0, pos1=int(pos1), pos2=int(pos2), num=int(num) % _SIZE_BITS
            )
            if x not in _WHENCE:
                raise UsageError("lseek - invalid value of x")
            options.lseek_options.whence = _WHENCE[x]
        elif flag == "-D":
            options.directory = True
        elif flag == "-d":
            options.delete = True
        elif flag == "-m":
            options.chmod = True
            options.chmod_mode = _parse_mode(value, options.chmod_mode, "m", 34)
        elif flag == "-i":
            options.inode = True
            number = _scan_unsigned(value)
            if number is not None:
                options.inode_number = number
        elif flag == "-u":
            options.umask = True
            options.umask_options = _parse_umask(value)
        elif flag == "-K":
            options.link = True
        elif flag == "-t":
            options.truncate = True
            size = _scan_long(value)
            if size is not None:
                last_long = size
            options.truncate_size = last_long
        elif flag == "-S":
            options.sparse = True

    if len(positional) != 2:
        raise UsageError("infile or outfile is missing")
    options.infile, options.outfile = positional
    return options


def format_options(options: CopymasterOptions) -> str:
    """Render the options as the tool's diagnostic listing."""
    o = options
    lines = [
        f"infile:        {o.infile}",
        f"outfile:       {o.outfile}",
        f"fast:          {int(o.fast)}",
        f"slow:          {int(o.slow)}",
        f"create:        {int(o.create)}",
        f"create_mode:   {o.create_mode:o}",
        f"overwrite:     {int(o.overwrite)}",
        f"append:        {int(o.append)}",
        f"lseek:         {int(o.lseek)}",
        f"lseek_options.x:    {o.lseek_options.whence}",
        f"lseek_options.pos1: {o.lseek_options.pos1}",
        f"lseek_options.pos2: {o.lseek_options.pos2}",
        f"lseek_options.num:  {o.lseek_options.num}",
        f"directory:     {int(o.directory)}",
        f"delete_opt:    {int(o.delete)}",
        f"chmod:         {int(o.chmod)}",
        f"chmod_mode:    {o.chmod_mode:o}",
        f"inode:         {int(o.inode)}",
        f"inode_number:  {o.inode_number}",
        f"umask:\t{int(o.umask)}",
    ]
    lines += [f"umask_options[{i}]: {change}" for i, change in enumerate(o.umask_options)]
    lines += [
        f"link:          {int(o.link)}",
        f"truncate:      {int(o.truncate)}",
        f"truncate_size: {o.truncate_size}",
        f"sparse:        {int(o.sparse)}",
    ]
    return "\n".join(lines) + "\n"