"""Checks on option combinations and on umask change lists."""

from __future__ import annotations

from typing import Iterable

from copymaster.options import CopymasterError, CopymasterOptions

CONFLICT_EXIT_STATUS = 42
UMASK_EXIT_STATUS = 32

_CONFLICTS: tuple[tuple[str, str], ...] = (
    ("fast", "slow"),
    ("create", "overwrite"),
    ("overwrite", "append"),
    ("lseek", "overwrite"),
    ("lseek", "append"),
    ("lseek", "create"),
    ("lseek", "link"),
    ("create", "link"),
    ("append", "link"),
    ("overwrite", "link"),
    *(
        (name, "directory")
        for name in (
            "fast", "slow", "create", "overwrite", "append", "lseek", "delete",
            "chmod", "inode", "umask", "link", "truncate", "sparse",
        )
    ),
    *(
        (name, "sparse")
        for name in (
            "fast", "slow", "create", "overwrite", "append", "lseek", "delete",
            "chmod", "inode", "umask", "link", "truncate",
        )
    ),
)

_WHO_SHIFT = {"u": 6, "g": 3, "o": 0}
_PERM_BIT = {"r": 4, "w": 2, "x": 1}


class _OptionConflict(CopymasterError):
    """Two options that may not be used together were both given."""

    def __init__(self, first: str, second: str):
        self.options = (first, second)
        super().__init__("?", "CHYBA PREPINACOV", CONFLICT_EXIT_STATUS, 0)

    def __str__(self) -> str:
        return "CHYBA PREPINACOV"


def check_option_conflicts(options: CopymasterOptions) -> None:
    """Raise if the options hold a combination the tool refuses."""
    for first, second in _CONFLICTS:
        if getattr(options, first) and getattr(options, second):
            raise _OptionConflict(first, second)
    if options.delete and not options.create:
        raise _OptionConflict("delete", "create")


def validate_umask_changes(changes: Iterable[str]) -> None:
    """Raise unless every change has the form [ugo][+-][rwx]."""
    for change in changes:
        if (
            len(change) != 3
            or change[0] not in _WHO_SHIFT
            or change[1] not in "+-"
            or change[2] not in _PERM_BIT
        ):
            raise CopymasterError("u", "ZLA MASKA", UMASK_EXIT_STATUS, 0)


def apply_umask_changes(mask: int, changes: Iterable[str]) -> int:
    """Return the umask that results from applying the changes to mask.

    A '+' grants the permission, clearing its bit in the mask; a '-'
    withholds it, setting the bit.
    """
    changes = list(changes)
    validate_umask_changes(changes)
    if not 0 <= mask <= 0o777:
        raise ValueError(f"umask out of range: {mask:o}")
    for who, op, what in changes:
        bit = _PERM_BIT[what] << _WHO_SHIFT[who]
        if op == "+":
            mask &= ~bit
        else:
            mask |= bit
    return mask