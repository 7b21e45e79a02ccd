# copymaster

`copymaster` copies one file to another. Options decide how the
destination is opened, how much is copied and what happens to the source
and the destination afterwards. It can also write a long listing of a
directory into a file. A second module holds small helpers for reading,
writing, linking and listing files.

## Installation

```
pip install .
```

For the tests:

```
pip install .[test]
pytest
```

## Command line

```
copymaster [OPTION]... SOURCE DEST
```

Before doing anything the command prints every parsed option to
standard output, one `name: value` line each.

| Option | Meaning |
| --- | --- |
| `-f`, `--fast` | copy in blocks of up to 1,000,000 bytes |
| `-s`, `--slow` | copy one byte at a time |
| `-c MODE`, `--create MODE` | create DEST with octal MODE (at most `777`); fail if DEST exists |
| `-o`, `--overwrite` | write into an existing DEST without truncating it |
| `-a`, `--append` | append to an existing DEST; with `--create`, create it and append |
| `-l X,POS1,POS2,NUM`, `--lseek X,POS1,POS2,NUM` | copy up to NUM bytes from offset POS1 of SOURCE to offset POS2 of an existing DEST. X is `b` (from the beginning), `c` (from the current position) or `e` (from the end) and applies to POS2. The copied bytes are also written to standard output |
| `-D`, `--directory` | write a long listing of directory SOURCE into DEST |
| `-d`, `--delete` | remove SOURCE after copying (only together with `--create`) |
| `-m MODE`, `--chmod MODE` | set DEST to octal MODE (at most `777`) after copying |
| `-i INODE`, `--inode INODE` | copy only if SOURCE has this inode number and is not a directory |
| `-u LIST`, `--umask LIST` | adjust the umask for the run, e.g. `u-r,g+w,o+x` |
| `-K`, `--link` | make DEST a hard link to SOURCE |
| `-t SIZE`, `--truncate SIZE` | truncate SOURCE to SIZE bytes after copying |
| `-S`, `--sparse` | write DEST as a sparse copy, skipping all-zero 4096-byte blocks |

With no option, SOURCE is copied to DEST, which is created or truncated
and gets SOURCE's permission bits.

In a `--umask` list each item has the form `[ugo][+-][rwx]`; `+` grants
the permission (clears the bit in the umask) and `-` withholds it (sets
the bit). At most nine items are used and the previous umask is restored
when the run ends.

A listing line written by `--directory` looks like

```
-rw-r--r-- 1 1000 1000 42 05-03-2024 notes.txt
```

with permissions, link count, owner and group ids, size, modification
date (day-month-year) and name; `.` and `..` are left out.

### Exit status

* `0` on success.
* `1` when the command line cannot be parsed; a usage message goes to
  standard error.
* `42` when two options that may not be combined are given (for example
  `--fast` with `--slow`, `--create` with `--overwrite`, `--directory` or
  `--sparse` with most other options, or `--delete` without `--create`);
  `CHYBA PREPINACOV` goes to standard error.
* Otherwise a line `FLAG:ERRNO:STRERROR:MESSAGE` goes to standard error
  and the exit status belongs to the option that failed: 21 plain copy,
  22 `--append`, 23 `--create`, 24 `--overwrite`, 26 `--delete`,
  27 `--inode`, 28 `--directory`, 30 `--link`, 31 `--truncate`,
  32 `--umask`, 33 `--lseek`, 34 `--chmod`, 41 `--sparse`.

## Library

```python
from copymaster.options import parse_options
from copymaster.copier import copy, list_directory

options = parse_options(["--create", "644", "a.txt", "b.txt"])
copy(options)

for line in list_directory("."):
    print(line)
```

* `copymaster.options` – `parse_options(argv)` takes the arguments that
  follow the program name and returns a `CopymasterOptions` dataclass
  (with an `LseekOptions` for `--lseek`); `format_options(options)`
  renders the listing the command prints. Failures raise
  `CopymasterError`, which carries `flag`, `message`, `exit_status` and
  `errno`; `UsageError` is its subclass for command-line errors.
* `copymaster.validation` – `check_option_conflicts(options)`,
  `validate_umask_changes(changes)` and `apply_umask_changes(mask, changes)`,
  which returns the new umask.
* `copymaster.copier` – `copy(options)` does the work and returns the
  copied bytes in `--lseek` mode, otherwise `None`; `list_directory(path)`,
  `format_mode(mode)` (an `ls`-style permission string) and
  `main(argv=None)`, the command itself, which returns its exit status.
* `copymaster.fileops` – `touch(path, exclusive=False)`,
  `read_bytes_at(path, offset=0, count=20)`, `write_at(path, offset, data)`,
  `fill_at(path, count, position, char)`, `append_bytes(path, data)`,
  `describe_file(path)`, `is_directory(path)`, `inode_of(path)`,
  `link_either_way(first, second)` and `dos_listing(path)`, which returns a
  `DirectorySummary` whose `str()` is a DOS `dir`-style listing with file
  and directory totals.

## Limits

`copymaster` works on one SOURCE and one DEST at a time; it does not copy
directories recursively, and it relies on POSIX file calls (umask, hard
links, inode numbers).