import errno
import os
import stat

import pytest

from copymaster.copier import copy, format_mode, list_directory, main
from copymaster.options import CopymasterError, CopymasterOptions, LseekOptions
from copymaster.validation import apply_umask_changes


@pytest.fixture
def umask022():
    old = os.umask(0o022)
    yield 0o022
    os.umask(old)


@pytest.fixture
def files(tmp_path):
    src = tmp_path / "in.txt"
    src.write_bytes(b"0123456789")
    return src, tmp_path / "out.txt"


def _opts(src, dst, **kwargs):
    return CopymasterOptions(infile=str(src), outfile=str(dst), **kwargs)


def test_format_mode_directory():
    assert format_mode(stat.S_IFDIR | 0o755) == "drwxr-xr-x"


def test_format_mode_regular_file():
    assert format_mode(stat.S_IFREG | 0o644) == "-rw-r--r--"


def test_format_mode_no_permissions():
    assert format_mode(stat.S_IFREG) == "-" * 10


def test_plain_copy(files):
    src, dst = files
    assert copy(_opts(src, dst)) is None
    assert dst.read_bytes() == src.read_bytes()
    assert stat.S_IMODE(dst.stat().st_mode) == stat.S_IMODE(src.stat().st_mode)


def test_plain_copy_missing_infile(tmp_path):
    with pytest.raises(CopymasterError) as info:
        copy(_opts(tmp_path / "missing", tmp_path / "out"))
    assert info.value.flag == "B"
    assert info.value.exit_status == 21
    assert info.value.message == "SUBOR NEEXISTUJE"
    assert info.value.errno == errno.ENOENT


def test_slow_and_fast_copy(files):
    src, dst = files
    copy(_opts(src, dst, slow=True))
    assert dst.read_bytes() == src.read_bytes()
    dst.write_bytes(b"x" * 50)
    copy(_opts(src, dst, fast=True))
    assert dst.read_bytes() == src.read_bytes()


def test_conflicting_options(files):
    src, dst = files
    with pytest.raises(CopymasterError) as info:
        copy(_opts(src, dst, fast=True, slow=True))
    assert info.value.exit_status == 42
    assert not dst.exists()


def test_create_uses_given_mode(files, umask022):
    src, dst = files
    copy(_opts(src, dst, create=True, create_mode=0o640))
    assert dst.read_bytes() == src.read_bytes()
    assert stat.S_IMODE(dst.stat().st_mode) == 0o640 & ~umask022


def test_create_existing_outfile(files):
    src, dst = files
    dst.write_bytes(b"old")
    with pytest.raises(CopymasterError) as info:
        copy(_opts(src, dst, create=True, create_mode=0o644))
    assert (info.value.flag, info.value.message, info.value.exit_status) == (
        "c", "SUBOR EXISTUJE", 23)
    assert info.value.errno == errno.EEXIST
    assert dst.read_bytes() == b"old"


def test_create_missing_infile(tmp_path):
    with pytest.raises(CopymasterError) as info:
        copy(_opts(tmp_path / "none", tmp_path / "out", create=True, create_mode=0o644))
    assert (info.value.flag, info.value.message, info.value.exit_status) == (
        "c", "INA CHYBA", 23)


def test_overwrite_keeps_tail(files):
    src, dst = files
    old = b"abcdefghijklmnop"
    dst.write_bytes(old)
    copy(_opts(src, dst, overwrite=True))
    data = src.read_bytes()
    assert dst.read_bytes() == data + old[len(data):]


def test_overwrite_missing_outfile(files):
    src, dst = files
    with pytest.raises(CopymasterError) as info:
        copy(_opts(src, dst, overwrite=True))
    assert (info.value.flag, info.value.message, info.value.exit_status) == (
        "o", "SUBOR NEEXISTUJE", 24)


def test_append(files):
    src, dst = files
    dst.write_bytes(b"start")
    copy(_opts(src, dst, append=True))
    assert dst.read_bytes() == b"start" + src.read_bytes()


def test_append_missing_outfile(files):
    src, dst = files
    with pytest.raises(CopymasterError) as info:
        copy(_opts(src, dst, append=True))
    assert (info.value.flag, info.value.exit_status) == ("a", 22)


def test_lseek_copies_slice(files):
    src, dst = files
    old = b"abcdefghij"
    dst.write_bytes(old)
    seek = LseekOptions(whence=os.SEEK_SET, pos1=2, pos2=1, num=3)
    moved = copy(_opts(src, dst, lseek=True, lseek_options=seek))
    data = src.read_bytes()
    assert moved == data[2:5]
    assert dst.read_bytes() == old[:1] + data[2:5] + old[4:]


def test_lseek_bad_infile_position(files):
    src, dst = files
    dst.write_bytes(b"abc")
    seek = LseekOptions(whence=os.SEEK_SET, pos1=-5, pos2=0, num=1)
    with pytest.raises(CopymasterError) as info:
        copy(_opts(src, dst, lseek=True, lseek_options=seek))
    assert info.value.message == "CHYBA POZICIE infile"
    assert info.value.exit_status == 33
    assert info.value.errno == errno.EINVAL


def test_lseek_missing_outfile(files):
    src, dst = files
    with pytest.raises(CopymasterError) as info:
        copy(_opts(src, dst, lseek=True, lseek_options=LseekOptions(num=1)))
    assert (info.value.flag, info.value.message) == ("l", "INA CHYBA")


def test_link_shares_inode(files):
    src, dst = files
    copy(_opts(src, dst, link=True))
    assert dst.stat().st_ino == src.stat().st_ino


def test_link_existing_outfile(files):
    src, dst = files
    dst.write_bytes(b"x")
    with pytest.raises(CopymasterError) as info:
        copy(_opts(src, dst, link=True))
    assert info.value.message == "VYSTUPNY SUBOR UZ EXISTUJE"
    assert info.value.exit_status == 30


def test_link_missing_infile(tmp_path):
    with pytest.raises(CopymasterError) as info:
        copy(_opts(tmp_path / "none", tmp_path / "out", link=True))
    assert info.value.message == "VSTUPNY SUBOR NEEXISTUJE"


def test_inode_matches(files):
    src, dst = files
    copy(_opts(src, dst, inode=True, inode_number=src.stat().st_ino))
    assert dst.read_bytes() == src.read_bytes()


def test_inode_mismatch(files):
    src, dst = files
    with pytest.raises(CopymasterError) as info:
        copy(_opts(src, dst, inode=True, inode_number=src.stat().st_ino + 1))
    assert (info.value.flag, info.value.message, info.value.exit_status) == (
        "i", "ZLY INODE", 27)
    assert not dst.exists()


def test_delete_removes_infile(files):
    src, dst = files
    data = src.read_bytes()
    copy(_opts(src, dst, create=True, create_mode=0o644, delete=True))
    assert dst.read_bytes() == data
    assert not src.exists()


def test_truncate_shortens_infile(files):
    src, dst = files
    data = src.read_bytes()
    copy(_opts(src, dst, truncate=True, truncate_size=4))
    assert dst.read_bytes() == data
    assert src.read_bytes() == data[:4]


def test_truncate_negative_size(files):
    src, dst = files
    with pytest.raises(CopymasterError) as info:
        copy(_opts(src, dst, truncate=True, truncate_size=-1))
    assert info.value.message == "ZAPORNA VELKOST"
    assert info.value.exit_status == 31


def test_chmod_sets_mode(files):
    src, dst = files
    copy(_opts(src, dst, chmod=True, chmod_mode=0o600))
    assert stat.S_IMODE(dst.stat().st_mode) == 0o600


def test_umask_applied_and_restored(files, umask022):
    src, dst = files
    os.chmod(src, 0o666)
    changes = ["o-r", "g+w"]
    copy(_opts(src, dst, umask=True, umask_options=changes))
    expected = 0o666 & ~apply_umask_changes(umask022, changes)
    assert stat.S_IMODE(dst.stat().st_mode) == expected
    current = os.umask(umask022)
    assert current == umask022


def test_bad_umask_change(files):
    src, dst = files
    with pytest.raises(CopymasterError) as info:
        copy(_opts(src, dst, umask=True, umask_options=["x+r"]))
    assert (info.value.flag, info.value.exit_status) == ("u", 32)


def test_sparse_copy_preserves_content(tmp_path):
    src = tmp_path / "sparse.bin"
    data = b"head" + b"\0" * 65536 + b"tail" + b"\0" * 8192
    src.write_bytes(data)
    dst = tmp_path / "copy.bin"
    copy(_opts(src, dst, sparse=True))
    assert dst.read_bytes() == data
    assert dst.stat().st_size == len(data)


def test_list_directory(tmp_path):
    (tmp_path / "a.txt").write_bytes(b"hello")
    (tmp_path / "sub").mkdir()
    lines = list_directory(str(tmp_path))
    assert sorted(line.rsplit(" ", 1)[1] for line in lines) == ["a.txt", "sub"]
    for line in lines:
        name = line.rsplit(" ", 1)[1]
        info = os.stat(tmp_path / name)
        fields = line.split(" ")
        assert fields[0] == format_mode(info.st_mode)
        assert int(fields[4]) == info.st_size


def test_list_directory_on_file(files):
    src, _ = files
    with pytest.raises(CopymasterError) as info:
        list_directory(str(src))
    assert info.value.message == "VSTUPNY SUBOR NIE JE ADRESAR"
    assert info.value.exit_status == 28


def test_directory_option_writes_listing(tmp_path):
    folder = tmp_path / "dir"
    folder.mkdir()
    (folder / "one").write_bytes(b"1")
    out = tmp_path / "listing.txt"
    copy(_opts(folder, out, directory=True))
    text = out.read_text()
    assert text == "".join(line + "\n" for line in list_directory(str(folder)))
    assert text.endswith(" one\n")


def test_main_copies_and_prints_options(files, capsys):
    src, dst = files
    assert main([str(src), str(dst)]) == 0
    assert dst.read_bytes() == src.read_bytes()
    assert f"infile:        {src}" in capsys.readouterr().out


def test_main_conflict_status(files, capsys):
    src, dst = files
    assert main(["-f", "-s", str(src), str(dst)]) == 42
    assert "CHYBA PREPINACOV" in capsys.readouterr().err


def test_main_usage_error(capsys):
    assert main(["only-one"]) == 1
    assert "infile or outfile is missing" in capsys.readouterr().err


def test_main_lseek_echoes_data(files, capsys):
    src, dst = files
    dst.write_bytes(b"abcdefghij")
    assert main(["-l", "b,2,1,3", str(src), str(dst)]) == 0
    assert capsys.readouterr().out.endswith(src.read_text()[2:5])


def test_main_reports_error_status(tmp_path, capsys):
    assert main([str(tmp_path / "none"), str(tmp_path / "out")]) == 21
    assert capsys.readouterr().err.startswith(f"B:{errno.ENOENT}:")