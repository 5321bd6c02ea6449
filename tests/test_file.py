import pytest

from strobe.file import File, FileAccess, FileSeek

CREATE_RW = FileAccess.READ_WRITE | FileAccess.CREATE


def test_write_then_read_round_trip(tmp_path):
    path = tmp_path / "data.bin"
    payload = b"hello strobe"
    with File(path, CREATE_RW) as f:
        assert f.write(payload) == len(payload)
        assert f.size() == len(payload)
        f.seek(0)
        assert f.read(len(payload)) == payload
    assert path.read_bytes() == payload


def test_read_stops_at_end_of_file(tmp_path):
    path = tmp_path / "short.bin"
    path.write_bytes(b"abc")
    with File(path) as f:
        assert f.read(100) == b"abc"
        assert f.read(10) == b""


def test_seek_and_tell(tmp_path):
    path = tmp_path / "seek.bin"
    path.write_bytes(b"0123456789")
    with File(path) as f:
        f.seek(4)
        assert f.tell() == 4
        assert f.read(2) == b"45"
        f.seek(1, FileSeek.CUR)
        assert f.read(1) == b"7"
        f.seek(0, FileSeek.END)
        assert f.tell() == f.size()


def test_truncate_changes_size(tmp_path):
    path = tmp_path / "t.bin"
    path.write_bytes(b"0123456789")
    with File(path, FileAccess.READ_WRITE) as f:
        f.truncate(3)
        assert f.size() == 3
    assert path.read_bytes() == b"012"


def test_trunc_flag_empties_file(tmp_path):
    path = tmp_path / "t.bin"
    path.write_bytes(b"old content")
    with File(path, FileAccess.WRITE | FileAccess.TRUNC) as f:
        assert f.size() == 0


def test_append_writes_at_end(tmp_path):
    path = tmp_path / "log.txt"
    path.write_bytes(b"first;")
    with File(path, FileAccess.WRITE | FileAccess.APPEND) as f:
        f.write(b"second")
    assert path.read_bytes() == b"first;second"


def test_exclusive_create_fails_on_existing(tmp_path):
    path = tmp_path / "x.bin"
    path.write_bytes(b"")
    with pytest.raises(FileExistsError):
        File(path, CREATE_RW | FileAccess.EXCLUSIVE)


def test_missing_file_raises(tmp_path):
    with pytest.raises(FileNotFoundError):
        File(tmp_path / "missing.bin")


def test_access_without_read_or_write_is_rejected(tmp_path):
    with pytest.raises(ValueError):
        File(tmp_path / "x.bin", FileAccess.CREATE)


@pytest.mark.parametrize("flag", [FileAccess.TRUNC, FileAccess.APPEND])
def test_trunc_and_append_require_write(tmp_path, flag):
    path = tmp_path / "x.bin"
    path.write_bytes(b"keep")
    with pytest.raises(ValueError):
        File(path, FileAccess.READ | flag)
    assert path.read_bytes() == b"keep"


def test_directory_path_is_rejected(tmp_path):
    with pytest.raises(ValueError):
        File(f"{tmp_path}/")


def test_close_and_context_manager(tmp_path):
    path = tmp_path / "c.bin"
    with File(path, CREATE_RW) as f:
        assert f.is_open()
    assert not f.is_open()
    assert not f
    f.close()
    assert not f.is_open()


def test_closed_file_operations_raise(tmp_path):
    f = File()
    assert not f.is_open()
    with pytest.raises(RuntimeError):
        f.truncate(0)
    with pytest.raises(ValueError):
        f.read(1)
    with pytest.raises(ValueError):
        f.tell()