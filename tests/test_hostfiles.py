import gzip

import pytest

from x16host.hostfiles import (
    FileRegistry,
    Origin,
    find_extension,
    is_compressed_type,
)


@pytest.mark.parametrize("name", ["a.gz", "a-gz", "a.z", "a-z", "a_z", "a.Z"])
def test_compressed_names(name):
    assert is_compressed_type(name) is True


@pytest.mark.parametrize("name", ["a.prg", "a.img", "a.gzip", "z", "a.GZ"])
def test_uncompressed_names(name):
    assert is_compressed_type(name) is False


@pytest.mark.parametrize(
    "path, mark, expected",
    [
        ("game.prg", None, ".prg"),
        ("noext", None, None),
        (".hidden", None, None),
        ("sd.img.gz", None, ".gz"),
        ("a.b.c", 2, ".b.c"),
        (None, None, None),
    ],
)
def test_find_extension(path, mark, expected):
    assert find_extension(path, mark) == expected


def test_read_plain_file(tmp_path):
    content = b"hello world"
    path = tmp_path / "data.bin"
    path.write_bytes(content)
    registry = FileRegistry()
    with registry.open(path, "rb") as f:
        assert f.size() == len(content)
        assert f.read(5) == content[:5]
        assert f.tell() == 5
        assert f.read8() == content[5]
        assert f.tell() == 6
    assert registry.files == []


def test_seek_clamps_to_size(tmp_path):
    content = bytes(range(10))
    path = tmp_path / "data.bin"
    path.write_bytes(content)
    with FileRegistry().open(path, "rb") as f:
        f.seek(100, Origin.SET)
        assert f.tell() == len(content)
        f.seek(3, Origin.SET)
        assert f.read8() == content[3]
        f.seek(0, Origin.SET)
        f.seek(-20, Origin.CUR)
        assert f.tell() == len(content)
        f.seek(2, Origin.END)
        assert f.tell() == len(content) - 2
        assert f.read8() == content[-2]
        f.seek(20, Origin.END)
        assert f.tell() == len(content)


def test_read8_at_end_gives_zero(tmp_path):
    path = tmp_path / "empty.bin"
    path.write_bytes(b"")
    with FileRegistry().open(path, "rb") as f:
        assert f.read8() == 0
        assert f.tell() == 0


def test_write_marks_modified_and_advances(tmp_path):
    path = tmp_path / "out.bin"
    with FileRegistry().open(path, "wb+") as f:
        assert f.modified is False
        assert f.write(b"abc") == 3
        assert f.tell() == 3
        assert f.modified is True
        assert f.write8(0x41) == 1
        assert f.tell() == 4
    assert path.read_bytes() == b"abcA"


def test_compressed_file_round_trip(tmp_path, capsys):
    payload = bytes(range(256)) * 4
    path = tmp_path / "disk.img.gz"
    path.write_bytes(gzip.compress(payload))
    registry = FileRegistry()
    f = registry.open(path, "rb+")
    tmp = tmp_path / "disk.img.gz.tmp"
    assert tmp.exists()
    assert f.size() == len(payload)
    assert f.read(len(payload)) == payload
    f.seek(0, Origin.SET)
    f.write(b"XY")
    f.close()
    assert not tmp.exists()
    assert gzip.decompress(path.read_bytes()) == b"XY" + payload[2:]
    out = capsys.readouterr().out
    assert "Decompressing" in out
    assert "Recompressing" in out


def test_unmodified_compressed_file_is_left_alone(tmp_path):
    original = gzip.compress(b"untouched data")
    path = tmp_path / "disk.img.gz"
    path.write_bytes(original)
    with FileRegistry().open(path, "rb") as f:
        assert f.read(100) == b"untouched data"
    assert path.read_bytes() == original
    assert not (tmp_path / "disk.img.gz.tmp").exists()


def test_uncompressed_data_with_compressed_name_is_read_as_is(tmp_path):
    path = tmp_path / "plain.gz"
    path.write_bytes(b"not compressed")
    with FileRegistry().open(path, "rb") as f:
        assert f.read(100) == b"not compressed"


def test_missing_file_raises(tmp_path):
    registry = FileRegistry()
    with pytest.raises(FileNotFoundError):
        registry.open(tmp_path / "missing.bin", "rb")
    with pytest.raises(FileNotFoundError):
        registry.open(tmp_path / "missing.img.gz", "rb")
    assert registry.files == []


def test_registry_order_and_shutdown(tmp_path):
    first_path = tmp_path / "a.bin"
    second_path = tmp_path / "b.bin"
    first_path.write_bytes(b"a")
    second_path.write_bytes(b"b")
    registry = FileRegistry()
    first = registry.open(first_path, "rb")
    second = registry.open(second_path, "rb")
    assert registry.files == [second, first]
    registry.shutdown()
    assert registry.files == []
    assert first.closed and second.closed


def test_close_removes_from_registry(tmp_path):
    path = tmp_path / "a.bin"
    path.write_bytes(b"a")
    registry = FileRegistry()
    f = registry.open(path, "rb")
    f.close()
    f.close()
    assert f not in registry.files