import io
import zipfile

import pytest

from swkit.archiver import IllegalPathError, unarchive


def make_zip(entries):
    buf = io.BytesIO()
    with zipfile.ZipFile(buf, "w") as zf:
        for name, data in entries:
            zf.writestr(name, data)
    return buf.getvalue()


def test_extracts_files(tmp_path):
    buf = make_zip([("VERSION", b"1.2.3"), ("bin/tool.txt", b"hello")])
    unarchive(buf, tmp_path)
    assert (tmp_path / "VERSION").read_bytes() == b"1.2.3"
    assert (tmp_path / "bin" / "tool.txt").read_bytes() == b"hello"


def test_extracts_directories(tmp_path):
    buf = make_zip([("logs/", b""), ("logs/a/b.txt", b"x")])
    unarchive(buf, str(tmp_path))
    assert (tmp_path / "logs").is_dir()
    assert (tmp_path / "logs" / "a" / "b.txt").read_bytes() == b"x"


def test_overwrites_existing(tmp_path):
    (tmp_path / "f.txt").write_bytes(b"a much longer old content")
    unarchive(make_zip([("f.txt", b"new")]), tmp_path)
    assert (tmp_path / "f.txt").read_bytes() == b"new"


def test_zip_slip_rejected(tmp_path):
    dest = tmp_path / "out"
    dest.mkdir()
    buf = make_zip([("../evil.txt", b"bad")])
    with pytest.raises(IllegalPathError, match="illegal file path"):
        unarchive(buf, dest)
    assert not (tmp_path / "evil.txt").exists()


def test_stops_at_illegal_entry(tmp_path):
    buf = make_zip([("ok.txt", b"1"), ("../../x.txt", b"2"), ("later.txt", b"3")])
    with pytest.raises(IllegalPathError):
        unarchive(buf, tmp_path)
    assert (tmp_path / "ok.txt").read_bytes() == b"1"
    assert not (tmp_path / "later.txt").exists()


def test_invalid_archive(tmp_path):
    with pytest.raises(zipfile.BadZipFile):
        unarchive(b"not a zip file at all", tmp_path)