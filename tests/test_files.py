import errno
import os
from pathlib import Path

import pytest

import fsbox.services.filesystem as filesystem
from fsbox.errors import (
    AlreadyExists,
    CrossDevice,
    InvalidArgument,
    IsADirectory,
    NotADirectory,
    NotEmpty,
    NotFound,
    Unexpected,
    from_os_error,
)
from fsbox.services.filesystem import FileSystemService
from fsbox.services.paths import PathResolver


@pytest.fixture
def fs(tmp_path: Path) -> FileSystemService:
    return FileSystemService(PathResolver(tmp_path), stat_workers=4)


def at(fs: FileSystemService, rel: str) -> Path:
    return fs.resolver.resolve(rel)


def test_write_then_read_utf8(fs):
    assert fs.write_file(at(fs, "ok.txt"), "héllo") == "ok"
    assert fs.read_file(at(fs, "ok.txt"), "utf8") == "héllo"


def test_base64_write_reads_back_both_ways(fs):
    fs.write_file(at(fs, "x.bin"), "aGVsbG8=", "base64")
    assert fs.read_file(at(fs, "x.bin"), "base64") == "aGVsbG8="
    assert fs.read_file(at(fs, "x.bin"), "utf8") == "hello"


def test_binary_bytes_survive_base64(fs):
    fs.write_file(at(fs, "raw.bin"), "AP/+gA==", "base64")
    assert at(fs, "raw.bin").read_bytes() == b"\x00\xff\xfe\x80"
    assert fs.read_file(at(fs, "raw.bin"), "base64") == "AP/+gA=="


def test_invalid_utf8_is_replaced(fs):
    at(fs, "bad.txt").write_bytes(b"ok\xff")
    assert fs.read_file(at(fs, "bad.txt"), "utf8") == "ok�"


def test_malformed_base64_does_not_touch_file(fs):
    target = at(fs, "keep.txt")
    target.write_text("original", encoding="utf-8")
    with pytest.raises(InvalidArgument):
        fs.write_file(target, "abc", "base64")
    assert target.read_text(encoding="utf-8") == "original"


@pytest.mark.parametrize("data", ["!!!!", "aGVs bG8=", "aGVsbG8=\n", "aGVs*bG8="])
def test_non_alphabet_base64_rejected(fs, data):
    target = at(fs, "keep.txt")
    target.write_text("original", encoding="utf-8")
    with pytest.raises(InvalidArgument):
        fs.write_file(target, data, "base64")
    assert target.read_text(encoding="utf-8") == "original"


def test_overwrite_truncates_and_append_extends(fs):
    target = at(fs, "log.txt")
    fs.write_file(target, "first line that is long")
    fs.write_file(target, "short")
    assert target.read_text(encoding="utf-8") == "short"
    fs.write_file(target, "+more", append=True)
    assert target.read_text(encoding="utf-8") == "short+more"


def test_append_creates_missing_file(fs):
    fs.write_file(at(fs, "new.txt"), "abc", append=True)
    assert at(fs, "new.txt").read_text(encoding="utf-8") == "abc"


def test_write_requires_existing_parent(fs):
    with pytest.raises(NotFound):
        fs.write_file(at(fs, "missing/dir/f.txt"), "x")
    assert not at(fs, "missing").exists()


def test_write_to_directory_fails(fs):
    at(fs, "d").mkdir()
    with pytest.raises(IsADirectory):
        fs.write_file(at(fs, "d"), "x")


def test_read_errors(fs):
    with pytest.raises(NotFound):
        fs.read_file(at(fs, "nope.txt"))
    at(fs, "d").mkdir()
    with pytest.raises(IsADirectory):
        fs.read_file(at(fs, "d"))


def test_list_dir_describes_entries(fs):
    at(fs, "sub").mkdir()
    at(fs, "f.txt").write_bytes(b"12345")
    entries = {e["name"]: e for e in fs.list_dir(at(fs, "."))}

    assert set(entries) == {"sub", "f.txt"}
    assert entries["f.txt"]["type"] == "file"
    assert entries["f.txt"]["size"] == 5
    assert entries["sub"]["type"] == "directory"
    assert entries["f.txt"]["mtimeMs"] == pytest.approx(os.stat(at(fs, "f.txt")).st_mtime * 1000, abs=1)


def test_list_dir_is_one_level_only(fs):
    at(fs, "a/b").mkdir(parents=True)
    at(fs, "a/b/deep.txt").write_text("x", encoding="utf-8")
    assert [e["name"] for e in fs.list_dir(at(fs, "."))] == ["a"]


def test_list_empty_directory(fs):
    assert fs.list_dir(at(fs, ".")) == []


def test_list_errors(fs):
    with pytest.raises(NotFound):
        fs.list_dir(at(fs, "nope"))
    at(fs, "f.txt").write_text("x", encoding="utf-8")
    with pytest.raises(NotADirectory):
        fs.list_dir(at(fs, "f.txt"))


def test_list_fails_whole_when_one_stat_fails(fs, monkeypatch):
    for i in range(10):
        at(fs, f"f{i}.txt").write_text("x", encoding="utf-8")
    real_stat_entry = filesystem.stat_entry

    def flaky(p: Path):
        if p.name == "f7.txt":
            raise FileNotFoundError(errno.ENOENT, "No such file or directory", str(p))
        return real_stat_entry(p)

    monkeypatch.setattr(filesystem, "stat_entry", flaky)
    with pytest.raises(NotFound):
        fs.list_dir(at(fs, "."))


def test_mkdir_recursive_is_idempotent(fs):
    assert fs.make_dir(at(fs, "a/b/c"), recursive=True) == "ok"
    assert fs.make_dir(at(fs, "a/b/c"), recursive=True) == "ok"
    assert at(fs, "a/b/c").is_dir()


def test_mkdir_non_recursive(fs):
    fs.make_dir(at(fs, "d"), recursive=False)
    with pytest.raises(AlreadyExists):
        fs.make_dir(at(fs, "d"), recursive=False)
    with pytest.raises(NotFound):
        fs.make_dir(at(fs, "x/y"), recursive=False)


def test_mkdir_over_file_fails(fs):
    at(fs, "f").write_text("x", encoding="utf-8")
    with pytest.raises(AlreadyExists):
        fs.make_dir(at(fs, "f"), recursive=True)


def test_rename_moves_and_replaces(fs):
    at(fs, "a.txt").write_text("A", encoding="utf-8")
    at(fs, "b.txt").write_text("B", encoding="utf-8")
    assert fs.rename(at(fs, "a.txt"), at(fs, "b.txt")) == "ok"
    assert not at(fs, "a.txt").exists()
    assert at(fs, "b.txt").read_text(encoding="utf-8") == "A"


def test_rename_missing_source(fs):
    with pytest.raises(NotFound):
        fs.rename(at(fs, "ghost"), at(fs, "other"))


def test_rename_across_devices(fs, monkeypatch):
    at(fs, "a.txt").write_text("A", encoding="utf-8")

    def exdev(src, dst):
        raise OSError(errno.EXDEV, "Invalid cross-device link", str(src))

    monkeypatch.setattr(filesystem.os, "replace", exdev)
    with pytest.raises(CrossDevice):
        fs.rename(at(fs, "a.txt"), at(fs, "b.txt"))


def test_root_cannot_be_renamed_or_removed(fs):
    with pytest.raises(InvalidArgument):
        fs.rename(at(fs, "."), at(fs, "elsewhere"))
    with pytest.raises(InvalidArgument):
        fs.remove(at(fs, "."), recursive=True)
    assert fs.resolver.root.is_dir()


def test_remove_file_ignores_recursive(fs):
    at(fs, "f.txt").write_text("x", encoding="utf-8")
    assert fs.remove(at(fs, "f.txt"), recursive=True) == "ok"
    assert not at(fs, "f.txt").exists()


def test_remove_directory(fs):
    at(fs, "empty").mkdir()
    fs.remove(at(fs, "empty"))
    assert not at(fs, "empty").exists()

    at(fs, "full/inner").mkdir(parents=True)
    at(fs, "full/inner/f.txt").write_text("x", encoding="utf-8")
    with pytest.raises(NotEmpty):
        fs.remove(at(fs, "full"), recursive=False)
    assert at(fs, "full/inner/f.txt").read_text(encoding="utf-8") == "x"

    fs.remove(at(fs, "full"), recursive=True)
    assert not at(fs, "full").exists()


def test_remove_missing(fs):
    with pytest.raises(NotFound):
        fs.remove(at(fs, "ghost"))


def test_unmapped_os_errors_are_unexpected():
    err = from_os_error(PermissionError(errno.EACCES, "Permission denied", "/x"))
    assert isinstance(err, Unexpected)
    assert err.message == "Permission denied: /x"


def test_remove_symlink_keeps_target(fs):
    at(fs, "real").mkdir()
    at(fs, "real/precious.txt").write_text("x", encoding="utf-8")
    link = fs.resolver.resolve_entry("alias")
    link.symlink_to(at(fs, "real"))

    fs.remove(link, recursive=True)
    assert not os.path.lexists(link)
    assert at(fs, "real/precious.txt").read_text(encoding="utf-8") == "x"


def test_remove_dangling_symlink(fs):
    link = fs.resolver.resolve_entry("dangling")
    link.symlink_to(fs.resolver.root / "nowhere")
    fs.remove(link)
    assert not os.path.lexists(link)
