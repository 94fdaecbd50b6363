# fsbox/services/filesystem.py
from __future__ import annotations

import base64
import binascii
import os
import shutil
import stat
from concurrent.futures import FIRST_EXCEPTION, ThreadPoolExecutor, wait
from contextlib import contextmanager
from pathlib import Path
from typing import Any, Dict, Iterator, List

from fsbox.errors import InvalidArgument, from_os_error
from fsbox.services.paths import PathResolver

OK = "ok"


@contextmanager
def _os_errors() -> Iterator[None]:
    try:
        yield
    except OSError as exc:
        raise from_os_error(exc) from exc


def _entry_type(mode: int) -> str:
    if stat.S_ISREG(mode):
        return "file"
    if stat.S_ISDIR(mode):
        return "directory"
    return "other"


def stat_entry(p: Path) -> Dict[str, Any]:
    st = os.stat(p)
    return {
        "name": p.name,
        "type": _entry_type(st.st_mode),
        "size": st.st_size,
        "mtimeMs": st.st_mtime_ns / 1_000_000,
    }


def decode_payload(data: str, encoding: str) -> bytes:
    if encoding == "base64":
        try:
            return base64.b64decode(data, validate=True)
        except (binascii.Error, ValueError) as exc:
            raise InvalidArgument(f"data is not valid base64: {exc}") from exc
    return data.encode("utf-8")


class FileSystemService:
    """
    One executor per tool. Every method receives paths that the resolver has
    already confined to the root and performs a single filesystem action.

    OSErrors are translated into the sandbox error taxonomy here, at the
    executor boundary. Nothing is retried.
    """

    def __init__(self, resolver: PathResolver, stat_workers: int = 16):
        self.resolver = resolver
        self.stat_workers = max(1, stat_workers)

    def list_dir(self, path: Path) -> List[Dict[str, Any]]:
        with _os_errors():
            with os.scandir(path) as it:
                children = [path / entry.name for entry in it]
            return self._stat_all(children)

    def _stat_all(self, children: List[Path]) -> List[Dict[str, Any]]:
        # Bounded fan-out; one failed stat fails the whole listing.
        if not children:
            return []
        workers = min(self.stat_workers, len(children))
        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="fs-stat") as pool:
            futures = [pool.submit(stat_entry, child) for child in children]
            done, pending = wait(futures, return_when=FIRST_EXCEPTION)
            for fut in pending:
                fut.cancel()
            for fut in done:
                exc = fut.exception()
                if exc is not None:
                    raise exc
            return [fut.result() for fut in futures]

    def read_file(self, path: Path, encoding: str = "utf8") -> str:
        with _os_errors():
            raw = path.read_bytes()
        if encoding == "base64":
            return base64.b64encode(raw).decode("ascii")
        return raw.decode("utf-8", errors="replace")

    def write_file(self, path: Path, data: str = "", encoding: str = "utf8",
                   append: bool = False) -> str:
        payload = decode_payload(data, encoding)
        with _os_errors():
            with open(path, "ab" if append else "wb") as f:
                f.write(payload)
        return OK

    def make_dir(self, path: Path, recursive: bool = True) -> str:
        with _os_errors():
            if recursive:
                os.makedirs(path, exist_ok=True)
            else:
                os.mkdir(path)
        return OK

    def rename(self, src: Path, dst: Path) -> str:
        if self.resolver.is_root(src) or self.resolver.is_root(dst):
            raise InvalidArgument("Refusing to rename the project root")
        with _os_errors():
            os.replace(src, dst)
        return OK

    def remove(self, path: Path, recursive: bool = False) -> str:
        if self.resolver.is_root(path):
            raise InvalidArgument("Refusing to remove the project root")
        with _os_errors():
            st = os.lstat(path)  # a symlink is unlinked, never followed
            if stat.S_ISDIR(st.st_mode):
                if recursive:
                    shutil.rmtree(path)
                else:
                    os.rmdir(path)
            else:
                os.unlink(path)
        return OK
