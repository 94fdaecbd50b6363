# fsbox/services/paths.py
import os
from pathlib import Path

from fsbox.errors import InvalidArgument, PathEscape


class PathResolver:
    """
    Confine caller-supplied paths to a fixed project root.

    The root is canonicalized once at construction and never changes.
    """

    def __init__(self, root: Path):
        root = Path(root)
        root.mkdir(parents=True, exist_ok=True)
        self.root = root.resolve()
        base = str(self.root)
        self._prefix = base if base.endswith(os.sep) else base + os.sep

    def resolve(self, rel: str) -> Path:
        """
        Join ``rel`` onto the root and canonicalize it without requiring the
        target to exist. Symlinks are followed, so a link pointing outside the
        root resolves outside and is rejected like any ``..`` escape.
        """
        return self._confine(rel, follow_last=True)

    def resolve_entry(self, rel: str) -> Path:
        """
        Like ``resolve`` but the final component is not dereferenced, so a
        symlink names the link itself. Used by operations that act on the
        directory entry (remove, rename) rather than on what it points to.
        """
        return self._confine(rel, follow_last=False)

    def _confine(self, rel: str, follow_last: bool) -> Path:
        if "\x00" in rel:
            raise InvalidArgument(f"Path contains a NUL byte: {rel!r}")
        joined = self.root / rel
        try:
            if follow_last or joined.name in ("", ".."):
                p = joined.resolve()
            else:
                p = joined.parent.resolve() / joined.name
        except (OSError, RuntimeError, ValueError) as exc:
            raise InvalidArgument(f"Cannot resolve path {rel!r}: {exc}") from exc

        if p != self.root and not str(p).startswith(self._prefix):
            raise PathEscape(f"Path escapes project root: {rel}")
        return p

    def is_root(self, p: Path) -> bool:
        return p == self.root
