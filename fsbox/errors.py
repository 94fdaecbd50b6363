# fsbox/errors.py
"""
Error taxonomy shared by the resolver, the validator and the executors.

Every failure carries a stable ``kind`` (the class name) that the result
envelope reports to the calling agent alongside a human-readable message.
"""
from __future__ import annotations

import errno


class SandboxError(Exception):
    kind = "Unexpected"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class PathEscape(SandboxError):
    kind = "PathEscape"


class InvalidArgument(SandboxError):
    kind = "InvalidArgument"


class UnknownTool(SandboxError):
    kind = "UnknownTool"


class NotFound(SandboxError):
    kind = "NotFound"


class NotADirectory(SandboxError):
    kind = "NotADirectory"


class IsADirectory(SandboxError):
    kind = "IsADirectory"


class AlreadyExists(SandboxError):
    kind = "AlreadyExists"


class NotEmpty(SandboxError):
    kind = "NotEmpty"


class CrossDevice(SandboxError):
    kind = "CrossDevice"


class Unexpected(SandboxError):
    kind = "Unexpected"


_ERRNO_KINDS = {
    errno.ENOENT: NotFound,
    errno.ENOTDIR: NotADirectory,
    errno.EISDIR: IsADirectory,
    errno.EEXIST: AlreadyExists,
    errno.ENOTEMPTY: NotEmpty,
    errno.EXDEV: CrossDevice,
}


def from_os_error(exc: OSError) -> SandboxError:
    """Map an OSError onto the taxonomy; unknown errnos become ``Unexpected``."""
    cls = _ERRNO_KINDS.get(exc.errno, Unexpected)
    reason = exc.strerror or str(exc)
    if exc.filename is not None:
        return cls(f"{reason}: {exc.filename}")
    return cls(reason)
