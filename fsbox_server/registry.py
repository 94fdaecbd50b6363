# fsbox_server/registry.py
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, Tuple, Type

from pydantic import BaseModel

from fsbox.di import Container, build_container
from fsbox.errors import SandboxError, UnknownTool, Unexpected
from fsbox.logging import log_tool_call
from fsbox.services.envelope import ToolResult
from fsbox.services.filesystem import FileSystemService
from fsbox.services.params import (
    LsIn,
    MkdirIn,
    ReadFileIn,
    RenameIn,
    RmIn,
    WriteFileIn,
    validate_arguments,
)
from fsbox.services.paths import PathResolver

logger = logging.getLogger(__name__)

SERVER_ID = "fs"
SERVER_DESCRIPTION = "Local filesystem tools: ls, readFile, writeFile, mkdir, rename, rm."


@dataclass(frozen=True)
class ToolSpec:
    name: str
    description: str
    input_model: Type[BaseModel]
    handler: Callable[..., Any]
    # Attributes of input_model holding paths; resolved in order and passed
    # to the handler positionally after the validated args.
    path_fields: Tuple[str, ...] = ("path",)
    # False for tools acting on the directory entry itself (rm, rename):
    # a trailing symlink is then not dereferenced.
    follow_links: bool = True


@dataclass(frozen=True)
class ToolRegistry:
    tools: Dict[str, ToolSpec]
    resolver: PathResolver
    instance_id: str = field(default_factory=lambda: uuid.uuid4().hex)

    def get(self, name: str) -> ToolSpec:
        try:
            return self.tools[name]
        except KeyError:
            raise UnknownTool(f"Tool not found: {name}") from None


class ToolHandlers:
    """
    Named handlers for each tool (no lambdas).
    Paths arrive already resolved; handlers only unpack the validated args.
    """
    def __init__(self, fs_service: FileSystemService):
        self.fs = fs_service

    def ls(self, args: LsIn, path: Path) -> list:
        return self.fs.list_dir(path)

    def read_file(self, args: ReadFileIn, path: Path) -> str:
        return self.fs.read_file(path, args.encoding)

    def write_file(self, args: WriteFileIn, path: Path) -> str:
        return self.fs.write_file(path, args.data, args.encoding, args.append)

    def mkdir(self, args: MkdirIn, path: Path) -> str:
        return self.fs.make_dir(path, args.recursive)

    def rename(self, args: RenameIn, src: Path, dst: Path) -> str:
        return self.fs.rename(src, dst)

    def rm(self, args: RmIn, path: Path) -> str:
        return self.fs.remove(path, args.recursive)


def build_tool_registry(container: Container | None = None) -> ToolRegistry:
    """
    Build the fixed tool catalog once at startup.
    Transport layers (stdio/HTTP) read from this registry to expose tools.
    """
    container = container or build_container()
    handlers = ToolHandlers(container.fs_service)

    specs = [
        ToolSpec(
            name="ls",
            description="List files / directories in a path.",
            input_model=LsIn,
            handler=handlers.ls,
        ),
        ToolSpec(
            name="readFile",
            description="Read a text or binary file.",
            input_model=ReadFileIn,
            handler=handlers.read_file,
        ),
        ToolSpec(
            name="writeFile",
            description="Write (or append) data to a file.",
            input_model=WriteFileIn,
            handler=handlers.write_file,
        ),
        ToolSpec(
            name="mkdir",
            description="Create a directory.",
            input_model=MkdirIn,
            handler=handlers.mkdir,
        ),
        ToolSpec(
            name="rename",
            description="Move or rename a file/directory.",
            input_model=RenameIn,
            handler=handlers.rename,
            path_fields=("from_", "to"),
            follow_links=False,
        ),
        ToolSpec(
            name="rm",
            description="Delete a file or directory.",
            input_model=RmIn,
            handler=handlers.rm,
            follow_links=False,
        ),
    ]
    return ToolRegistry(tools={s.name: s for s in specs}, resolver=container.resolver)


def list_tools_payload(registry: ToolRegistry) -> Dict[str, Any]:
    """
    Produce the `tools/list` payload body as defined by the MCP tools protocol.
    """
    tools = []
    for spec in registry.tools.values():
        tools.append({
            "name": spec.name,
            "description": spec.description,
            "inputSchema": spec.input_model.model_json_schema(),
        })
    return {"tools": tools}


def dispatch_tool_call(registry: ToolRegistry, name: str, arguments: Dict[str, Any] | None) -> ToolResult:
    """
    Validate args, confine every path field to the root, run the handler and
    wrap the outcome. Never raises: every failure becomes a failed ToolResult.
    """
    log_tool_call(logger, name, arguments)
    try:
        spec = registry.get(name)
        args = validate_arguments(spec.input_model, arguments)
        resolve = registry.resolver.resolve if spec.follow_links else registry.resolver.resolve_entry
        paths = [resolve(getattr(args, f)) for f in spec.path_fields]
        payload = spec.handler(args, *paths)
    except SandboxError as err:
        logger.warning("tool_failed %s %s: %s", name, err.kind, err.message)
        return ToolResult.failure(err)
    except Exception as exc:
        logger.exception("tool_crashed %s", name)
        return ToolResult.failure(Unexpected(str(exc) or exc.__class__.__name__))
    return ToolResult.success(payload)
