# fsbox_server/tools/files.py
from typing import Annotated, Any, Dict, Literal

from fastmcp import FastMCP
from fastmcp.exceptions import ToolError
from fastmcp.tools import Tool
from fastmcp.tools.tool_transform import ArgTransform
from pydantic import Field
from starlette.concurrency import run_in_threadpool

from fsbox_server.registry import ToolRegistry, dispatch_tool_call

EncodingArg = Literal["utf8", "base64", "utf-8"]


async def call_tool(registry: ToolRegistry, name: str, arguments: Dict[str, Any]) -> str:
    # Blocking filesystem work runs on a worker thread so calls don't serialize.
    result = await run_in_threadpool(dispatch_tool_call, registry, name, arguments)
    if not result.ok:
        raise ToolError(result.text)
    return result.text


def register_file_tools(mcp: FastMCP, registry: ToolRegistry):
    """
    Very thin tool adapters:
    - expose the same flat arguments the HTTP transport advertises
    - hand them to the dispatcher (validation, confinement, execution)
    - return the envelope text, or raise it as a tool error
    """
    tools = registry.tools

    @mcp.tool(name="ls", description=tools["ls"].description)
    async def ls(
        path: Annotated[str, Field(description="Directory to list, relative to project root.")] = ".",
    ) -> str:
        return await call_tool(registry, "ls", {"path": path})

    @mcp.tool(name="readFile", description=tools["readFile"].description)
    async def read_file(
        path: Annotated[str, Field(description="File path, relative to project root.")],
        encoding: Annotated[EncodingArg, Field(description="Decoding for file contents.")] = "utf8",
    ) -> str:
        return await call_tool(registry, "readFile", {"path": path, "encoding": encoding})

    @mcp.tool(name="writeFile", description=tools["writeFile"].description)
    async def write_file(
        path: Annotated[str, Field(description="Target file path.")],
        data: Annotated[str, Field(description="Raw text or base64-encoded bytes.")] = "",
        encoding: Annotated[EncodingArg, Field(description="Interpretation of 'data'.")] = "utf8",
        append: Annotated[bool, Field(description="If true, append instead of overwrite.")] = False,
    ) -> str:
        return await call_tool(registry, "writeFile", {
            "path": path, "data": data, "encoding": encoding, "append": append,
        })

    @mcp.tool(name="mkdir", description=tools["mkdir"].description)
    async def mkdir(
        path: Annotated[str, Field(description="Directory path to create.")],
        recursive: Annotated[bool, Field(description="Create parent folders as needed.")] = True,
    ) -> str:
        return await call_tool(registry, "mkdir", {"path": path, "recursive": recursive})

    @mcp.tool(name="rm", description=tools["rm"].description)
    async def rm(
        path: Annotated[str, Field(description="Path to remove.")],
        recursive: Annotated[bool, Field(description="If true and a directory, remove recursively.")] = False,
    ) -> str:
        return await call_tool(registry, "rm", {"path": path, "recursive": recursive})

    # "from" is a keyword, so the argument is renamed on the wire.
    async def rename(
        src: Annotated[str, Field(description="Original path.")],
        to: Annotated[str, Field(description="New path / filename.")],
    ) -> str:
        return await call_tool(registry, "rename", {"from": src, "to": to})

    mcp.add_tool(Tool.from_tool(
        Tool.from_function(rename),
        name="rename",
        description=tools["rename"].description,
        transform_args={"src": ArgTransform(name="from")},
    ))
