# fsbox_server/main.py
import logging

from fastmcp import FastMCP
from fsbox.di import build_container
from fsbox.logging import configure_logging
from fsbox_server.registry import SERVER_DESCRIPTION, SERVER_ID, build_tool_registry
from fsbox_server.tools.files import register_file_tools

logger = logging.getLogger(__name__)


def create_app() -> FastMCP:
    """
    Build DI container, create FastMCP host, and register tools.
    Keep the server (protocol) separate from tool/service logic.
    """
    container = build_container()
    configure_logging(container.settings.LOG_LEVEL)

    registry = build_tool_registry(container)
    mcp = FastMCP(SERVER_ID, version="0.1.0", instructions=SERVER_DESCRIPTION)

    # Register tools (thin adapters)
    register_file_tools(mcp, registry)

    logger.info("serving %s (instance %s) rooted at %s",
                SERVER_ID, registry.instance_id, container.resolver.root)
    return mcp


def main():
    app = create_app()
    # stdio transport: client (agent/IDE) launches this process and speaks JSON-RPC on stdin/stdout
    app.run(transport="stdio")


if __name__ == "__main__":
    main()
