# fsbox_server/http_app.py
from __future__ import annotations

from typing import Any, Dict

from fastapi import FastAPI, Request, HTTPException
from fastapi.responses import JSONResponse, Response
from starlette.concurrency import run_in_threadpool

from fsbox.config import Settings
from fsbox.di import build_container
from fsbox.logging import configure_logging
from fsbox_server.registry import (
    SERVER_DESCRIPTION,
    SERVER_ID,
    ToolRegistry,
    build_tool_registry,
    dispatch_tool_call,
    list_tools_payload,
)

PROTOCOL_VERSION = "2025-03-26"  # MCP protocol revision


def _jsonrpc_error(id_: Any, code: int, message: str, data: Any | None = None) -> JSONResponse:
    body: Dict[str, Any] = {"jsonrpc": "2.0", "id": id_, "error": {"code": code, "message": message}}
    if data is not None:
        body["error"]["data"] = data
    return JSONResponse(body)

def _jsonrpc_result(id_: Any, result: Any) -> JSONResponse:
    return JSONResponse({"jsonrpc": "2.0", "id": id_, "result": result})


def create_http_app(settings: Settings | None = None, registry: ToolRegistry | None = None) -> FastAPI:
    settings = settings or Settings()
    if registry is None:
        registry = build_tool_registry(build_container(settings))

    app = FastAPI(title="MCP Filesystem Server", version="0.1.0")

    # ---------- Security: Origin validation & Bearer token ----------

    def _origin_allowed(req: Request) -> bool:
        origin = req.headers.get("origin")
        if not origin:
            return settings.MCP_HTTP_ALLOW_NO_ORIGIN
        allowed = {o.strip().lower() for o in settings.MCP_HTTP_ALLOWED_ORIGINS.split(",") if o.strip()}
        return origin.lower() in allowed

    def _require_auth(req: Request):
        auth = req.headers.get("authorization", "")
        if not auth.startswith("Bearer "):
            raise HTTPException(status_code=401, detail="Missing Bearer token")
        token = auth.split(" ", 1)[1]
        if token != settings.MCP_HTTP_BEARER_TOKEN:
            raise HTTPException(status_code=401, detail="Invalid Bearer token")

    @app.middleware("http")
    async def origin_validation_mw(request: Request, call_next):
        # MCP requires Origin validation to prevent DNS rebinding
        if not _origin_allowed(request):
            return JSONResponse({"error": {"code": 403, "message": "Forbidden origin"}}, status_code=403)
        return await call_next(request)

    # ---------- MCP JSON-RPC endpoint (Streamable HTTP) ----------

    @app.post(settings.MCP_HTTP_PATH)
    async def mcp_endpoint(request: Request):
        _require_auth(request)

        try:
            payload = await request.json()
        except ValueError:
            return _jsonrpc_error(None, -32700, "Parse error")
        if not isinstance(payload, dict):
            return _jsonrpc_error(None, -32600, "Invalid Request")

        id_ = payload.get("id")
        method = payload.get("method")
        params = payload.get("params")
        if not isinstance(params, dict):
            params = {}

        # Notifications carry no id and expect no body
        if id_ is None and isinstance(method, str) and method.startswith("notifications/"):
            return Response(status_code=202)

        if method == "initialize":
            return _jsonrpc_result(id_, {
                "protocolVersion": PROTOCOL_VERSION,
                "capabilities": {"tools": {"listChanged": False}},
                "serverInfo": {
                    "name": SERVER_ID,
                    "version": "0.1.0",
                    "instanceId": registry.instance_id,
                },
                "instructions": SERVER_DESCRIPTION,
            })

        if method == "ping":
            return _jsonrpc_result(id_, {})

        if method == "tools/list":
            return _jsonrpc_result(id_, list_tools_payload(registry))

        if method == "tools/call":
            name = params.get("name")
            args = params.get("arguments")
            result = await run_in_threadpool(dispatch_tool_call, registry, name, args)
            if result.kind == "UnknownTool":
                return _jsonrpc_error(id_, -32601, result.message)
            return _jsonrpc_result(id_, result.to_content())

        return _jsonrpc_error(id_, -32601, f"Method not found: {method}")

    return app


def main():
    import uvicorn

    settings = Settings()
    configure_logging(settings.LOG_LEVEL)
    uvicorn.run(
        create_http_app(settings),
        host=settings.MCP_HTTP_HOST,
        port=settings.MCP_HTTP_PORT,
        reload=False,
    )


if __name__ == "__main__":
    main()
