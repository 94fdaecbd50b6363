# fsbox/services/envelope.py
from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Any, Dict, Optional

from fsbox.errors import SandboxError


@dataclass(frozen=True)
class ToolResult:
    """
    Uniform outcome of a tool call.

    Success carries ``text``: strings pass through verbatim, structured payloads
    are rendered as indented JSON. Failure carries the error ``kind`` and message.
    """
    ok: bool
    text: str
    kind: Optional[str] = None
    message: Optional[str] = None

    @classmethod
    def success(cls, payload: Any) -> "ToolResult":
        if isinstance(payload, str):
            return cls(ok=True, text=payload)
        return cls(ok=True, text=json.dumps(payload, indent=2, ensure_ascii=False))

    @classmethod
    def failure(cls, err: SandboxError) -> "ToolResult":
        return cls(
            ok=False,
            text=f"{err.kind}: {err.message}",
            kind=err.kind,
            message=err.message,
        )

    def to_content(self) -> Dict[str, Any]:
        """MCP `tools/call` result body."""
        return {"content": [{"type": "text", "text": self.text}], "isError": not self.ok}
