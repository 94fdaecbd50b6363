# fsbox/logging.py
import logging
import os
from typing import Any, Dict

MAX_LOGGED_CHARS = 120  # file payloads can be large; keep log lines short


def configure_logging(level: str | None = None):
    # stderr only: stdout belongs to the stdio JSON-RPC stream
    logging.basicConfig(
        level=level or os.getenv("LOG_LEVEL", "INFO"),
        format="%(asctime)s %(levelname)s %(name)s %(message)s",
    )


def redact_str(s: str) -> str:
    if len(s) <= MAX_LOGGED_CHARS:
        return s
    return f"{s[:MAX_LOGGED_CHARS]}...[{len(s)} chars]"


def redact_args(args: Any) -> Any:
    if not isinstance(args, dict):
        return args
    safe: Dict[str, Any] = {}
    for k, v in args.items():
        safe[k] = redact_str(v) if isinstance(v, str) else v
    return safe


def log_tool_call(logger: logging.Logger, name: str, args: Any):
    logger.info("tool_call %s %s", name, redact_args(args))
