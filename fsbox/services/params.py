# fsbox/services/params.py
from __future__ import annotations

from typing import Annotated, Any, Dict, Literal, Type, TypeVar

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, ValidationError

from fsbox.errors import InvalidArgument

ENCODING_ALIASES = {"utf-8": "utf8"}


def _normalize_encoding(v: Any) -> Any:
    if isinstance(v, str):
        return ENCODING_ALIASES.get(v, v)
    return v


# "utf-8" is listed for schema-checking clients; validation maps it to "utf8".
Encoding = Annotated[Literal["utf8", "base64", "utf-8"], BeforeValidator(_normalize_encoding)]

M = TypeVar("M", bound=BaseModel)


class ToolInput(BaseModel):
    # No coercion ("true" is not a bool) and no unknown fields.
    model_config = ConfigDict(strict=True, extra="forbid")


class LsIn(ToolInput):
    path: str = Field(".", description="Directory to list, relative to project root.")


class ReadFileIn(ToolInput):
    path: str = Field(..., description="File path, relative to project root.")
    encoding: Encoding = Field("utf8", description="Decoding for file contents.")


class WriteFileIn(ToolInput):
    path: str = Field(..., description="Target file path.")
    data: str = Field("", description="Raw text or base64-encoded bytes.")
    encoding: Encoding = Field("utf8", description="Interpretation of 'data'.")
    append: bool = Field(False, description="If true, append instead of overwrite.")


class MkdirIn(ToolInput):
    path: str = Field(..., description="Directory path to create.")
    recursive: bool = Field(True, description="Create parent folders as needed.")


class RenameIn(ToolInput):
    from_: str = Field(..., alias="from", description="Original path.")
    to: str = Field(..., description="New path / filename.")


class RmIn(ToolInput):
    path: str = Field(..., description="Path to remove.")
    recursive: bool = Field(False, description="If true and a directory, remove recursively.")


def _describe(err: ValidationError) -> str:
    parts = []
    for e in err.errors():
        loc = ".".join(str(x) for x in e["loc"]) or "arguments"
        parts.append(f"{loc}: {e['msg']}")
    return "; ".join(parts)


def validate_arguments(model: Type[M], raw: Dict[str, Any] | None) -> M:
    """
    Validate raw tool arguments against ``model`` and fill its defaults.
    Any problem is reported as ``InvalidArgument`` before the filesystem is touched.
    """
    if raw is None:
        raw = {}
    if not isinstance(raw, dict):
        raise InvalidArgument("arguments must be an object")
    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        raise InvalidArgument(_describe(exc)) from exc
