"""The JSON document refwire prints for every command in JSON mode.

A successful run prints ``{"ok": true, "result": ..., "meta": ...}``; a failed
one replaces ``result`` with an ``error`` object built from the raised
:class:`~refwire.errors.ToolError`.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from pydantic import BaseModel, Field

if TYPE_CHECKING:
    from refwire.errors import ToolError


class EnvelopeMeta(BaseModel):
    tool: str
    version: str
    duration_ms: int = Field(ge=0)
    warnings: list[str] = Field(default_factory=list)


class Envelope(BaseModel):
    ok: bool
    result: Any | None = None
    meta: EnvelopeMeta
    error: dict[str, Any] | None = None

    @classmethod
    def success(cls, result: Any, meta: EnvelopeMeta) -> Envelope:
        return cls(ok=True, result=result, meta=meta)

    @classmethod
    def failure(cls, error: ToolError, meta: EnvelopeMeta) -> Envelope:
        return cls(ok=False, meta=meta, error=error.to_dict())

    def to_document(self) -> dict[str, Any]:
        """Dump for printing; successful envelopes carry no ``error`` key."""
        if self.ok:
            return self.model_dump(exclude={"error"})
        return self.model_dump()
