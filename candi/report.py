"""
JSON output models of the CLI.
"""

from __future__ import annotations

import json
from typing import List, Optional

from pydantic import BaseModel, ConfigDict

from .compiler.tokens import Token
from .errors import CompileError


class TokenEntry(BaseModel):
    model_config = ConfigDict(extra="forbid")

    type: str
    value: Optional[str] = None
    line: int
    column: int

    @classmethod
    def from_token(cls, token: Token) -> "TokenEntry":
        return cls(
            type=token.type.name,
            value=token.value,
            line=token.location.line,
            column=token.location.column,
        )


class TokensReport(BaseModel):
    model_config = ConfigDict(extra="forbid")

    file: str
    kind: str
    layout: Optional[str] = None
    tokens: List[TokenEntry]


class CompiledEntry(BaseModel):
    model_config = ConfigDict(extra="forbid")

    name: str
    file: str
    kind: str
    layout: Optional[str] = None
    output: str
    fragments: List[str] = []
    blocks: List[str] = []


class ErrorEntry(BaseModel):
    model_config = ConfigDict(extra="forbid")

    file: str
    line: int
    column: int
    message: str

    @classmethod
    def from_error(cls, error: CompileError) -> "ErrorEntry":
        return cls(
            file=error.location.file,
            line=error.location.line,
            column=error.location.column,
            message=error.message,
        )


class BuildReport(BaseModel):
    model_config = ConfigDict(extra="forbid")

    tool_version: str
    templates_dir: str
    output_dir: str
    compiled: List[CompiledEntry] = []
    errors: List[ErrorEntry] = []

    @property
    def ok(self) -> bool:
        return not self.errors


def dumps(model: BaseModel) -> str:
    """Compact JSON for CLI output (no trailing newline)."""
    return json.dumps(model.model_dump(mode="json"), ensure_ascii=False)


__all__ = [
    "TokenEntry",
    "TokensReport",
    "CompiledEntry",
    "ErrorEntry",
    "BuildReport",
    "dumps",
]
