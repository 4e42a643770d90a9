from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

from ..compiler import CompileOptions
from ..compiler.codegen.access import FieldAccessStrategy


@dataclass(frozen=True)
class CandiConfig:
    """
    Project configuration (candi.yaml).

    Directories are absolute once loaded.
    """
    root: Path
    templates: Path
    output: Path
    include: Tuple[str, ...] = ("**/*.html",)
    exclude: Tuple[str, ...] = ()
    field_access: FieldAccessStrategy = FieldAccessStrategy.MAPPING
    fields: Tuple[str, ...] = ()

    def compile_options(self) -> CompileOptions:
        return CompileOptions(fields=self.fields, field_access=self.field_access)


__all__ = ["CandiConfig"]
