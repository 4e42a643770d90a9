from __future__ import annotations

from pathlib import Path
from typing import Dict, Iterable, List, Optional, Protocol, Tuple

from ..config.discovery import TemplateFinder
from ..config.paths import template_name
from .errors import TemplateNotFoundError


class TemplateLoader(Protocol):
    def get_source(self, name: str) -> Tuple[str, str]:
        """Return ``(source, file_name)`` or raise TemplateNotFoundError."""
        ...

    def list_templates(self) -> List[str]:
        ...


class FileSystemLoader:
    """Loads templates from a directory via TemplateFinder."""

    def __init__(self, root: Path, include: Iterable[str] = ("**/*.html",), exclude: Iterable[str] = ()):
        self.finder = TemplateFinder(root, include, exclude)

    def get_source(self, name: str) -> Tuple[str, str]:
        path = self.finder.find(name)
        if path is None:
            raise TemplateNotFoundError(name)
        return path.read_text(encoding="utf-8"), path.relative_to(self.finder.root).as_posix()

    def list_templates(self) -> List[str]:
        return sorted({name for name, _ in self.finder.iter_templates()})


class DictLoader:
    """
    In-memory templates keyed by file name ('base.layout.html').

    Template names are file names with the template suffix stripped,
    so the suffix still selects the kind.
    """

    def __init__(self, sources: Dict[str, str]):
        self._files: Dict[str, Tuple[str, str]] = {}
        for file_name, source in sorted(sources.items()):
            self._files.setdefault(template_name(file_name), (source, file_name))

    def get_source(self, name: str) -> Tuple[str, str]:
        entry: Optional[Tuple[str, str]] = self._files.get(name)
        if entry is None:
            raise TemplateNotFoundError(name)
        return entry

    def list_templates(self) -> List[str]:
        return sorted(self._files)


__all__ = ["TemplateLoader", "FileSystemLoader", "DictLoader"]
