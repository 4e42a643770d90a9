"""
Template discovery under the templates directory.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Dict, Iterable, Optional, Tuple

import pathspec

from .paths import TEMPLATE_SUFFIXES, template_name


class TemplateFinder:
    """
    Maps template names to files.

    Files are selected by gitwildmatch ``include``/``exclude`` patterns
    relative to the templates directory; names are relative POSIX paths
    with the template suffix stripped.
    """

    def __init__(self, root: Path, include: Iterable[str] = ("**/*.html",), exclude: Iterable[str] = ()):
        self.root = root.resolve()
        include = list(include)
        exclude = list(exclude)
        self._include = pathspec.PathSpec.from_lines("gitwildmatch", include) if include else None
        self._exclude = pathspec.PathSpec.from_lines("gitwildmatch", exclude) if exclude else None
        self._index: Optional[Dict[str, Path]] = None

    def matches(self, rel_posix: str) -> bool:
        if self._include is not None and not self._include.match_file(rel_posix):
            return False
        if self._exclude is not None and self._exclude.match_file(rel_posix):
            return False
        return rel_posix.endswith(TEMPLATE_SUFFIXES)

    def iter_templates(self) -> Iterable[Tuple[str, Path]]:
        """Yield ``(name, path)`` pairs in sorted path order."""
        if not self.root.is_dir():
            return
        found = []
        for dirpath, dirnames, filenames in os.walk(self.root):
            dirnames[:] = sorted(d for d in dirnames if not d.startswith("."))
            for fn in filenames:
                p = Path(dirpath, fn)
                rel_posix = p.relative_to(self.root).as_posix()
                if self.matches(rel_posix):
                    found.append((rel_posix, p))
        for rel_posix, p in sorted(found):
            yield template_name(rel_posix), p

    def find(self, name: str) -> Optional[Path]:
        """Path of the template called ``name``, or None."""
        if self._index is None:
            index: Dict[str, Path] = {}
            for template, path in self.iter_templates():
                # first path in sorted order wins on name clashes
                index.setdefault(template, path)
            self._index = index
        return self._index.get(name)

    def refresh(self) -> None:
        self._index = None


__all__ = ["TemplateFinder"]
