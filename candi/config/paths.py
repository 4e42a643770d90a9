from __future__ import annotations

from pathlib import Path

# Project configuration file, looked up in the project root.
CONFIG_FILE = "candi.yaml"

# Template file suffixes, longest first; stripped to form template names.
TEMPLATE_SUFFIXES = (".page.html", ".layout.html", ".widget.html", ".html")


def config_path(root: Path) -> Path:
    """Path to candi.yaml in the project root."""
    return (root / CONFIG_FILE).resolve()


def template_name(rel_posix: str) -> str:
    """
    Template name for a path relative to the templates directory:
    'pages/index.page.html' → 'pages/index'.
    """
    for suffix in TEMPLATE_SUFFIXES:
        if rel_posix.endswith(suffix):
            return rel_posix[: -len(suffix)]
    return rel_posix


__all__ = ["CONFIG_FILE", "TEMPLATE_SUFFIXES", "config_path", "template_name"]
