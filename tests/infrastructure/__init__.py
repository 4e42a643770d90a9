"""
Shared test infrastructure.

Modules:
- file_utils: creating template files and directories
- rendering_utils: tokenizing, parsing, compiling and rendering helpers
- cli_utils: running the CLI in a subprocess
"""

from .file_utils import write, write_template, write_templates
from .rendering_utils import make_env, parse_expr, parse_template, render, text_values, token_types
from .cli_utils import run_cli, jload

__all__ = [
    # File utilities
    "write", "write_template", "write_templates",

    # Rendering utilities
    "make_env", "parse_expr", "parse_template", "render", "text_values", "token_types",

    # CLI utilities
    "run_cli", "jload",
]
