"""
Project configuration and template discovery.
"""

from __future__ import annotations

from .discovery import TemplateFinder
from .load import ConfigError, load_config
from .model import CandiConfig
from .paths import CONFIG_FILE, template_name

__all__ = [
    "CandiConfig",
    "ConfigError",
    "load_config",
    "TemplateFinder",
    "CONFIG_FILE",
    "template_name",
]
