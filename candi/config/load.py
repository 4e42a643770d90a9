from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Dict, List

from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from ..compiler.codegen.access import FieldAccessStrategy
from ..errors import CandiUserError
from .model import CandiConfig
from .paths import config_path

logger = logging.getLogger(__name__)

_yaml = YAML(typ="safe")

_DEFAULT_CFG: Dict[str, Any] = {
    "templates": "templates",
    "output": "build/candi",
    "include": ["**/*.html"],
    "exclude": [],
    "field_access": FieldAccessStrategy.MAPPING.value,
    "fields": [],
}


class ConfigError(CandiUserError):
    """Invalid candi.yaml."""
    pass


def _string_list(raw: Dict[str, Any], key: str, path: Path) -> List[str]:
    value = raw.get(key)
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ConfigError(f"{path}: '{key}' must be a list of strings")
    return list(value)


def load_config(root: Path) -> CandiConfig:
    """
    Load candi.yaml from the project root.

    • Missing file → defaults.
    • Unknown keys and invalid values raise ConfigError.
    """
    root = root.resolve()
    path = config_path(root)

    raw: Dict[str, Any] = dict(_DEFAULT_CFG)
    if path.is_file():
        try:
            with path.open(encoding="utf-8") as f:
                data = _yaml.load(f) or {}
        except YAMLError as e:
            raise ConfigError(f"{path}: invalid YAML: {e}") from e
        if not isinstance(data, dict):
            raise ConfigError(f"{path}: top level must be a mapping")
        unknown = sorted(str(k) for k in data if k not in _DEFAULT_CFG)
        if unknown:
            raise ConfigError(f"{path}: unknown keys: {', '.join(unknown)}")
        raw.update(data)
        logger.debug(f"Loaded config from {path}")
    else:
        logger.debug(f"No {path.name} in {root}, using defaults")

    for key in ("templates", "output"):
        if not isinstance(raw[key], str) or not raw[key]:
            raise ConfigError(f"{path}: '{key}' must be a directory path")

    try:
        field_access = FieldAccessStrategy(str(raw["field_access"]))
    except ValueError:
        allowed = ", ".join(s.value for s in FieldAccessStrategy)
        raise ConfigError(f"{path}: invalid field_access '{raw['field_access']}'. Allowed: {allowed}")

    fields = _string_list(raw, "fields", path)
    bad = [f for f in fields if not f.isidentifier()]
    if bad:
        raise ConfigError(f"{path}: fields must be identifiers: {', '.join(bad)}")

    return CandiConfig(
        root=root,
        templates=(root / raw["templates"]).resolve(),
        output=(root / raw["output"]).resolve(),
        include=tuple(_string_list(raw, "include", path)),
        exclude=tuple(_string_list(raw, "exclude", path)),
        field_access=field_access,
        fields=tuple(fields),
    )


__all__ = ["ConfigError", "load_config"]
