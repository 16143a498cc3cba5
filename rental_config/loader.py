"""
Configuration Loader (``rental_config.loader``).

Responsibility
--------------
Loads a YAML file and parses it into an ``EngineConfig``.  Runtime callers
go through ``rental_config.get_active_config()``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Unknown keys or a non-mapping document  -> ``ValueError``.
"""

from __future__ import annotations

from dataclasses import fields
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml

from rental_config.schema import EngineConfig

_KNOWN_KEYS = frozenset(f.name for f in fields(EngineConfig))


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_engine_config(data: dict[str, Any]) -> EngineConfig:
    """Build an ``EngineConfig`` from a parsed mapping."""
    if not isinstance(data, dict):
        raise ValueError(f"Engine config must be a mapping, got {type(data).__name__}")
    section = data.get("engine", data)
    unknown = set(section) - _KNOWN_KEYS
    if unknown:
        raise ValueError(f"Unknown engine config keys: {sorted(unknown)}")
    values = dict(section)
    if "late_fee_rate" in values:
        values["late_fee_rate"] = Decimal(str(values["late_fee_rate"]))
    return EngineConfig(**values)


def load_engine_config(path: Path) -> EngineConfig:
    """Load and validate an engine config file."""
    return parse_engine_config(load_yaml_file(path))
