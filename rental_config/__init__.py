"""
rental_config -- single public entrypoint for engine configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads configuration files
    or environment variables directly.

Architecture position:
    Configuration.  Sits above ``rental_kernel`` and below
    ``rental_modules`` / ``rental_batch``.  The kernel MUST NEVER import
    from ``rental_config``.

Failure modes:
    - ``FileNotFoundError`` -- ``RENTAL_ENGINE_CONFIG`` names a missing file.
    - ``yaml.YAMLError`` -- malformed YAML.
    - ``ValueError`` -- unknown keys or out-of-range values.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from rental_config.loader import load_engine_config
from rental_config.schema import EngineConfig

_logger = logging.getLogger("rental_kernel.config")

CONFIG_ENV_VAR = "RENTAL_ENGINE_CONFIG"

DEFAULT_CONFIG_PATH = Path(__file__).parent / "defaults.yaml"

__all__ = [
    "CONFIG_ENV_VAR",
    "DEFAULT_CONFIG_PATH",
    "EngineConfig",
    "get_active_config",
    "load_engine_config",
]


def get_active_config(path: str | Path | None = None) -> EngineConfig:
    """
    Load the engine configuration.

    Resolution order: explicit ``path``, then the ``RENTAL_ENGINE_CONFIG``
    environment variable, then the packaged ``defaults.yaml``.  Keys absent
    from the chosen file keep their defaults.
    """
    if path is None:
        env_path = os.environ.get(CONFIG_ENV_VAR)
        path = Path(env_path) if env_path else DEFAULT_CONFIG_PATH
    config = load_engine_config(Path(path))
    _logger.info(
        "RENTAL_CONFIG_TRACE",
        extra={
            "config_path": str(path),
            "sweep_frequency": config.sweep_frequency,
            "optimistic_retry_limit": config.optimistic_retry_limit,
        },
    )
    return config
