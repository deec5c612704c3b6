"""
gl_config -- single public entrypoint for GL engine configuration.

Responsibility:
    Provides the ONLY way to obtain settings at runtime through
    ``get_active_config()``.  No other component reads configuration files
    or environment variables directly.  YAML loading is internal.

Architecture position:
    Configuration.  Sits above ``gl_kernel`` and below ``gl_services``.
    The kernel MUST NEVER import from ``gl_config``; services receive the
    values they need through their constructors.

Invariants enforced:
    - Single entrypoint: all runtime settings flow through
      ``get_active_config()``.
    - Precedence: packaged defaults < file named by GL_KERNEL_CONFIG (or
      the ``path`` argument) < DATABASE_URL / GL_LOG_LEVEL environment
      variables.

Failure modes:
    - ``FileNotFoundError`` -- the requested settings file does not exist.
    - ``ValueError`` -- unknown keys or invalid values.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Mapping

from gl_config.loader import load_yaml_file, parse_settings
from gl_config.schema import LedgerSettings, PostingAccounts

_logger = logging.getLogger("gl_kernel.config")

_DEFAULTS_FILE = Path(__file__).parent / "defaults.yaml"

CONFIG_PATH_ENV = "GL_KERNEL_CONFIG"

__all__ = [
    "CONFIG_PATH_ENV",
    "LedgerSettings",
    "PostingAccounts",
    "get_active_config",
]


def get_active_config(
    path: Path | str | None = None,
    environ: Mapping[str, str] | None = None,
) -> LedgerSettings:
    """The ONLY public configuration entrypoint.

    Args:
        path: Settings file layered over the packaged defaults.  Defaults
            to the file named by GL_KERNEL_CONFIG, if set.
        environ: Environment mapping (defaults to ``os.environ``).

    Returns:
        Frozen LedgerSettings.
    """
    env = os.environ if environ is None else environ

    data = load_yaml_file(_DEFAULTS_FILE)

    override_path = path or env.get(CONFIG_PATH_ENV)
    if override_path:
        data.update(load_yaml_file(Path(override_path)))

    overrides: dict[str, str] = {}
    if env.get("DATABASE_URL"):
        overrides["database_url"] = env["DATABASE_URL"]
    if env.get("GL_LOG_LEVEL"):
        overrides["log_level"] = env["GL_LOG_LEVEL"]

    settings = parse_settings(data, overrides)

    _logger.info(
        "GL_CONFIG_TRACE",
        extra={
            "trace_type": "GL_CONFIG_TRACE",
            "source": str(override_path or _DEFAULTS_FILE),
            "checksum": settings.checksum,
            "balance_tolerance": str(settings.balance_tolerance),
            "recalc_max_workers": settings.recalc_max_workers,
        },
    )
    return settings
