"""
billing_config -- single public entrypoint for runtime configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime:
    ``get_active_config()`` for payment settings and
    ``get_database_url()`` for the database connection.  No other
    component reads configuration files or environment variables.

Architecture position:
    Configuration.  Sits above ``billing_kernel``; the kernel MUST NEVER
    import from ``billing_config``.

Failure modes:
    - ``FileNotFoundError`` -- the settings file does not exist.
    - ``PaymentsConfigError`` -- a setting is out of range or unknown.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from billing_config.loader import compute_checksum, load_yaml_file, parse_payments_section

_logger = logging.getLogger("billing_kernel.config")

# Default configuration sets directory
_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"
_DEFAULT_CONFIG_FILE = _DEFAULT_CONFIG_DIR / "default.yaml"

DEFAULT_DATABASE_URL = "sqlite:///billing.db"


def get_active_config(path: Path | str | None = None):
    """
    Load payment settings and return a validated ``PaymentsConfig``.

    Args:
        path: Settings file.  Defaults to billing_config/sets/default.yaml.

    Raises:
        FileNotFoundError: If the settings file is missing.
        PaymentsConfigError: If a setting fails validation.
    """
    from billing_modules.payments.config import PaymentsConfig

    config_path = Path(path) if path is not None else _DEFAULT_CONFIG_FILE
    data = load_yaml_file(config_path)
    config = PaymentsConfig.from_dict(parse_payments_section(data))

    _logger.info(
        "BILLING_CONFIG_TRACE",
        extra={
            "trace_type": "BILLING_CONFIG_TRACE",
            "config_id": data.get("config_id", config_path.stem),
            "config_version": data.get("version"),
            "config_path": str(config_path),
            "checksum": compute_checksum(data),
        },
    )
    return config


def get_database_url() -> str:
    """``DATABASE_URL`` from the environment, else a local SQLite file."""
    return os.environ.get("DATABASE_URL") or DEFAULT_DATABASE_URL


__all__ = ["DEFAULT_DATABASE_URL", "get_active_config", "get_database_url"]
