"""
Configuration Loader (``billing_config.loader``).

Responsibility
--------------
Loads a YAML settings file and parses its ``payments`` section into the
keyword arguments of ``PaymentsConfig``.  Callers go through
``billing_config.get_active_config()``.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* A ``payments`` section that is not a mapping  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_payments_section(data: dict[str, Any]) -> dict[str, Any]:
    """
    Extract the ``payments`` mapping, converting money fields to Decimal.

    YAML reads ``0.01`` as a float; it goes through ``str`` so the
    tolerance is exactly one cent.
    """
    section = data.get("payments") or {}
    if not isinstance(section, dict):
        raise ValueError(
            f"'payments' must be a mapping, got {type(section).__name__}"
        )
    parsed = dict(section)
    if "payment_tolerance" in parsed and parsed["payment_tolerance"] is not None:
        parsed["payment_tolerance"] = Decimal(str(parsed["payment_tolerance"]))
    return parsed


def compute_checksum(data: dict[str, Any]) -> str:
    """SHA-256 of the canonical JSON serialization (deterministic)."""
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
