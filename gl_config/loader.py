"""
Configuration Loader (``gl_config.loader``).

Responsibility
--------------
Loads a YAML settings file and parses it into a frozen
``gl_config.schema.LedgerSettings``.  Services never call this directly;
the public entry point is ``gl_config.get_active_config()``.

Invariants enforced
-------------------
* Unknown top-level keys are rejected with ``ValueError`` so a typo never
  silently falls back to a default.
* Every parsed object is a frozen dataclass from ``schema.py``.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the parsed
  document for configuration identity.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Invalid values  -> ``ValueError`` / ``decimal.InvalidOperation``.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal
from pathlib import Path
from typing import Any

import yaml

from gl_config.schema import LedgerSettings, PostingAccounts
from gl_kernel.models.account import AccountType
from gl_kernel.services.account_service import AccountSpec

_SCALAR_KEYS = {
    "balance_tolerance",
    "journal_number_prefix",
    "journal_number_width",
    "number_allocation_retries",
    "recalc_max_workers",
    "default_page_size",
    "auto_provision_accounts",
    "database_url",
    "log_level",
}
_KNOWN_KEYS = _SCALAR_KEYS | {"posting_accounts", "default_accounts"}


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path) as f:
        return yaml.safe_load(f) or {}


def parse_default_accounts(data: list[dict[str, Any]]) -> tuple[AccountSpec, ...]:
    return tuple(
        AccountSpec(
            code=str(item["code"]),
            name=item["name"],
            account_type=AccountType(str(item["type"]).lower()),
        )
        for item in data
    )


def parse_posting_accounts(data: dict[str, Any]) -> PostingAccounts:
    return PostingAccounts(**{k: str(v) for k, v in data.items()})


def compute_checksum(data: dict[str, Any]) -> str:
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()


def parse_settings(data: dict[str, Any], overrides: dict[str, Any] | None = None) -> LedgerSettings:
    """
    Build LedgerSettings from a parsed YAML document.

    ``overrides`` (already-typed values, e.g. from the environment) win over
    the document.
    """
    merged = dict(data)
    merged.update(overrides or {})

    unknown = set(merged) - _KNOWN_KEYS
    if unknown:
        raise ValueError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")

    kwargs: dict[str, Any] = {k: merged[k] for k in _SCALAR_KEYS if k in merged}
    if "balance_tolerance" in kwargs:
        kwargs["balance_tolerance"] = Decimal(str(kwargs["balance_tolerance"]))
    if "posting_accounts" in merged:
        kwargs["posting_accounts"] = parse_posting_accounts(merged["posting_accounts"])
    if "default_accounts" in merged:
        kwargs["default_accounts"] = parse_default_accounts(merged["default_accounts"])

    return LedgerSettings(checksum=compute_checksum(merged), **kwargs)
