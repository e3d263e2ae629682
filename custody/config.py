"""
custody.config — runtime configuration for the custody program harness.

This module centralizes the knobs the host environment would otherwise supply:
  • the custody program's own 32-byte id
  • rent parameters (lamports per byte-year, exemption threshold)

The program's arithmetic (8-byte counter, 1/10 withdrawal share) is *not*
configurable; it lives in custody.runtime.processor.

Environment variables (all optional):
  CUSTODY_CONFIG                       -> path to a YAML file with the keys below
  CUSTODY_PROGRAM_ID                   -> 0x-hex 32-byte program id
  CUSTODY_RENT_LAMPORTS_PER_BYTE_YEAR  -> integer (default: 3480)
  CUSTODY_RENT_EXEMPTION_THRESHOLD     -> float years (default: 2.0)

YAML file (env vars win over file values):
    program_id: "0x…"
    rent:
      lamports_per_byte_year: 3480
      exemption_threshold: 2.0

Programmatic usage:
    from custody.config import get_config
    cfg = get_config()
    rent = cfg.rent.to_rent()
"""

from __future__ import annotations

import hashlib
import os
from dataclasses import asdict, dataclass, field
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Union

import yaml

from .state.accounts import ADDRESS_SIZE


class ConfigError(ValueError):
    """Raised for unreadable config files or out-of-range values."""


# ----------------------------- helpers -------------------------------------

DEFAULT_PROGRAM_ID: bytes = hashlib.sha3_256(b"custody/program/v1").digest()


def _parse_program_id(value: Union[str, bytes, bytearray]) -> bytes:
    if isinstance(value, (bytes, bytearray)):
        b = bytes(value)
    elif not isinstance(value, str):
        raise ConfigError(f"program_id must be a quoted hex string, got {type(value).__name__}")
    else:
        s = value.strip().lower()
        if s.startswith("0x"):
            s = s[2:]
        try:
            b = bytes.fromhex(s)
        except ValueError as e:
            raise ConfigError("program_id: invalid hex string") from e
    if len(b) != ADDRESS_SIZE:
        raise ConfigError(f"program_id must be {ADDRESS_SIZE} bytes, got {len(b)}")
    return b


def _int_env(env: Mapping[str, str], key: str) -> Optional[int]:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return None
    try:
        return int(raw.strip(), 0)
    except ValueError as e:
        raise ConfigError(f"{key}: expected integer, got {raw!r}") from e


def _float_env(env: Mapping[str, str], key: str) -> Optional[float]:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return None
    try:
        return float(raw.strip())
    except ValueError as e:
        raise ConfigError(f"{key}: expected float, got {raw!r}") from e


def _load_yaml(path: Path) -> Dict[str, Any]:
    try:
        with path.open("r", encoding="utf-8") as fh:
            data = yaml.safe_load(fh) or {}
    except OSError as e:
        raise ConfigError(f"cannot read config file {path}: {e}") from e
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid YAML in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"{path}: top-level document must be a mapping")
    return data


# ------------------------------ dataclasses ---------------------------------


@dataclass(frozen=True)
class RentParams:
    lamports_per_byte_year: int = 3480
    exemption_threshold: float = 2.0

    def to_rent(self):
        from .runtime.rent import Rent

        return Rent(
            lamports_per_byte_year=self.lamports_per_byte_year,
            exemption_threshold=self.exemption_threshold,
        )


@dataclass(frozen=True)
class CustodyConfig:
    program_id: bytes = DEFAULT_PROGRAM_ID
    rent: RentParams = field(default_factory=RentParams)

    def to_dict(self) -> Dict[str, object]:
        return {"program_id": "0x" + self.program_id.hex(), "rent": asdict(self.rent)}


def _validate(cfg: CustodyConfig) -> CustodyConfig:
    if cfg.rent.lamports_per_byte_year < 0:
        raise ConfigError("rent.lamports_per_byte_year must be >= 0")
    if cfg.rent.exemption_threshold < 0:
        raise ConfigError("rent.exemption_threshold must be >= 0")
    return cfg


# ------------------------------ loader --------------------------------------


def load_config(
    source: Optional[Union[os.PathLike, str, Mapping[str, Any]]] = None,
    *,
    env: Optional[Mapping[str, str]] = None,
) -> CustodyConfig:
    """
    Build a CustodyConfig.

    `source` may be a YAML path, an already-loaded mapping, or None (then
    $CUSTODY_CONFIG is consulted). Environment variables override file values.
    """
    e = os.environ if env is None else env

    data: Mapping[str, Any]
    if source is None:
        path = e.get("CUSTODY_CONFIG")
        data = _load_yaml(Path(path).expanduser()) if path else {}
    elif isinstance(source, (str, os.PathLike)):
        data = _load_yaml(Path(source).expanduser())
    else:
        data = source

    rent_raw = data.get("rent") or {}
    if not isinstance(rent_raw, Mapping):
        raise ConfigError("'rent' must be a mapping")

    try:
        lamports_per_byte_year = int(rent_raw.get("lamports_per_byte_year", RentParams.lamports_per_byte_year))
        exemption_threshold = float(rent_raw.get("exemption_threshold", RentParams.exemption_threshold))
    except (TypeError, ValueError) as err:
        raise ConfigError(f"invalid rent parameters: {err}") from err

    env_lpby = _int_env(e, "CUSTODY_RENT_LAMPORTS_PER_BYTE_YEAR")
    if env_lpby is not None:
        lamports_per_byte_year = env_lpby
    env_thr = _float_env(e, "CUSTODY_RENT_EXEMPTION_THRESHOLD")
    if env_thr is not None:
        exemption_threshold = env_thr

    program_raw = e.get("CUSTODY_PROGRAM_ID") or data.get("program_id")
    program_id = DEFAULT_PROGRAM_ID if program_raw is None else _parse_program_id(program_raw)

    return _validate(
        CustodyConfig(
            program_id=program_id,
            rent=RentParams(
                lamports_per_byte_year=lamports_per_byte_year,
                exemption_threshold=exemption_threshold,
            ),
        )
    )


@lru_cache(maxsize=1)
def get_config() -> CustodyConfig:
    """Process-wide config from the environment (cached; call `get_config.cache_clear()` in tests)."""
    return load_config()


__all__ = [
    "ConfigError",
    "DEFAULT_PROGRAM_ID",
    "RentParams",
    "CustodyConfig",
    "load_config",
    "get_config",
]
