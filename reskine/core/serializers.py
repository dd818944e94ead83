"""Serialization utilities — configuration dataclass ↔ JSON-safe dict.

Configuration dicts use registry-style keys (``"W-min"``,
``"max-xsec-safety-factor"``, ...).  Unknown keys are rejected so that a
misspelled option cannot silently fall back to its default.
"""

from __future__ import annotations

import dataclasses
import json
import logging
import pathlib
from typing import Any

from reskine.models.config import KinematicsConfig

logger = logging.getLogger(__name__)

# Registry key → KinematicsConfig field
CONFIG_KEYS: dict[str, str] = {
    "W-min": "w_min",
    "W-max": "w_max",
    "Q2-min": "q2_min",
    "Q2-max": "q2_max",
    "Wcut": "w_cut",
    "max-xsec-safety-factor": "safety_factor",
    "low-energy-safety-factor": "low_energy_safety_factor",
    "low-energy-threshold": "low_energy_threshold",
    "min-energy-cached": "min_energy_cached",
    "cache-energy-bin-width": "cache_energy_bin_width",
    "max-xsec-diff-tolerance": "max_xsec_diff_tolerance",
    "uniform-over-phase-space": "uniform_over_phase_space",
    "max-iterations": "max_iterations",
    "envelope-padding": "envelope_padding",
    "q2-scan-points": "q2_scan_points",
    "q2-refine-divisor": "q2_refine_divisor",
}

_FIELD_KEYS: dict[str, str] = {v: k for k, v in CONFIG_KEYS.items()}


# =====================================================================
# KinematicsConfig
# =====================================================================


def config_to_dict(config: KinematicsConfig) -> dict:
    """Serialize KinematicsConfig to a dict keyed by registry names."""
    return {
        _FIELD_KEYS[f.name]: getattr(config, f.name)
        for f in dataclasses.fields(config)
    }


def dict_to_config(data: dict | None) -> KinematicsConfig:
    """Deserialize a registry-keyed dict to KinematicsConfig.

    Missing keys take their defaults.

    Raises:
        KeyError: On an unrecognized key.
        ValueError: If a value fails validation.
    """
    if not data:
        return KinematicsConfig()
    unknown = sorted(set(data) - set(CONFIG_KEYS))
    if unknown:
        raise KeyError(f"Unknown configuration option(s): {', '.join(unknown)}")
    kwargs = {CONFIG_KEYS[key]: val for key, val in data.items()}
    if "uniform_over_phase_space" in kwargs:
        kwargs["uniform_over_phase_space"] = _as_bool(
            "uniform-over-phase-space", kwargs["uniform_over_phase_space"],
        )
    for name in ("max_iterations", "q2_scan_points", "q2_refine_divisor"):
        if name in kwargs:
            kwargs[name] = _as_int(_FIELD_KEYS[name], kwargs[name])
    return KinematicsConfig(**kwargs)


def _as_bool(key: str, val: Any) -> bool:
    if not isinstance(val, bool):
        raise ValueError(f"{key} must be true or false, got {val!r}")
    return val


def _as_int(key: str, val: Any) -> int:
    """Accept ints and integral floats (JSON may write 200.0)."""
    if isinstance(val, bool) or not isinstance(val, (int, float)):
        raise ValueError(f"{key} must be an integer, got {val!r}")
    if isinstance(val, float) and not val.is_integer():
        raise ValueError(f"{key} must be an integer, got {val!r}")
    return int(val)


def load_config(path: str | pathlib.Path) -> KinematicsConfig:
    """Read a KinematicsConfig from a JSON file."""
    path = pathlib.Path(path)
    with path.open(encoding="utf-8") as fh:
        data = json.load(fh)
    logger.debug("Loaded kinematics configuration from %s", path)
    return dict_to_config(data)


def save_config(config: KinematicsConfig, path: str | pathlib.Path) -> None:
    """Write a KinematicsConfig to a JSON file."""
    path = pathlib.Path(path)
    path.write_text(json.dumps(config_to_dict(config), indent=2), encoding="utf-8")
