# kuramoto_field/config.py
from __future__ import annotations
import json
import math
import os
from dataclasses import asdict, dataclass, fields, is_dataclass, replace
from typing import Any, Dict, Mapping, Optional

from .errors import ConfigurationError


# camelCase spellings used by UI-side configs -> field names
_ALIASES: Dict[str, str] = {
    "n": "N",
    "k": "K",
    "noiseLevel": "noise_level",
    "phaseLag": "phase_lag",
    "gridSize": "grid_size",
    "spatialRange": "spatial_range",
    "spatialDecay": "spatial_decay",
    "numFeatures": "num_features",
    "frequencyStd": "frequency_std",
    "maxHistoryLength": "history_max",
    "k_stim": "K_stim",
    "k_feat": "K_feat",
}


# ---------- Config normalization ----------
def _config_to_dict(cfg_obj: Any) -> Dict[str, Any]:
    """Accept a dict, a dataclass, or an object with to_dict/as_dict/dict."""
    if cfg_obj is None:
        return {}
    if isinstance(cfg_obj, Mapping):
        return dict(cfg_obj)
    if is_dataclass(cfg_obj) and not isinstance(cfg_obj, type):
        return asdict(cfg_obj)
    for attr in ("to_dict", "as_dict", "dict"):
        fn = getattr(cfg_obj, attr, None)
        if callable(fn):
            out = fn()
            if isinstance(out, Mapping):
                return dict(out)
    if hasattr(cfg_obj, "__dict__") and isinstance(cfg_obj.__dict__, dict):
        return {k: v for k, v in cfg_obj.__dict__.items() if not k.startswith("_")}
    raise ConfigurationError(
        "Expected a dict-like config. Got type "
        f"{type(cfg_obj).__name__} without a supported conversion."
    )


def normalize_keys(d: Mapping[str, Any]) -> Dict[str, Any]:
    """Map camelCase aliases onto field names. Later explicit names win."""
    out: Dict[str, Any] = {}
    for k, v in d.items():
        out[_ALIASES.get(k, k)] = v
    return out


def _check_positive_int(name: str, value: Any) -> int:
    try:
        iv = int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} must be a positive integer, got {value!r}") from None
    if iv <= 0 or iv != value:
        raise ConfigurationError(f"{name} must be a positive integer, got {value!r}")
    return iv


def _check_dt(value: Any) -> float:
    try:
        dt = float(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"dt must be a positive number, got {value!r}") from None
    if not math.isfinite(dt) or dt <= 0.0:
        raise ConfigurationError(f"dt must be a positive number, got {value!r}")
    return dt


class _CfgMixin:
    @classmethod
    def field_names(cls) -> set:
        return {f.name for f in fields(cls)}

    @classmethod
    def from_dict(cls, d: Any = None, **overrides):
        """Build from a dict-like source; unknown keys are ignored."""
        merged = normalize_keys(_config_to_dict(d))
        merged.update(normalize_keys(overrides))
        known = cls.field_names()
        return cls(**{k: v for k, v in merged.items() if k in known and v is not None})

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def merged(self, partial: Mapping[str, Any]):
        """New validated config with the recognized keys of `partial` applied."""
        known = self.field_names()
        changes = {k: v for k, v in normalize_keys(partial).items()
                   if k in known and v is not None}
        return replace(self, **changes)


@dataclass
class KuramotoCfg(_CfgMixin):
    N: int = 50
    K: float = 2.0
    dt: float = 0.05
    noise_level: float = 0.0
    phase_lag: float = 0.0
    frequency_std: float = 1.0
    history_max: Optional[int] = 10000
    seed: Optional[int] = None

    def __post_init__(self):
        self.N = _check_positive_int("N", self.N)
        self.dt = _check_dt(self.dt)
        self.K = float(self.K)
        self.noise_level = float(self.noise_level)
        self.phase_lag = float(self.phase_lag)
        self.frequency_std = float(self.frequency_std)
        if self.history_max is not None:
            self.history_max = _check_positive_int("history_max", self.history_max)


@dataclass
class FieldCfg(_CfgMixin):
    grid_size: int = 32
    K: float = 2.0
    dt: float = 0.05
    noise_level: float = 0.0
    phase_lag: float = 0.0
    K_stim: float = 1.5
    K_feat: float = 2.0
    spatial_range: float = 4.0
    spatial_decay: float = 0.3
    num_features: int = 3
    frequency_std: float = 0.5
    history_max: int = 500
    seed: Optional[int] = None

    def __post_init__(self):
        self.grid_size = _check_positive_int("grid_size", self.grid_size)
        self.num_features = _check_positive_int("num_features", self.num_features)
        self.history_max = _check_positive_int("history_max", self.history_max)
        self.dt = _check_dt(self.dt)
        for name in ("K", "noise_level", "phase_lag", "K_stim", "K_feat",
                     "spatial_range", "spatial_decay", "frequency_std"):
            setattr(self, name, float(getattr(self, name)))

    @property
    def N(self) -> int:
        return self.grid_size * self.grid_size


# ---------- defaults.json ----------
def load_defaults(path: str = "defaults.json") -> Dict[str, Any]:
    """
    Strict JSON with optional "kuramoto" and "field" sections.
    Returns {"kuramoto": KuramotoCfg, "field": FieldCfg}.
    """
    if not os.path.exists(path):
        raise ConfigurationError(f"{path} not found")
    try:
        with open(path, "r") as f:
            raw = json.load(f)
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Failed to parse {path} as strict JSON: {e}") from e
    if not isinstance(raw, dict):
        raise ConfigurationError(f"{path} must hold a JSON object at the top level")
    return {
        "kuramoto": KuramotoCfg.from_dict(raw.get("kuramoto", {})),
        "field": FieldCfg.from_dict(raw.get("field", {})),
    }
