# kuramoto_field/stimuli.py
from __future__ import annotations
from typing import Any, Dict, List, Sequence, Tuple

import numpy as np

NEUTRAL_FEATURE = 0.5
BOUNCE_PADDING = 2
BOUNCE_DAMPING = 0.95
FEATURE_BLEND_MIN = 0.1


class StimulusObject:
    """
    Moving point stimulus with a Gaussian footprint.
    (x, y) are continuous grid coordinates: x runs along rows, y along columns.
    """
    __slots__ = ("id", "x", "y", "vx", "vy", "radius", "intensity", "features")

    def __init__(self, id_: Any, x: float, y: float, vx: float, vy: float,
                 radius: float, intensity: float, features: Sequence[float]):
        self.id = id_
        self.x = float(x)
        self.y = float(y)
        self.vx = float(vx)
        self.vy = float(vy)
        self.radius = float(radius)
        self.intensity = float(intensity)
        self.features = np.asarray(features, dtype=float).copy()

    def advance(self, dt: float, grid_size: int,
                padding: float = BOUNCE_PADDING, damping: float = BOUNCE_DAMPING) -> None:
        """Integrate position, then bounce off the padded wall losing speed."""
        self.x += self.vx * dt
        self.y += self.vy * dt
        lo, hi = float(padding), float(grid_size) - float(padding)
        if self.x < lo or self.x >= hi:
            self.vx *= -damping
            self.x = max(lo, min(hi, self.x))
        if self.y < lo or self.y >= hi:
            self.vy *= -damping
            self.y = max(lo, min(hi, self.y))

    def footprint(self, rows: np.ndarray, cols: np.ndarray) -> Tuple[np.ndarray, np.ndarray]:
        """(mask of cells within 2*radius, activation intensity*exp(-0.5*(d/r)^2))."""
        if self.radius <= 0.0:
            z = np.zeros(rows.shape, dtype=float)
            return z.astype(bool), z
        dx = rows - self.x
        dy = cols - self.y
        dist = np.sqrt(dx * dx + dy * dy)
        mask = dist <= 2.0 * self.radius
        act = self.intensity * np.exp(-0.5 * (dist / self.radius) ** 2)
        return mask, np.where(mask, act, 0.0)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "x": self.x,
            "y": self.y,
            "vx": self.vx,
            "vy": self.vy,
            "radius": self.radius,
            "intensity": self.intensity,
            "features": self.features.tolist(),
        }


def _fit_features(values: Any, num_features: int) -> np.ndarray:
    """Pad with the neutral value or truncate; unusable input gives all-neutral."""
    out = np.full(int(num_features), NEUTRAL_FEATURE, dtype=float)
    if values is None:
        return out
    try:
        vals = np.asarray(values, dtype=float).ravel()[:num_features]
    except (TypeError, ValueError):
        return out
    out[:vals.size] = vals
    return out


def _number(value: Any, default: float) -> float:
    if value is None:
        return default
    try:
        return float(value)
    except (TypeError, ValueError):
        return default


def make_stimulus(partial: Dict[str, Any], grid_size: int, num_features: int,
                  default_id: Any) -> StimulusObject:
    """
    Fill missing, None or non-numeric fields with defaults: grid centre, zero
    velocity, radius 3, intensity 1, neutral features. Nothing is rejected.
    """
    centre = grid_size / 2.0
    obj_id = partial.get("id")
    return StimulusObject(
        default_id if obj_id is None else obj_id,
        _number(partial.get("x"), centre), _number(partial.get("y"), centre),
        _number(partial.get("vx"), 0.0), _number(partial.get("vy"), 0.0),
        _number(partial.get("radius"), 3.0), _number(partial.get("intensity"), 1.0),
        _fit_features(partial.get("features"), num_features),
    )


def project_stimuli(objects: List[StimulusObject], grid_size: int,
                    num_features: int) -> Tuple[np.ndarray, np.ndarray]:
    """
    Fresh stimulus (N,) and features (N, F) fields from the current object
    positions. Stimulus takes the max over objects; features blend in object
    order wherever activation > 0.1, so overlap order matters.
    """
    n = int(grid_size)
    rows, cols = np.divmod(np.arange(n * n), n)
    rows = rows.astype(float)
    cols = cols.astype(float)

    stimulus = np.zeros(n * n, dtype=float)
    features = np.full((n * n, int(num_features)), NEUTRAL_FEATURE, dtype=float)

    for obj in objects:
        mask, act = obj.footprint(rows, cols)
        if not mask.any():
            continue
        np.maximum(stimulus, act, out=stimulus, where=mask)
        blend = mask & (act > FEATURE_BLEND_MIN)
        if blend.any():
            a = act[blend][:, None]
            features[blend] = features[blend] * (1.0 - a) + obj.features[None, :] * a
    return stimulus, features
