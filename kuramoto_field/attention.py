# kuramoto_field/attention.py
"""
Attention field: Kuramoto oscillators on a grid_size x grid_size lattice.

    dtheta/dt = omega + eta + (K/N) * (K_stim * sum_j w_ij * (s_i + s_j)/2 * sin(theta_j - theta_i - alpha)
                                      + K_feat * sum_j w_ij * sim_ij [sim_ij > 0.5] * sin(theta_j - theta_i - alpha))

w is the spatial distance-decay tensor unless an explicit adjacency is set.
s (stimulus) and sim (feature cosine similarity) come from the moving
stimulus objects, projected once per step and frozen across the RK4 stages.
The attention map is the local order parameter over spatial neighbours.
"""
from __future__ import annotations
import logging
from typing import Any, Dict, List, Mapping, Optional, Union

import numpy as np

from . import physics
from .config import FieldCfg, normalize_keys
from .coupling import AdjacencyCoupling, CouplingProvider, SpatialCoupling, as_adjacency
from .history import FieldHistory, HistoryPolicy
from .metrics import format_for_log
from .rng import RandomSource
from .stimuli import NEUTRAL_FEATURE, StimulusObject, make_stimulus, project_stimuli

logger = logging.getLogger(__name__)

_UPDATABLE = ("K", "noise_level", "phase_lag", "dt", "K_stim", "K_feat",
              "spatial_range", "spatial_decay", "grid_size")
NOISE_STD = 0.1
FEATURE_GATE = 0.5
TRACK_THRESHOLD = 0.6


class AttentionFieldEngine:
    def __init__(self, cfg: Any = None, rng: Union[None, int, RandomSource] = None, **overrides):
        if isinstance(cfg, FieldCfg) and not overrides:
            self.cfg = cfg
        else:
            self.cfg = FieldCfg.from_dict(cfg, **overrides)

        if isinstance(rng, RandomSource):
            self.rng = rng
        else:
            self.rng = RandomSource(self.cfg.seed if rng is None else rng)

        self.stimulus_objects: List[StimulusObject] = []
        self._next_object = 0
        self.network: Optional[AdjacencyCoupling] = None
        self.history = FieldHistory(policy=HistoryPolicy.RING, max_len=self.cfg.history_max)

        self._allocate()
        self._recompute_weights()
        self.initialize()

    # ---------- parameters ----------
    @property
    def grid_size(self) -> int:
        return self.cfg.grid_size

    @property
    def N(self) -> int:
        return self.cfg.N

    @property
    def coupling(self) -> CouplingProvider:
        """Explicit adjacency when set, otherwise the spatial weights."""
        return self.network if self.network is not None else self.spatial

    @property
    def topology(self) -> str:
        return self.coupling.topology

    @property
    def spatial_weights(self) -> np.ndarray:
        return self.spatial.matrix

    def parameters(self) -> Dict[str, Any]:
        return self.cfg.to_dict()

    # ---------- setup ----------
    def _allocate(self) -> None:
        N, F = self.cfg.N, self.cfg.num_features
        self.theta = np.zeros(N, dtype=float)
        self.omega = np.zeros(N, dtype=float)
        self.stimulus = np.zeros(N, dtype=float)
        self.features = np.full((N, F), NEUTRAL_FEATURE, dtype=float)
        self.time = 0.0
        self.frame_idx = 0

    def _recompute_weights(self) -> None:
        # O(grid_size^4); only on construction or range/decay/size change
        c = self.cfg
        W = physics.spatial_weights(c.grid_size, c.spatial_range, c.spatial_decay)
        self.spatial = SpatialCoupling(
            W, {"spatial_range": c.spatial_range, "spatial_decay": c.spatial_decay}
        )
        self._neighbours = W > 0.0
        logger.debug("spatial weights: grid=%d range=%.3g decay=%.3g",
                     c.grid_size, c.spatial_range, c.spatial_decay)

    def initialize(self) -> None:
        """Re-randomise phases and frequencies, reset fields, time and history. Objects stay."""
        N = self.cfg.N
        self.theta = np.pi - physics.TWO_PI * self.rng.uniform(N)
        self.omega = self.rng.normal(N, 0.0, self.cfg.frequency_std)
        self.stimulus = np.zeros(N, dtype=float)
        self.features = np.full((N, self.cfg.num_features), NEUTRAL_FEATURE, dtype=float)
        self.time = 0.0
        self.frame_idx = 0
        self.history.clear()
        logger.debug("initialized %dx%d field (seed=%s)", self.cfg.grid_size,
                     self.cfg.grid_size, self.rng.seed)

    def update_parameters(self, partial: Optional[Mapping[str, Any]] = None, **kw) -> None:
        changes = normalize_keys(dict(partial or {}, **kw))
        accepted = {k: v for k, v in changes.items() if k in _UPDATABLE}
        new_cfg = self.cfg.merged(accepted)
        old = self.cfg
        self.cfg = new_cfg

        if new_cfg.grid_size != old.grid_size:
            if self.network is not None:
                logger.warning(
                    "grid_size changed to %d: dropping %s network, reverting to spatial weights",
                    new_cfg.grid_size, self.network.topology,
                )
            self.network = None
            self._allocate()
            self._recompute_weights()
            self.initialize()
        elif (new_cfg.spatial_range != old.spatial_range
              or new_cfg.spatial_decay != old.spatial_decay):
            self._recompute_weights()

    def set_network(self, adjacency: Any = None, topology: Optional[str] = None,
                    params: Optional[Dict[str, Any]] = None) -> None:
        """Override spatial weights with an (N, N) adjacency, N = grid_size^2. None restores them."""
        if adjacency is None:
            self.network = None
            logger.debug("network cleared, spatial coupling")
            return
        A = as_adjacency(adjacency, self.cfg.N)
        label = topology or getattr(adjacency, "topology", None)
        if params is None:
            params = getattr(adjacency, "params", None)
        self.network = AdjacencyCoupling(A, label, params)
        logger.debug("network set: %s (N=%d)", self.network.topology, self.cfg.N)

    # ---------- stimulus objects ----------
    def add_stimulus_object(self, partial: Optional[Mapping[str, Any]] = None, **kw) -> Dict[str, Any]:
        cfg = dict(partial or {}, **kw)
        obj = make_stimulus(cfg, self.cfg.grid_size, self.cfg.num_features,
                            default_id=f"stim-{self._next_object}")
        self._next_object += 1
        self.stimulus_objects.append(obj)
        return obj.to_dict()

    def remove_stimulus_object(self, obj_id: Any) -> bool:
        before = len(self.stimulus_objects)
        self.stimulus_objects = [o for o in self.stimulus_objects if o.id != obj_id]
        return len(self.stimulus_objects) != before

    def clear_stimulus_objects(self) -> None:
        self.stimulus_objects = []

    def update_stimulus_field(self) -> None:
        """Move every object one dt, then rebuild stimulus and features from scratch."""
        for obj in self.stimulus_objects:
            obj.advance(self.cfg.dt, self.cfg.grid_size)
        self.stimulus, self.features = project_stimuli(
            self.stimulus_objects, self.cfg.grid_size, self.cfg.num_features
        )

    # ---------- dynamics ----------
    def coupling_matrix(self) -> np.ndarray:
        """K_stim * stimulus-gated + K_feat * similarity-gated weights for the current fields."""
        W = self.coupling.matrix
        s = self.stimulus
        stim = W * (0.5 * (s[:, None] + s[None, :]))
        sim = physics.cosine_similarity_matrix(self.features)
        feat = W * np.where(sim > FEATURE_GATE, sim, 0.0)
        M = self.cfg.K_stim * stim + self.cfg.K_feat * feat
        np.fill_diagonal(M, 0.0)
        return M

    def _noise(self) -> np.ndarray:
        return self.cfg.noise_level * self.rng.normal(self.cfg.N, 0.0, NOISE_STD)

    def _rhs(self, M: np.ndarray):
        return physics.kuramoto_rhs(
            self.omega, M, self.cfg.K, self.cfg.phase_lag,
            noise=self._noise if self.cfg.noise_level > 0.0 else None,
        )

    def derivatives(self, theta: np.ndarray) -> np.ndarray:
        """dtheta/dt at `theta` against the current (frozen) stimulus and feature fields."""
        return self._rhs(self.coupling_matrix())(np.asarray(theta, dtype=float))

    def step(self) -> None:
        self.update_stimulus_field()
        M = self.coupling_matrix()
        self.theta = physics.rk4_step(self.theta, self._rhs(M), self.cfg.dt)
        self.time += self.cfg.dt
        self.frame_idx += 1

        attention = self.attention_map()
        self.history.append(self.time, attention, self.detect_tracked_objects(attention))

    # ---------- analytics ----------
    def attention_map(self) -> np.ndarray:
        """Local order parameter over spatial neighbours (never the adjacency override)."""
        return physics.local_order_parameter(self.theta, self._neighbours)

    def detect_tracked_objects(self, attention: Optional[np.ndarray] = None,
                               include_untracked: bool = False) -> List[Dict[str, Any]]:
        """
        Mean attention over the wrapped 3x3 block at floor(x), floor(y) of each
        object; tracked when the mean exceeds 0.6.
        """
        A = self.attention_map() if attention is None else np.asarray(attention, dtype=float)
        n = self.cfg.grid_size
        out: List[Dict[str, Any]] = []
        for obj in self.stimulus_objects:
            cx, cy = int(np.floor(obj.x)), int(np.floor(obj.y))
            total = 0.0
            for dx in (-1, 0, 1):
                for dy in (-1, 0, 1):
                    i = (cx + dx) % n
                    j = (cy + dy) % n
                    total += float(A[i * n + j])
            avg = total / 9.0
            tracked = avg > TRACK_THRESHOLD
            if tracked or include_untracked:
                out.append({
                    "id": obj.id,
                    "attention": avg,
                    "position": [obj.x, obj.y],
                    "tracked": tracked,
                })
        return out

    # ---------- snapshots ----------
    def get_state(self) -> Dict[str, Any]:
        attention = self.attention_map()
        return {
            "theta": self.theta.tolist(),
            "omega": self.omega.tolist(),
            "stimulus": self.stimulus.tolist(),
            "features": self.features.tolist(),
            "attention_map": attention.tolist(),
            "objects": [o.to_dict() for o in self.stimulus_objects],
            "tracked_objects": self.detect_tracked_objects(attention),
            "time": float(self.time),
            "grid_size": self.cfg.grid_size,
            "topology": self.coupling.topology,
        }

    def get_history(self) -> Dict[str, Any]:
        return self.history.to_dict()

    def maybe_log_metrics(self, every: int = 10) -> None:
        if every <= 0 or (self.frame_idx % every) != 0:
            return
        try:
            line = format_for_log(self.get_state())
        except Exception:
            logger.debug("metrics summary failed", exc_info=True)
            return
        logger.info(line)
