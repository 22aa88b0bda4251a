# kuramoto_field/engine.py
from __future__ import annotations
import logging
from typing import Any, Callable, Dict, Mapping, Optional, Union

import numpy as np

from . import physics
from .config import KuramotoCfg, normalize_keys
from .coupling import AdjacencyCoupling, CouplingProvider, as_adjacency, uniform_coupling
from .history import HistoryPolicy, KuramotoHistory
from .metrics import format_for_log
from .rng import RandomSource

logger = logging.getLogger(__name__)

# keys update_parameters() applies in place; N reinitializes
_SCALAR_KEYS = ("K", "noise_level", "phase_lag", "dt")
NOISE_STD = 0.1


class KuramotoEngine:
    """
    N coupled phase oscillators, fixed-step RK4:

        dtheta_i/dt = omega_i + eta_i + (K/N) sum_{j != i} S_ij sin(theta_j - theta_i - alpha)

    S_ij comes from the coupling provider: uniform all-to-all until
    set_network() installs an explicit adjacency. Not thread-safe; one
    writer drives step(), readers take snapshots via get_state().
    """
    def __init__(self, cfg: Any = None, rng: Union[None, int, RandomSource] = None, **overrides):
        if isinstance(cfg, KuramotoCfg) and not overrides:
            self.cfg = cfg
        else:
            self.cfg = KuramotoCfg.from_dict(cfg, **overrides)

        if isinstance(rng, RandomSource):
            self.rng = rng
        else:
            self.rng = RandomSource(self.cfg.seed if rng is None else rng)

        self.coupling: CouplingProvider = uniform_coupling(self.cfg.N)
        self.history = KuramotoHistory(policy=HistoryPolicy.CAPPED, max_len=self.cfg.history_max)
        self.theta = np.zeros(self.cfg.N, dtype=float)
        self.omega = np.zeros(self.cfg.N, dtype=float)
        self.time = 0.0
        self.frame_idx = 0

        self.initialize()

    # ---------- parameters ----------
    @property
    def N(self) -> int:
        return self.cfg.N

    @property
    def K(self) -> float:
        return self.cfg.K

    @property
    def dt(self) -> float:
        return self.cfg.dt

    @property
    def noise_level(self) -> float:
        return self.cfg.noise_level

    @property
    def phase_lag(self) -> float:
        return self.cfg.phase_lag

    @property
    def topology(self) -> str:
        return self.coupling.topology

    @property
    def adjacency(self) -> Optional[np.ndarray]:
        """Explicit adjacency if one is set, else None (uniform coupling)."""
        if isinstance(self.coupling, AdjacencyCoupling):
            return self.coupling.matrix.copy()
        return None

    def parameters(self) -> Dict[str, Any]:
        return self.cfg.to_dict()

    # ---------- lifecycle ----------
    def initialize(self) -> None:
        """Random phases in (-pi, pi], omega ~ N(0, frequency_std); clears time and history."""
        N = self.cfg.N
        self.theta = np.pi - physics.TWO_PI * self.rng.uniform(N)
        self.omega = self.rng.normal(N, 0.0, self.cfg.frequency_std)
        self.time = 0.0
        self.frame_idx = 0
        self.history.clear()
        logger.debug("initialized %d oscillators (seed=%s)", N, self.rng.seed)

    def update_parameters(self, partial: Optional[Mapping[str, Any]] = None, **kw) -> None:
        """
        Apply any of K, noise_level, phase_lag, dt in place (phases kept).
        A different N is destructive: state is reallocated, frequencies are
        redrawn, history is lost and an explicit network is dropped.
        """
        changes = normalize_keys(dict(partial or {}, **kw))
        accepted = {k: v for k, v in changes.items() if k in _SCALAR_KEYS + ("N",)}
        new_cfg = self.cfg.merged(accepted)   # validates before anything mutates

        resize = new_cfg.N != self.cfg.N
        self.cfg = new_cfg
        if resize:
            if isinstance(self.coupling, AdjacencyCoupling):
                logger.warning(
                    "N changed to %d: dropping %s network, reverting to all-to-all",
                    new_cfg.N, self.coupling.topology,
                )
            self.coupling = uniform_coupling(new_cfg.N)
            self.initialize()

    def set_network(self, adjacency: Any = None, topology: Optional[str] = None,
                    params: Optional[Dict[str, Any]] = None) -> None:
        """Swap the coupling source. Phases, time and history are untouched."""
        if adjacency is None:
            self.coupling = uniform_coupling(self.cfg.N)
            logger.debug("network cleared, uniform all-to-all coupling")
            return
        A = as_adjacency(adjacency, self.cfg.N)
        label = topology or getattr(adjacency, "topology", None)
        if params is None:
            params = getattr(adjacency, "params", None)
        self.coupling = AdjacencyCoupling(A, label, params)
        logger.debug("network set: %s (N=%d)", self.coupling.topology, self.cfg.N)

    # ---------- dynamics ----------
    def _noise(self) -> np.ndarray:
        return self.cfg.noise_level * self.rng.normal(self.cfg.N, 0.0, NOISE_STD)

    def _rhs(self):
        return physics.kuramoto_rhs(
            self.omega, self.coupling.matrix, self.cfg.K, self.cfg.phase_lag,
            noise=self._noise if self.cfg.noise_level > 0.0 else None,
        )

    def derivatives(self, theta: np.ndarray) -> np.ndarray:
        """dtheta/dt at `theta` (draws fresh noise when noise_level > 0)."""
        return self._rhs()(np.asarray(theta, dtype=float))

    def step(self) -> None:
        """Advance exactly one dt and append one history sample."""
        self.theta = physics.rk4_step(self.theta, self._rhs(), self.cfg.dt)
        self.time += self.cfg.dt
        self.frame_idx += 1
        self.history.append(self.time, self.order_parameter(), self.theta)

    def order_parameter(self) -> float:
        return physics.order_parameter(self.theta)[0]

    # ---------- snapshots ----------
    def get_state(self) -> Dict[str, Any]:
        return {
            "theta": self.theta.tolist(),
            "omega": self.omega.tolist(),
            "time": float(self.time),
            "order_parameter": self.order_parameter(),
            "N": self.cfg.N,
            "K": self.cfg.K,
            "topology": self.coupling.topology,
        }

    def get_history(self) -> Dict[str, Any]:
        return self.history.to_dict()

    # ---------- Optional: log metrics every N frames ----------
    def maybe_log_metrics(self, every: int = 10) -> None:
        if every <= 0 or (self.frame_idx % every) != 0:
            return
        try:
            line = format_for_log(self.get_state())
        except Exception:
            logger.debug("metrics summary failed", exc_info=True)
            return
        logger.info(line)


# Convenience runner: drives either engine
def run(engine: Any, steps: int,
        on_frame: Optional[Callable[[int, Any], None]] = None,
        log_every: int = 10) -> Any:
    for _ in range(int(steps)):
        engine.step()
        if on_frame is not None:
            on_frame(engine.frame_idx, engine)
        engine.maybe_log_metrics(log_every)
    return engine
