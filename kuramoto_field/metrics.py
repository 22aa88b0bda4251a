# kuramoto_field/metrics.py
from __future__ import annotations
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple, Union

import numpy as np

MIN_POINTS = 100


def _empty_summary() -> Dict[str, Any]:
    return {
        "final_r": 0.0,
        "mean_r": 0.0,
        "std_r": 0.0,
        "min_r": 0.0,
        "max_r": 0.0,
        "settling_time": None,
        "converged": False,
        "oscillating": False,
    }


def _series(history: Any) -> Tuple[np.ndarray, np.ndarray]:
    """(time, r) from a KuramotoHistory, a dict of lists, or None."""
    if history is None:
        return np.zeros(0), np.zeros(0)
    if isinstance(history, Mapping):
        r = history.get("order_parameter", history.get("orderParameter"))
        t = history.get("time")
    else:
        r = getattr(history, "order_parameter", None)
        t = getattr(history, "time", None)
    r = np.asarray(r if r is not None else [], dtype=float).ravel()
    t = np.asarray(t if t is not None else np.arange(r.size), dtype=float).ravel()
    return t, r


def settling_time(time: Sequence[float], r: Sequence[float], final_r: float) -> Optional[float]:
    """
    First time at which r has reached 90% of its final value and then stays
    within 5% of it for min(50, 10% of the run) consecutive samples.
    """
    r = np.asarray(r, dtype=float)
    n = r.size
    if n == 0:
        return None
    threshold = 0.9 * final_r
    tolerance = 0.05 * final_r
    sustain = min(50, int(n * 0.1))

    for i in range(n - sustain):
        if r[i] >= threshold:
            window = r[i:i + sustain]
            if np.all(np.abs(window - final_r) <= tolerance):
                return round(float(time[i]), 2)
    return None


def is_converged(r: Sequence[float]) -> bool:
    """Std of the last 20% below 0.05 (needs >= 100 points)."""
    r = np.asarray(r, dtype=float)
    if r.size < MIN_POINTS:
        return False
    recent = r[int(np.floor(r.size * 0.8)):]
    return bool(np.std(recent) < 0.05)


def is_oscillating(r: Sequence[float]) -> bool:
    """More than 5% of the last half are local extrema (needs >= 100 points)."""
    r = np.asarray(r, dtype=float)
    if r.size < MIN_POINTS:
        return False
    recent = r[int(np.floor(r.size * 0.5)):]
    d = np.diff(recent)
    crossings = int(np.sum(d[:-1] * d[1:] < 0.0))
    return (crossings / recent.size) > 0.05


def calculate_run_metrics(history: Any) -> Dict[str, Any]:
    """
    Summary of an order-parameter history. Never raises on short or empty
    input: missing checks come back False/None and an empty history gives
    an all-zero summary.
    """
    t, r = _series(history)
    if r.size == 0:
        return _empty_summary()

    final_r = float(r[-1])
    return {
        "final_r": round(final_r, 4),
        "mean_r": round(float(np.mean(r)), 4),
        "std_r": round(float(np.std(r)), 4),
        "min_r": round(float(np.min(r)), 4),
        "max_r": round(float(np.max(r)), 4),
        "settling_time": settling_time(t, r, final_r),
        "converged": is_converged(r),
        "oscillating": is_oscillating(r),
    }


# ============================================================
# Regime helpers
# ============================================================

_CRITICAL_COUPLING = {
    "all-to-all": 0.64,    # 2 / (pi g(0)) for unit-normal frequencies, rounded
    "ring": 2.0,
    "small-world": 1.0,
    "scale-free": 0.8,
    "random": 1.2,
}


def estimate_critical_coupling(topology: Optional[str]) -> float:
    return _CRITICAL_COUPLING.get(topology or "all-to-all", 0.64)


def classify_sync_state(final_r: float) -> str:
    if final_r < 0.2:
        return "incoherent"
    if final_r < 0.5:
        return "weakly synchronized"
    if final_r < 0.8:
        return "partially synchronized"
    if final_r < 0.95:
        return "strongly synchronized"
    return "fully synchronized"


def classify_regime(K: float, topology: Optional[str]) -> str:
    ratio = float(K) / estimate_critical_coupling(topology)
    if ratio < 0.85:
        return "subcritical"
    if ratio < 1.15:
        return "critical"
    return "supercritical"


# ============================================================
# Run record
# ============================================================

def build_run_record(engine: Any, network: Any = None,
                     metrics: Optional[Dict[str, Any]] = None) -> Dict[str, Any]:
    """
    {parameters, network, metrics, timestamp} as plain data. `network` may
    be a Network; otherwise the engine's coupling descriptor is used.
    """
    if network is not None and hasattr(network, "to_dict"):
        net = network.to_dict()
    else:
        net = engine.coupling.describe()
    if metrics is None:
        metrics = calculate_run_metrics(engine.history)
    return {
        "parameters": engine.parameters(),
        "network": net,
        "metrics": dict(metrics),
        "timestamp": datetime.now(timezone.utc).isoformat(),
    }


# ============================================================
# Log lines
# ============================================================

def format_for_log(rows: Union[Mapping[str, Any], List[Mapping[str, Any]]]) -> str:
    """One line per engine state snapshot (ensemble or attention field)."""
    if isinstance(rows, Mapping):
        rows = [rows]
    out_lines: List[str] = []
    for s in rows:
        t = float(s.get("time", 0.0))
        if "attention_map" in s:
            A = np.asarray(s.get("attention_map", []), dtype=float)
            a_mean = float(A.mean()) if A.size else 0.0
            a_max = float(A.max()) if A.size else 0.0
            line = (
                f"[t={t:.2f}, grid={int(s.get('grid_size', 0))}] "
                f"A_mean={a_mean:.3f} "
                f"A_max={a_max:.3f} "
                f"objects={len(s.get('objects', []))} "
                f"tracked={len(s.get('tracked_objects', []))} "
                f"net={s.get('topology', '?')}"
            )
        else:
            line = (
                f"[t={t:.2f}, N={int(s.get('N', 0))}] "
                f"r={float(s.get('order_parameter', 0.0)):.4f} "
                f"K={float(s.get('K', 0.0)):.3f} "
                f"net={s.get('topology', '?')}"
            )
        out_lines.append(line)
    return "\n".join(out_lines)
