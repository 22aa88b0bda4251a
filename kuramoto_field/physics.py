# kuramoto_field/physics.py
from __future__ import annotations
from typing import Callable, Optional, Tuple

import numpy as np

TWO_PI = 2.0 * np.pi

# ============================================================
# Phase helpers
# ============================================================

def wrap_phase(theta: np.ndarray) -> np.ndarray:
    """
    Map phases into (-pi, pi]. Equivalent to repeated +/-2pi adjustment, so
    arbitrarily large excursions land in range in one pass.
    """
    th = np.asarray(theta, dtype=float)
    out = np.pi - np.mod(np.pi - th, TWO_PI)
    # mod can round up to exactly 2pi for tiny negative inputs
    return np.where(out <= -np.pi, np.pi, out)


def order_parameter(theta: np.ndarray) -> Tuple[float, float]:
    """
    Global Kuramoto order parameter r * exp(i psi) = mean_j exp(i theta_j).
    Returns (r, psi). Empty input gives (0, 0).
    """
    th = np.asarray(theta, dtype=float).ravel()
    if th.size == 0:
        return 0.0, 0.0
    re = float(np.mean(np.cos(th)))
    im = float(np.mean(np.sin(th)))
    r = float(np.sqrt(re * re + im * im))
    return min(r, 1.0), float(np.arctan2(im, re))


def local_order_parameter(theta: np.ndarray, neighbours: np.ndarray) -> np.ndarray:
    """
    Per-node |mean over neighbours of exp(i theta)|.
    neighbours: (N, N) boolean/0-1 mask; rows with no neighbours give 0.
    """
    th = np.asarray(theta, dtype=float)
    M = np.asarray(neighbours, dtype=float)
    count = M.sum(axis=1)
    re = M @ np.cos(th)
    im = M @ np.sin(th)
    out = np.zeros_like(th)
    has = count > 0
    out[has] = np.sqrt(re[has] ** 2 + im[has] ** 2) / count[has]
    return np.minimum(out, 1.0)


# ============================================================
# Coupling
# ============================================================

def coupling_sum(theta: np.ndarray, C: np.ndarray, phase_lag: float = 0.0) -> np.ndarray:
    """
    sum_j C_ij * sin(theta_j - theta_i - alpha) for every i.

    Uses sin(a - b) = sin a cos b - cos a sin b with b = theta_i + alpha, so
    the O(N^2) work is two mat-vecs. C must have a zero diagonal.
    """
    th = np.asarray(theta, dtype=float)
    s, c = np.sin(th), np.cos(th)
    shifted = th + float(phase_lag)
    return np.cos(shifted) * (C @ s) - np.sin(shifted) * (C @ c)


def cosine_similarity_matrix(features: np.ndarray) -> np.ndarray:
    """Pairwise cosine similarity of row vectors; zero-magnitude rows give 0."""
    F = np.asarray(features, dtype=float)
    norms = np.sqrt(np.sum(F * F, axis=1))
    safe = np.where(norms > 0.0, norms, 1.0)
    U = F / safe[:, None]
    sim = U @ U.T
    zero = norms == 0.0
    if np.any(zero):
        sim[zero, :] = 0.0
        sim[:, zero] = 0.0
    return sim


def spatial_weights(grid_size: int, spatial_range: float, spatial_decay: float) -> np.ndarray:
    """
    Dense (N, N) weights for an n x n grid, N = n^2, idx = row * n + col:
      w = exp(-decay * dist)  if 0 < dist <= range  else 0.
    """
    n = int(grid_size)
    rows, cols = np.divmod(np.arange(n * n), n)
    dr = rows[:, None] - rows[None, :]
    dc = cols[:, None] - cols[None, :]
    dist = np.sqrt(dr * dr + dc * dc, dtype=float)
    W = np.where(dist <= float(spatial_range), np.exp(-float(spatial_decay) * dist), 0.0)
    np.fill_diagonal(W, 0.0)
    return W


# ============================================================
# Integration
# ============================================================

def rk4_step(theta: np.ndarray,
             deriv: Callable[[np.ndarray], np.ndarray],
             dt: float) -> np.ndarray:
    """
    One classical Runge-Kutta step. Each stage gets its own fresh array, so a
    derivative evaluation never sees a partially-updated phase vector.
    Result is wrapped into (-pi, pi].
    """
    th0 = np.array(theta, dtype=float, copy=True)
    k1 = deriv(th0)
    k2 = deriv(th0 + 0.5 * dt * k1)
    k3 = deriv(th0 + 0.5 * dt * k2)
    k4 = deriv(th0 + dt * k3)
    return wrap_phase(th0 + (dt / 6.0) * (k1 + 2.0 * k2 + 2.0 * k3 + k4))


def kuramoto_rhs(omega: np.ndarray,
                 C: np.ndarray,
                 K: float,
                 phase_lag: float,
                 noise: Optional[Callable[[], np.ndarray]] = None
                 ) -> Callable[[np.ndarray], np.ndarray]:
    """
    Build dtheta_i/dt = omega_i + eta_i + (K/N) sum_j C_ij sin(theta_j - theta_i - alpha).
    `noise`, when given, is called once per evaluation for a fresh eta.
    """
    N = int(np.asarray(omega).shape[0])
    gain = float(K) / N if N > 0 else float("nan")

    def f(th: np.ndarray) -> np.ndarray:
        d = omega + gain * coupling_sum(th, C, phase_lag)
        if noise is not None:
            d = d + noise()
        return d

    return f
