# kuramoto_field/coupling.py
from __future__ import annotations
from typing import Any, Dict, Optional

import numpy as np

from .errors import TopologyMismatchError


class CouplingProvider:
    """
    Source of the (N, N) non-negative coupling weights S_ij (zero diagonal)
    used inside the coupling sum. Engines hold exactly one provider.
    """
    topology = "custom"

    def __init__(self, matrix: np.ndarray, params: Optional[Dict[str, Any]] = None):
        W = np.array(matrix, dtype=float, copy=True)
        np.fill_diagonal(W, 0.0)
        self.matrix = W
        self.params = dict(params or {})

    @property
    def N(self) -> int:
        return int(self.matrix.shape[0])

    def describe(self) -> Dict[str, Any]:
        return {"topology": self.topology, "params": dict(self.params), "N": self.N}


class SpatialCoupling(CouplingProvider):
    """Distance-decayed grid weights (precomputed once per range/decay)."""
    topology = "spatial"


class AdjacencyCoupling(CouplingProvider):
    """Externally supplied topology; overrides spatial weights."""

    def __init__(self, adjacency: np.ndarray, topology: Optional[str] = None,
                 params: Optional[Dict[str, Any]] = None):
        A = np.asarray(adjacency, dtype=float)
        # non-positive entries never couple
        super().__init__(np.where(A > 0.0, A, 0.0), params)
        self.topology = topology or "custom"


def uniform_coupling(N: int) -> CouplingProvider:
    """Implicit all-to-all: weight 1 between every distinct pair."""
    p = CouplingProvider(np.ones((int(N), int(N)), dtype=float))
    p.topology = "all-to-all"
    return p


def as_adjacency(adjacency: Any, N: int) -> np.ndarray:
    """
    Coerce ndarray / nested lists / Network into an (N, N) float array.
    Raises TopologyMismatchError on any other shape.
    """
    A = getattr(adjacency, "adjacency", adjacency)
    try:
        A = np.asarray(A, dtype=float)
    except (TypeError, ValueError) as e:
        raise TopologyMismatchError(f"adjacency is not a numeric matrix: {e}") from e
    if A.ndim != 2 or A.shape != (int(N), int(N)):
        raise TopologyMismatchError(
            f"adjacency shape {A.shape} does not match ({int(N)}, {int(N)})"
        )
    return A
