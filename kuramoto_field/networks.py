# kuramoto_field/networks.py
"""
Network topology generators.

Every generator returns a `Network`: a symmetric 0/1 adjacency matrix with a
zero diagonal plus the redundant (i < j) edge list. Randomness comes only
from the injected RandomSource, so a seeded source reproduces a graph.
"""
from __future__ import annotations
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

import numpy as np

from .errors import ConfigurationError
from .rng import RandomSource, as_source

RngLike = Union[None, int, RandomSource]


@dataclass
class Network:
    adjacency: np.ndarray
    edges: List[Tuple[int, int]]
    topology: str
    params: Dict[str, Any] = field(default_factory=dict)

    @property
    def N(self) -> int:
        return int(self.adjacency.shape[0])

    def stats(self) -> Dict[str, Any]:
        return network_stats(self.adjacency)

    def to_dict(self) -> Dict[str, Any]:
        """Plain-data descriptor (no matrix) for run records."""
        s = self.stats()
        return {
            "topology": self.topology,
            "params": dict(self.params),
            "N": self.N,
            "num_edges": len(self.edges),
            "avg_degree": s["avg_degree"],
            "max_degree": s["max_degree"],
            "min_degree": s["min_degree"],
        }


# ------------------------------
# helpers
# ------------------------------
def _check_n(N: int) -> int:
    try:
        n = int(N)
    except (TypeError, ValueError):
        raise ConfigurationError(f"N must be a positive integer, got {N!r}") from None
    if n <= 0:
        raise ConfigurationError(f"N must be a positive integer, got {N!r}")
    return n


def _edge_list(A: np.ndarray) -> List[Tuple[int, int]]:
    ii, jj = np.nonzero(np.triu(A, k=1))
    return [(int(i), int(j)) for i, j in zip(ii, jj)]


def _finish(A: np.ndarray, topology: str, **params) -> Network:
    np.fill_diagonal(A, 0.0)
    return Network(adjacency=A, edges=_edge_list(A), topology=topology, params=params)


def network_stats(adjacency: Optional[Union[np.ndarray, Sequence[Sequence[float]]]]) -> Dict[str, Any]:
    """Degree statistics: nonzero off-diagonal entries per row."""
    if adjacency is None:
        return {"avg_degree": 0.0, "max_degree": 0, "min_degree": 0, "degrees": []}
    A = np.asarray(adjacency, dtype=float)
    if A.size == 0:
        return {"avg_degree": 0.0, "max_degree": 0, "min_degree": 0, "degrees": []}
    nz = A != 0
    np.fill_diagonal(nz, False)
    degrees = nz.sum(axis=1).astype(int)
    return {
        "avg_degree": round(float(degrees.mean()), 2),
        "max_degree": int(degrees.max()),
        "min_degree": int(degrees.min()),
        "degrees": degrees.tolist(),
    }


# ------------------------------
# generators
# ------------------------------
def create_all_to_all(N: int) -> Network:
    n = _check_n(N)
    A = np.ones((n, n), dtype=float)
    return _finish(A, "all-to-all")


def create_random(N: int, p: float = 0.1, rng: RngLike = None) -> Network:
    """Erdos-Renyi: each unordered pair connected with probability p."""
    n = _check_n(N)
    src = as_source(rng)
    A = np.zeros((n, n), dtype=float)
    for i in range(n):
        for j in range(i + 1, n):
            if src.next_uniform() < p:
                A[i, j] = A[j, i] = 1.0
    return _finish(A, "random", p=p)


def create_small_world(N: int, k: int = 4, beta: float = 0.1, rng: RngLike = None) -> Network:
    """
    Watts-Strogatz. Ring lattice with offsets 1..k//2 on both sides (odd k
    drops one offset), then every lattice edge (i, j) is, with probability
    beta, removed and re-attached from i to a random node that is neither i
    nor already a neighbour of i. After 100 failed draws the edge is dropped.
    """
    n = _check_n(N)
    src = as_source(rng)
    A = np.zeros((n, n), dtype=float)

    for i in range(n):
        for off in range(1, int(k) // 2 + 1):
            a = (i + off) % n
            b = (i - off) % n
            if a != i:
                A[i, a] = A[a, i] = 1.0
            if b != i:
                A[i, b] = A[b, i] = 1.0

    for i, j in _edge_list(A):
        if src.next_uniform() < beta:
            A[i, j] = A[j, i] = 0.0
            target = src.integer(n)
            attempts = 0
            while (target == i or A[i, target] == 1.0) and attempts < 100:
                target = src.integer(n)
                attempts += 1
            if attempts < 100:
                A[i, target] = A[target, i] = 1.0

    return _finish(A, "small-world", k=k, beta=beta)


def create_scale_free(N: int, m: int = 2, rng: RngLike = None) -> Network:
    """
    Barabasi-Albert. Complete seed graph on min(m+1, N) nodes, then each new
    node attaches to min(m, current size) distinct existing nodes picked by a
    cumulative-degree roulette wheel. A pass whose roulette pick is already
    taken falls back to a uniformly random existing node.
    """
    n = _check_n(N)
    src = as_source(rng)
    A = np.zeros((n, n), dtype=float)

    m0 = min(int(m) + 1, n)
    A[:m0, :m0] = 1.0
    np.fill_diagonal(A, 0.0)

    for i in range(m0, n):
        degrees = A[:i, :i].sum(axis=1)
        total = float(degrees.sum())
        want = min(int(m), i)
        targets: List[int] = []
        while len(targets) < want:
            pick = src.next_uniform() * total
            acc = 0.0
            for j in range(i):
                acc += degrees[j]
                if acc >= pick and j not in targets:
                    targets.append(j)
                    break
            if len(targets) < want:
                fallback = src.integer(i)
                if fallback not in targets:
                    targets.append(fallback)
        for t in targets:
            A[i, t] = A[t, i] = 1.0

    return _finish(A, "scale-free", m=m)


def create_ring(N: int, k: int = 2) -> Network:
    """Each node linked to its k clockwise neighbours (and so k counter-clockwise)."""
    n = _check_n(N)
    A = np.zeros((n, n), dtype=float)
    for i in range(n):
        for off in range(1, int(k) + 1):
            j = (i + off) % n
            if j != i:
                A[i, j] = A[j, i] = 1.0
    return _finish(A, "ring", k=k)


_GENERATORS = {
    "all-to-all": lambda N, rng, **p: create_all_to_all(N),
    "random": lambda N, rng, **p: create_random(N, p.get("p", 0.1), rng=rng),
    "small-world": lambda N, rng, **p: create_small_world(N, p.get("k", 4), p.get("beta", 0.1), rng=rng),
    "scale-free": lambda N, rng, **p: create_scale_free(N, p.get("m", 2), rng=rng),
    "ring": lambda N, rng, **p: create_ring(N, p.get("k", 2)),
}

TOPOLOGIES = tuple(_GENERATORS)


def create_network(topology: str, N: int, rng: RngLike = None, **params) -> Network:
    gen = _GENERATORS.get(topology)
    if gen is None:
        raise ConfigurationError(
            f"Unknown topology {topology!r}; expected one of {', '.join(TOPOLOGIES)}"
        )
    return gen(N, rng, **params)
