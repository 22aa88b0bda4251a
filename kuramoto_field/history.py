# kuramoto_field/history.py
from __future__ import annotations
import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, ClassVar, Dict, List, Optional

import numpy as np


class HistoryPolicy(Enum):
    # grows append-only; evicts only past a (large) cap, None = never
    CAPPED = "capped"
    # fixed-size ring
    RING = "ring"


def _plain(v: Any) -> Any:
    return v.tolist() if isinstance(v, np.ndarray) else copy.deepcopy(v)


@dataclass(eq=False)
class _History:
    policy: HistoryPolicy = HistoryPolicy.CAPPED
    max_len: Optional[int] = None

    # series names, in lockstep
    _series: ClassVar[tuple] = ()

    def __post_init__(self):
        if self.policy is HistoryPolicy.RING and self.max_len is None:
            raise ValueError("a ring history needs a max_len")

    def __len__(self) -> int:
        return len(getattr(self, self._series[0]))

    def _append(self, **values) -> None:
        for name in self._series:
            getattr(self, name).append(values[name])
        self._evict()

    def _evict(self) -> None:
        if self.max_len is None:
            return
        excess = len(self) - int(self.max_len)
        if excess > 0:
            for name in self._series:
                del getattr(self, name)[:excess]

    def clear(self) -> None:
        for name in self._series:
            getattr(self, name).clear()

    def to_dict(self) -> Dict[str, List[Any]]:
        """Plain lists, detached from the live buffers."""
        return {name: [_plain(v) for v in getattr(self, name)] for name in self._series}


@dataclass(eq=False)
class KuramotoHistory(_History):
    policy: HistoryPolicy = HistoryPolicy.CAPPED
    max_len: Optional[int] = 10000
    _series: ClassVar[tuple] = ("time", "order_parameter", "phases")

    time: List[float] = field(default_factory=list)
    order_parameter: List[float] = field(default_factory=list)
    phases: List[np.ndarray] = field(default_factory=list)

    def append(self, t: float, r: float, phases: np.ndarray) -> None:
        self._append(time=float(t), order_parameter=float(r),
                     phases=np.array(phases, dtype=float, copy=True))


@dataclass(eq=False)
class FieldHistory(_History):
    policy: HistoryPolicy = HistoryPolicy.RING
    max_len: Optional[int] = 500
    _series: ClassVar[tuple] = ("time", "attention_map", "tracked_objects")

    time: List[float] = field(default_factory=list)
    attention_map: List[np.ndarray] = field(default_factory=list)
    tracked_objects: List[List[Dict[str, Any]]] = field(default_factory=list)

    def append(self, t: float, attention: np.ndarray, tracked: List[Dict[str, Any]]) -> None:
        self._append(time=float(t),
                     attention_map=np.array(attention, dtype=float, copy=True),
                     tracked_objects=copy.deepcopy(tracked))
