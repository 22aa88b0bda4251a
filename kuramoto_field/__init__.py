"""
Coupled phase-oscillator simulation core.

Kuramoto ensembles on pluggable network topologies, a 2-D attention field
driven by moving stimulus objects, and run metrics over order-parameter
histories. Pure in-process library; rendering and persistence live elsewhere.
"""
from .attention import AttentionFieldEngine
from .config import FieldCfg, KuramotoCfg, load_defaults
from .engine import KuramotoEngine, run
from .errors import ConfigurationError, KuramotoFieldError, TopologyMismatchError
from .history import FieldHistory, HistoryPolicy, KuramotoHistory
from .metrics import (
    build_run_record,
    calculate_run_metrics,
    classify_regime,
    classify_sync_state,
    estimate_critical_coupling,
)
from .networks import (
    Network,
    create_all_to_all,
    create_network,
    create_random,
    create_ring,
    create_scale_free,
    create_small_world,
    network_stats,
)
from .rng import RandomSource

__all__ = [
    "AttentionFieldEngine",
    "ConfigurationError",
    "FieldCfg",
    "FieldHistory",
    "HistoryPolicy",
    "KuramotoCfg",
    "KuramotoEngine",
    "KuramotoFieldError",
    "KuramotoHistory",
    "Network",
    "RandomSource",
    "TopologyMismatchError",
    "build_run_record",
    "calculate_run_metrics",
    "classify_regime",
    "classify_sync_state",
    "create_all_to_all",
    "create_network",
    "create_random",
    "create_ring",
    "create_scale_free",
    "create_small_world",
    "estimate_critical_coupling",
    "load_defaults",
    "network_stats",
    "run",
]

__version__ = "0.1.0"
