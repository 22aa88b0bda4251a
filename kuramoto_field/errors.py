# kuramoto_field/errors.py
from __future__ import annotations


class KuramotoFieldError(Exception):
    """Base class for errors raised by the simulation core."""


class ConfigurationError(KuramotoFieldError, ValueError):
    """Invalid size, step or config source. Raised before any state changes."""


class TopologyMismatchError(KuramotoFieldError, ValueError):
    """Adjacency matrix does not match the engine's oscillator count."""
