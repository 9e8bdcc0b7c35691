"""
plotstats client.

Opt-out usage reporting for embedding applications: periodically submits the
host's version, environment facts and custom graph values to a collector.
"""

from __future__ import annotations

__version__ = "1.0.0"

from .client import PING_INTERVAL, MetricsClient
from .environment import EnvironmentFacts, HostMetadata, detect_environment, normalize_arch
from .errors import DeliveryError, PlotstatsError, StateStoreError
from .graphs import CallbackPlotter, Graph, GraphRegistry, Plotter
from .report import build_report, escape_json, is_numeric_literal
from .scheduler import RepeatingTask, ThreadScheduler
from .state import FileStateStore, PersistedState, default_state_path
from .transport import REVISION, ReportTransport, SubmitResult

__all__ = [
    "CallbackPlotter",
    "DeliveryError",
    "EnvironmentFacts",
    "FileStateStore",
    "Graph",
    "GraphRegistry",
    "HostMetadata",
    "MetricsClient",
    "PING_INTERVAL",
    "PersistedState",
    "Plotter",
    "PlotstatsError",
    "REVISION",
    "RepeatingTask",
    "ReportTransport",
    "StateStoreError",
    "SubmitResult",
    "ThreadScheduler",
    "build_report",
    "default_state_path",
    "detect_environment",
    "escape_json",
    "is_numeric_literal",
    "normalize_arch",
]
