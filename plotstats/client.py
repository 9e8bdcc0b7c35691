"""Periodic usage reporting for an embedding application.

Typical use from a host application::

    from plotstats import CallbackPlotter, HostMetadata, MetricsClient

    client = MetricsClient(HostMetadata("MyServer", "1.4.2", "runtime 3.1"))
    graph = client.create_graph("Usage")
    graph.add_plotter(CallbackPlotter("Players", lambda: len(players)))
    client.start()

Reporting is opt-out: the operator can set ``"opt-out": true`` in the state
file at any time and the client stops at its next tick.
"""

from __future__ import annotations

import functools
import logging
import threading
from pathlib import Path
from typing import Any, Callable, Optional

from .environment import EnvironmentFacts, HostMetadata, detect_environment
from .errors import DeliveryError
from .graphs import Graph, GraphRegistry
from .report import build_report
from .scheduler import ThreadScheduler
from .state import FileStateStore, ensure_state
from .transport import ReportTransport

logger = logging.getLogger(__name__)

# Minutes between reports.
PING_INTERVAL = 1


class _ReportingRun:
    """Per-task state; a restarted task begins again with a non-ping report."""

    def __init__(self) -> None:
        self.task: Any = None
        self.first_post = True


class MetricsClient:
    """Owns the reporting task, the opt-out protocol and the custom graphs.

    ``start``, ``enable``, ``disable``, ``is_opted_out`` and the opt-out check
    at the top of every tick share one lock, so an operator toggling opt-out
    can never race the task into a half-cancelled state.  Graph mutation uses
    the registry's own locks.

    Parameters
    ----------
    host:
        Metadata of the embedding application.
    store:
        State store holding ``guid``/``opt-out``/``debug``.  Defaults to
        :class:`FileStateStore` at :func:`default_state_path`.
    transport:
        Object with ``submit(app_name, document)`` and ``close()``.
    scheduler:
        Object with ``schedule_repeating(action, period_seconds,
        initial_delay)`` returning a handle with ``cancel()``.
    environment:
        Callable returning :class:`EnvironmentFacts` for each report.
    interval_minutes:
        Minutes between reports.
    """

    def __init__(
        self,
        host: HostMetadata,
        store: Optional[FileStateStore] = None,
        *,
        transport: Optional[ReportTransport] = None,
        scheduler: Optional[ThreadScheduler] = None,
        environment: Callable[[], EnvironmentFacts] = detect_environment,
        interval_minutes: float = PING_INTERVAL,
    ) -> None:
        if host is None:
            raise ValueError("Host metadata cannot be None")
        if host.name is None:
            raise ValueError("Application name cannot be None")
        self._host = host
        self._store = store if store is not None else FileStateStore()
        self._state = ensure_state(self._store)
        self._guid: str = self._state.guid  # type: ignore[assignment]
        self._debug = self._state.debug
        self._transport = transport if transport is not None else ReportTransport(debug=self._debug)
        self._scheduler = scheduler if scheduler is not None else ThreadScheduler()
        self._environment = environment
        self._period_seconds = interval_minutes * 60
        self._graphs = GraphRegistry()
        self._opt_out_lock = threading.RLock()
        self._task: Any = None

    # ------------------------------------------------------------------
    # Graphs
    # ------------------------------------------------------------------

    def create_graph(self, name: str) -> Graph:
        return self._graphs.create_graph(name)

    def add_graph(self, graph: Graph) -> None:
        self._graphs.add_graph(graph)

    @property
    def graphs(self) -> GraphRegistry:
        return self._graphs

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    @property
    def guid(self) -> str:
        return self._guid

    @property
    def debug(self) -> bool:
        return self._debug

    @property
    def state_path(self) -> Optional[Path]:
        return getattr(self._store, "path", None)

    @property
    def is_running(self) -> bool:
        with self._opt_out_lock:
            return self._task is not None

    def is_opted_out(self) -> bool:
        """Re-read the state store; an unreadable store counts as opted out."""
        with self._opt_out_lock:
            try:
                self._state = self._store.load()
            except Exception as exc:
                if self._debug:
                    logger.info("Cannot load plotstats state: %s", exc)
                return True
            return self._state.opt_out

    def _save_opt_out(self, opt_out: bool) -> None:
        self._state.opt_out = opt_out
        if not self._state.guid:
            self._state.guid = self._guid
        self._store.save(self._state)

    # ------------------------------------------------------------------
    # Task lifecycle
    # ------------------------------------------------------------------

    def start(self) -> bool:
        """Start reporting.  Returns ``False`` only when opted out."""
        with self._opt_out_lock:
            if self.is_opted_out():
                return False
            if self._task is not None:
                return True
            run = _ReportingRun()
            run.task = self._scheduler.schedule_repeating(
                functools.partial(self._tick, run), self._period_seconds, 0.0
            )
            self._task = run.task
            return True

    def enable(self) -> None:
        """Clear the opt-out flag and start reporting if not already running.

        Raises:
            StateStoreError: the flag could not be persisted.
        """
        with self._opt_out_lock:
            if self.is_opted_out():
                self._save_opt_out(False)
            if self._task is None:
                self.start()

    def disable(self) -> None:
        """Set the opt-out flag and stop reporting.

        Raises:
            StateStoreError: the flag could not be persisted.
        """
        with self._opt_out_lock:
            if not self.is_opted_out():
                self._save_opt_out(True)
            if self._task is not None:
                self._task.cancel()
                self._task = None

    def close(self) -> None:
        """Stop the reporting task without changing the opt-out flag."""
        with self._opt_out_lock:
            task, self._task = self._task, None
        if task is not None:
            task.cancel()
            join = getattr(task, "join", None)
            if join is not None:
                join(timeout=5.0)
        self._transport.close()

    # ------------------------------------------------------------------
    # Reporting
    # ------------------------------------------------------------------

    def _tick(self, run: _ReportingRun) -> None:
        # The tick that notices opt-out still sends its report; later ticks never run.
        with self._opt_out_lock:
            if run.task is None or run.task is not self._task:
                return
            if self.is_opted_out():
                self._task.cancel()
                self._task = None
                self._graphs.notify_opt_out()

        ping = not run.first_post
        run.first_post = False
        try:
            self._post(ping)
        except DeliveryError as exc:
            if self._debug:
                logger.info("Metrics submission failed: %s", exc)

    def _post(self, ping: bool) -> None:
        graph_values = self._graphs.collect_values() if len(self._graphs) else None
        document = build_report(
            self._guid,
            self._host,
            self._environment(),
            graph_values,
            ping=ping,
        )
        result = self._transport.submit(self._host.name, document)
        if result.first_update:
            self._graphs.reset_plotters()
