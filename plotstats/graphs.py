"""Custom graphs and plotters submitted alongside the standard report.

A :class:`Graph` groups named :class:`Plotter` series and shows up as one
chart on the collector's dashboard.  Graphs live in a :class:`GraphRegistry`
owned by a :class:`~plotstats.client.MetricsClient`.

Plotter values may be slow to compute or guarded by the host's own locks,
so the registry only holds its locks long enough to copy the membership out
and polls every plotter with no lock held.
"""

from __future__ import annotations

import threading
from typing import Callable, Iterator, Optional

DEFAULT_PLOTTER_NAME = "Default"


class Plotter:
    """A named, polled integer data source contributing one series to a graph.

    Subclasses implement :meth:`get_value`.  It may be called from the
    reporting thread, so implementations are responsible for their own
    synchronisation.
    """

    def __init__(self, name: str = DEFAULT_PLOTTER_NAME) -> None:
        if name is None:
            raise ValueError("Plotter name cannot be None")
        self._name = name

    @property
    def name(self) -> str:
        return self._name

    @property
    def column_name(self) -> str:
        """Column name shown for this series on the dashboard."""
        return self._name

    def get_value(self) -> int:
        raise NotImplementedError

    def reset(self) -> None:
        """Called after the collector acknowledged the first update of its window."""

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self._name!r})"


class CallbackPlotter(Plotter):
    """Plotter backed by a zero-argument callable."""

    def __init__(
        self,
        name: str,
        func: Callable[[], int],
        on_reset: Optional[Callable[[], None]] = None,
    ) -> None:
        super().__init__(name)
        if func is None:
            raise ValueError("Plotter callback cannot be None")
        self._func = func
        self._on_reset = on_reset

    def get_value(self) -> int:
        return int(self._func())

    def reset(self) -> None:
        if self._on_reset is not None:
            self._on_reset()


class Graph:
    """A named chart holding an insertion-ordered set of plotters.

    Plotters are keyed by column name; adding a second plotter under a name
    that is already present is a no-op.
    """

    def __init__(self, name: str) -> None:
        if name is None:
            raise ValueError("Graph name cannot be None")
        self._name = name
        self._plotters: dict[str, Plotter] = {}
        self._lock = threading.Lock()

    @property
    def name(self) -> str:
        return self._name

    @property
    def plotters(self) -> tuple[Plotter, ...]:
        """Snapshot of the current plotters, safe to iterate without locking."""
        with self._lock:
            return tuple(self._plotters.values())

    def add_plotter(self, plotter: Plotter) -> None:
        if plotter is None:
            raise ValueError("Plotter cannot be None")
        with self._lock:
            self._plotters.setdefault(plotter.column_name, plotter)

    def remove_plotter(self, plotter: Plotter) -> None:
        if plotter is None:
            raise ValueError("Plotter cannot be None")
        with self._lock:
            if self._plotters.get(plotter.column_name) is plotter:
                del self._plotters[plotter.column_name]

    def on_opt_out(self) -> None:
        """Called once when reporting stops because the operator opted out."""

    def __len__(self) -> int:
        with self._lock:
            return len(self._plotters)

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, Graph):
            return NotImplemented
        return other._name == self._name

    def __hash__(self) -> int:
        return hash(self._name)

    def __repr__(self) -> str:
        return f"Graph({self._name!r})"


class GraphRegistry:
    """Thread-safe collection of graphs, de-duplicated by name."""

    def __init__(self) -> None:
        self._graphs: dict[str, Graph] = {}
        self._lock = threading.Lock()

    def create_graph(self, name: str) -> Graph:
        """Return the graph registered under *name*, creating it if needed."""
        if name is None:
            raise ValueError("Graph name cannot be None")
        with self._lock:
            graph = self._graphs.get(name)
            if graph is None:
                graph = Graph(name)
                self._graphs[name] = graph
            return graph

    def add_graph(self, graph: Graph) -> None:
        if graph is None:
            raise ValueError("Graph cannot be None")
        with self._lock:
            self._graphs.setdefault(graph.name, graph)

    def snapshot(self) -> tuple[Graph, ...]:
        with self._lock:
            return tuple(self._graphs.values())

    def collect_values(self) -> dict[str, dict[str, int]]:
        """Poll every plotter and return ``{graph name: {column: value}}``.

        Membership is copied under the locks; ``get_value()`` runs unlocked.
        """
        values: dict[str, dict[str, int]] = {}
        for graph in self.snapshot():
            values[graph.name] = {
                plotter.column_name: int(plotter.get_value())
                for plotter in graph.plotters
            }
        return values

    def notify_opt_out(self) -> None:
        for graph in self.snapshot():
            graph.on_opt_out()

    def reset_plotters(self) -> None:
        for graph in self.snapshot():
            for plotter in graph.plotters:
                plotter.reset()

    def __iter__(self) -> Iterator[Graph]:
        return iter(self.snapshot())

    def __len__(self) -> int:
        with self._lock:
            return len(self._graphs)
