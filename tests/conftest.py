from __future__ import annotations

from typing import Callable

import pytest

from plotstats.environment import EnvironmentFacts, HostMetadata
from plotstats.state import FileStateStore
from plotstats.transport import SubmitResult


class FakeTask:
    def __init__(self, action: Callable[[], None]) -> None:
        self.action = action
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def run(self) -> None:
        if not self.cancelled:
            self.action()


class FakeScheduler:
    """Records scheduled tasks; tests fire ticks by hand."""

    def __init__(self) -> None:
        self.tasks: list[FakeTask] = []
        self.calls: list[tuple[float, float]] = []

    def schedule_repeating(self, action, period_seconds, initial_delay=0.0):
        self.calls.append((period_seconds, initial_delay))
        task = FakeTask(action)
        self.tasks.append(task)
        return task

    @property
    def live(self) -> list[FakeTask]:
        return [t for t in self.tasks if not t.cancelled]


class FakeTransport:
    def __init__(self, response: str = "OK") -> None:
        self.response = response
        self.error: Exception | None = None
        self.documents: list[str] = []
        self.closed = False

    def submit(self, app_name: str, document: str) -> SubmitResult:
        self.documents.append(document)
        if self.error is not None:
            raise self.error
        return SubmitResult(
            response=self.response,
            first_update=self.response == "1",
        )

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def store(tmp_path):
    return FileStateStore(tmp_path / "plotstats" / "config.json")


@pytest.fixture
def host():
    return HostMetadata(
        name="TotalFreedomMod",
        version="4.3",
        environment_version="git-Spigot-1.7.10",
        auth_mode=True,
        online_count=lambda: 3,
    )


@pytest.fixture
def facts():
    return EnvironmentFacts(
        os_name="Linux",
        os_arch="x86_64",
        os_version="6.1.0-generic",
        runtime_version="3.12.1",
        cores=8,
    )


@pytest.fixture
def scheduler():
    return FakeScheduler()


@pytest.fixture
def transport():
    return FakeTransport()
