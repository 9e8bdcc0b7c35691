"""Host metadata and environment facts included in every report."""

from __future__ import annotations

import os
import platform
from dataclasses import dataclass, field
from typing import Callable


def _no_sessions() -> int:
    return 0


@dataclass
class HostMetadata:
    """Identity of the embedding application.

    ``online_count`` is polled on every report (e.g. concurrent players or
    sessions); ``auth_mode`` reports whether the host authenticates users.
    """

    name: str
    version: str
    environment_version: str
    auth_mode: bool = True
    online_count: Callable[[], int] = field(default=_no_sessions)


@dataclass(frozen=True)
class EnvironmentFacts:
    os_name: str
    os_arch: str
    os_version: str
    runtime_version: str
    cores: int


def normalize_arch(arch: str) -> str:
    """Report ``amd64`` as ``x86_64`` so every platform uses the same token."""
    if arch.lower() == "amd64":
        return "x86_64"
    return arch


def detect_environment() -> EnvironmentFacts:
    import psutil

    cores = psutil.cpu_count(logical=True) or os.cpu_count() or 1
    return EnvironmentFacts(
        os_name=platform.system(),
        os_arch=normalize_arch(platform.machine()),
        os_version=platform.release(),
        runtime_version=platform.python_version(),
        cores=cores,
    )
