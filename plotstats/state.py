"""Persisted client state (``~/.plotstats/config.json``).

The document holds three keys, ``guid``, ``opt-out`` and ``debug``.  The
opt-out flag may be edited by an operator while the host is running, so the
client re-reads it on every check instead of caching it.
"""

from __future__ import annotations

import json
import logging
import os
import tempfile
import uuid
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Optional

from .errors import StateStoreError

logger = logging.getLogger(__name__)

GUID_KEY = "guid"
OPT_OUT_KEY = "opt-out"
DEBUG_KEY = "debug"


@dataclass
class PersistedState:
    guid: Optional[str] = None
    opt_out: bool = False
    debug: bool = False

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "PersistedState":
        guid = data.get(GUID_KEY)
        return cls(
            guid=str(guid) if guid else None,
            opt_out=bool(data.get(OPT_OUT_KEY, False)),
            debug=bool(data.get(DEBUG_KEY, False)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            OPT_OUT_KEY: self.opt_out,
            GUID_KEY: self.guid,
            DEBUG_KEY: self.debug,
        }


def default_state_path() -> Path:
    """``$PLOTSTATS_CONFIG`` if set, otherwise ``~/.plotstats/config.json``."""
    env_path = os.environ.get("PLOTSTATS_CONFIG", "")
    if env_path:
        return Path(env_path).expanduser()
    return Path.home() / ".plotstats" / "config.json"


class FileStateStore:
    """JSON-file backed state store.

    A missing file loads as defaults.  Unreadable or corrupt content raises
    :class:`StateStoreError` so callers can decide how to fail.
    """

    def __init__(self, path: Optional[Path] = None) -> None:
        self.path = Path(path) if path is not None else default_state_path()

    def load(self) -> PersistedState:
        if not self.path.exists():
            return PersistedState()
        try:
            data = json.loads(self.path.read_text())
        except (json.JSONDecodeError, OSError, UnicodeDecodeError) as exc:
            raise StateStoreError(f"Cannot read {self.path}: {exc}") from exc
        if not isinstance(data, dict):
            raise StateStoreError(f"Cannot read {self.path}: expected a JSON object")
        return PersistedState.from_dict(data)

    def save(self, state: PersistedState) -> None:
        """Write *state* atomically: readers see either the old or the new file."""
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            fd, tmp_name = tempfile.mkstemp(
                dir=str(self.path.parent), prefix=".config-", suffix=".tmp"
            )
            try:
                with os.fdopen(fd, "w") as fh:
                    fh.write(json.dumps(state.to_dict(), indent=2) + "\n")
                os.chmod(tmp_name, 0o600)
                os.replace(tmp_name, self.path)
            except BaseException:
                if os.path.exists(tmp_name):
                    os.unlink(tmp_name)
                raise
        except OSError as exc:
            raise StateStoreError(f"Cannot write {self.path}: {exc}") from exc


def ensure_state(store: FileStateStore) -> PersistedState:
    """Load the state, generating and persisting a guid on first use."""
    state = store.load()
    if state.guid is None:
        state.guid = str(uuid.uuid4())
        store.save(state)
        logger.debug("Generated plotstats guid %s", state.guid)
    return state
