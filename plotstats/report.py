"""Serialise one report document.

The collector parses a hand-rolled JSON dialect rather than whatever
``json.dumps`` would produce: a value is written as a bare number only when
it looks numeric *and* is either ``"0"`` or does not end in ``0``.  Multi-digit
values ending in zero (``"10"``, ``"2.50"``) are therefore sent quoted.
"""

from __future__ import annotations

import re
from typing import Mapping, Optional

from .environment import EnvironmentFacts, HostMetadata

_SIMPLE_ESCAPES = {
    '"': '\\"',
    "\\": "\\\\",
    "\b": "\\b",
    "\t": "\\t",
    "\n": "\\n",
    "\r": "\\r",
}

_DECIMAL_LITERAL = re.compile(
    r"[\x00-\x20]*[+-]?(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:[eE][+-]?[0-9]+)?[fFdD]?[\x00-\x20]*"
)


def escape_json(text: str) -> str:
    """Quote *text*, escaping quotes, backslashes and control characters."""
    out = ['"']
    for ch in text:
        escaped = _SIMPLE_ESCAPES.get(ch)
        if escaped is not None:
            out.append(escaped)
        elif ch < " ":
            out.append(f"\\u{ord(ch):04x}")
        else:
            out.append(ch)
    out.append('"')
    return "".join(out)


def is_numeric_literal(value: str) -> bool:
    """Return ``True`` when *value* is sent as a bare number.

    Accepts ASCII decimal literals with optional sign, exponent, a single
    ``f``/``F``/``d``/``D`` suffix and surrounding whitespace or control
    characters, which is what the collector's reference client parses.
    """
    if value != "0" and value.endswith("0"):
        return False
    return _DECIMAL_LITERAL.fullmatch(value) is not None


def encode_pair(key: str, value: str) -> str:
    encoded = value if is_numeric_literal(value) else escape_json(value)
    return f"{escape_json(key)}:{encoded}"


def _encode_object(pairs: list[str]) -> str:
    return "{" + ",".join(pairs) + "}"


def build_report(
    guid: str,
    host: HostMetadata,
    environment: EnvironmentFacts,
    graph_values: Optional[Mapping[str, Mapping[str, int]]] = None,
    ping: bool = False,
) -> str:
    """Build the report document for one tick.

    Args:
        guid: Stable identifier of this installation.
        host: Metadata of the embedding application.
        environment: OS and runtime facts.
        graph_values: ``{graph name: {column: value}}`` as returned by
            :meth:`GraphRegistry.collect_values`.  Omitted when empty.
        ping: ``True`` for every submission after the first one of a task.

    Returns:
        The document as text, ready for compression.
    """
    pairs = [
        encode_pair("guid", guid),
        encode_pair("plugin_version", host.version),
        encode_pair("server_version", host.environment_version),
        encode_pair("players_online", str(int(host.online_count()))),
        encode_pair("osname", environment.os_name),
        encode_pair("osarch", environment.os_arch),
        encode_pair("osversion", environment.os_version),
        encode_pair("cores", str(environment.cores)),
        encode_pair("auth_mode", "1" if host.auth_mode else "0"),
        encode_pair("java_version", environment.runtime_version),
    ]
    if ping:
        pairs.append(encode_pair("ping", "1"))

    if graph_values:
        graphs = [
            f"{escape_json(name)}:"
            + _encode_object([encode_pair(column, str(value)) for column, value in columns.items()])
            for name, columns in graph_values.items()
        ]
        pairs.append(f"{escape_json('graphs')}:{_encode_object(graphs)}")

    return _encode_object(pairs)
