"""Exception types raised by the plotstats client."""

from __future__ import annotations


class PlotstatsError(RuntimeError):
    pass


class StateStoreError(PlotstatsError):
    """The persisted state document could not be read or written."""


class DeliveryError(PlotstatsError):
    """A report submission failed or was rejected by the collector."""
