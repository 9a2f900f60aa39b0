"""Transport-level errors."""

from __future__ import annotations


class TransportError(Exception):
    """A transport failed and cannot keep serving (read error, bind failure)."""
