"""
Exception types shared across the board engine.

Nothing here is fatal: every error leaves the board value it was raised
against untouched, so the caller can show a message and carry on.
"""


class ValidationError(ValueError):
    """A name or label was blank or collides with an existing one."""


class NotFoundError(KeyError):
    """A table, school, row or employee referenced by the caller does not exist."""

    def __str__(self) -> str:
        # KeyError repr-quotes its argument; keep the message readable.
        return str(self.args[0]) if self.args else ""


class TransportError(RuntimeError):
    """Load, save or solve failed on the wire. Not retried automatically."""


class BusyError(RuntimeError):
    """A load, save or solve is already in flight for this session."""
