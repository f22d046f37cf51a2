"""
Exception hierarchy for marionette_channel.

All exceptions inherit from ChannelError. The split follows how each kind
of failure reaches the caller:

1. Usage errors are raised synchronously from the call that misused the channel
2. Transport errors come from the connection layer and propagate unchanged
3. Mismatched or stray responses are never raised; the channel drops them
"""

from __future__ import annotations


class ChannelError(Exception):
    """
    Base exception for all marionette_channel errors.

    Callers can catch every library-specific error with a single except clause.
    """

    pass


class UsageError(ChannelError):
    """
    The channel was used incorrectly.

    Raised before any queue is touched, so the channel state is unchanged
    when one of these reaches the caller.
    """

    pass


class NotReadyError(UsageError):
    """Raised when a command is sent before connect() was called."""

    def __init__(self, message: str = "connection is not ready") -> None:
        super().__init__(message)


class MissingCallbackError(UsageError):
    """
    Raised when a required callback is omitted or is not callable.

    Every command needs a callback since the response is only ever
    delivered through it.
    """

    def __init__(
        self,
        message: str = "callback is required",
        *,
        received: object = None,
    ) -> None:
        super().__init__(message)
        self.received = received

    def __str__(self) -> str:
        base = super().__str__()
        if self.received is not None:
            return f"{base} (got {type(self.received).__name__})"
        return base


class TransportError(ChannelError):
    """
    Transport-level error.

    Raised for low-level connection issues:
    - Transport not open
    - No response handler bound
    - I/O failures reported by a concrete transport
    """

    pass


class UnknownTransportError(ChannelError, KeyError):
    """Raised when a registry is asked for a transport name it does not know."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(name)

    def __str__(self) -> str:
        return f"No transport registered under {self.name!r}"
