"""
marionette_channel - ordered command/response pipeline over a single connection.

This library queues remote commands, writes them to a transport one at a
time and hands each response to the callback of the command that produced
it, strictly in issue order. It is the client-side core used by Marionette
style remote-control clients; the actual connection is supplied by a
transport implementation.

Example:
    >>> from marionette_channel import CommandChannel
    >>> from marionette_channel.transport import MockTransport
    >>>
    >>> async def main():
    ...     transport = MockTransport()
    ...     transport.set_response_callback(lambda command: "Example Domain")
    ...     channel = CommandChannel(transport)
    ...     channel.connect(lambda: None)
    ...     transport.handshake()
    ...     title = await channel.execute({"name": "getTitle"})
"""

from marionette_channel.channel import ChannelState, CommandChannel, ResponseCallback
from marionette_channel.constants import ChannelConstants
from marionette_channel.exceptions import (
    ChannelError,
    MissingCallbackError,
    NotReadyError,
    TransportError,
    UnknownTransportError,
    UsageError,
)
from marionette_channel.models import HandshakeInfo, ResponseEnvelope
from marionette_channel.registry import TransportRegistry, create_default_registry
from marionette_channel.transport import AbstractTransport, MockTransport, ScriptedMockTransport

__version__ = "0.1.0"
__all__ = [
    # Channel
    "CommandChannel",
    "ChannelState",
    "ResponseCallback",
    "ChannelConstants",
    # Models
    "HandshakeInfo",
    "ResponseEnvelope",
    # Exceptions
    "ChannelError",
    "UsageError",
    "NotReadyError",
    "MissingCallbackError",
    "TransportError",
    "UnknownTransportError",
    # Transport
    "AbstractTransport",
    "MockTransport",
    "ScriptedMockTransport",
    "TransportRegistry",
    "create_default_registry",
    # Version
    "__version__",
]
