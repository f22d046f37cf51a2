"""
Transport layer for command channels.

A transport moves commands and responses over a real connection. This
package provides the contract plus in-memory implementations.

Available transports:
- AbstractTransport: Base class for concrete connection implementations
- MockTransport: Mock transport for testing without a connection
- ScriptedMockTransport: Mock transport answering from a script

Testing Example:
    >>> from marionette_channel.transport import MockTransport
    >>> mock = MockTransport()
    >>> channel = CommandChannel(mock)
    >>> channel.connect(lambda: None)
    >>> mock.handshake()
"""

from marionette_channel.transport.abc import AbstractTransport, ResponseHandler
from marionette_channel.transport.mock import MockTransport, ScriptedMockTransport

__all__ = [
    "AbstractTransport",
    "MockTransport",
    "ResponseHandler",
    "ScriptedMockTransport",
]
