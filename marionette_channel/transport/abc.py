"""
Abstract transport interface for command channels.

This module defines the abstract base class every transport implements.
A transport owns the real connection; the CommandChannel only ever talks
to it through this contract.

The transport layer is responsible for:
- Opening/closing the underlying connection
- Writing one command per send() call
- Framing and decoding inbound data
- Handing each decoded response to deliver()

Implementations:
- MockTransport: in-memory transport for tests and examples
- ScriptedMockTransport: MockTransport driven by a request/response script
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Callable
from typing import Any

from marionette_channel.exceptions import TransportError

logger = logging.getLogger(__name__)

ResponseHandler = Callable[[Any], None]


class AbstractTransport(ABC):
    """
    Abstract base class for command channel transports.

    A CommandChannel binds its response handler when it is constructed.
    From then on the transport calls deliver() once for every response
    it reads, with an envelope of the form ``{"id": ..., "response": ...}``.

    The first envelope delivered after connect() must carry the server
    handshake as its response, e.g.
    ``{"from": "root", "applicationType": "gecko", "traits": []}``.

    Attributes:
        is_open: Whether the connection is currently open.
        is_bound: Whether a response handler has been attached.
    """

    def __init__(self) -> None:
        self._response_handler: ResponseHandler | None = None

    @property
    @abstractmethod
    def is_open(self) -> bool:
        """
        Check if the transport connection is currently open.

        Returns:
            True if connected and able to send, False otherwise.
        """
        ...

    @abstractmethod
    def connect(self) -> Any | None:
        """
        Open the underlying connection.

        Returns:
            The connection identifier when it is known at this point,
            otherwise None. A non-None value becomes the channel's
            connection_id.

        Raises:
            TransportError: If the connection cannot be established.
        """
        ...

    @abstractmethod
    def send(self, command: Any) -> None:
        """
        Write one command to the connection.

        Called exactly once per dispatched command. The channel never calls
        it again until the matching response has been delivered.

        Args:
            command: Opaque command payload.

        Raises:
            TransportError: If the transport is not open or the write fails.
        """
        ...

    @abstractmethod
    def close(self) -> None:
        """
        Close the underlying connection.

        Safe to call multiple times.
        """
        ...

    @property
    def is_bound(self) -> bool:
        """Check if a response handler is attached."""
        return self._response_handler is not None

    def bind(self, handler: ResponseHandler) -> None:
        """
        Attach the handler that receives every delivered envelope.

        Replaces any previously bound handler.

        Args:
            handler: Callable taking one response envelope.
        """
        if self._response_handler is not None and self._response_handler != handler:
            logger.debug("Rebinding response handler on %r", self)
        self._response_handler = handler

    def deliver(self, envelope: Any) -> None:
        """
        Hand a decoded response envelope to the bound handler.

        Args:
            envelope: Mapping or ResponseEnvelope with ``id`` and ``response``.

        Raises:
            TransportError: If no handler is bound.
        """
        if self._response_handler is None:
            raise TransportError("No response handler bound to transport")
        self._response_handler(envelope)
