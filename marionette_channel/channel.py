"""
Command channel.

This module provides the CommandChannel, which serializes commands over a
single transport connection and hands every response back to the callback
of the command that produced it.

The channel keeps two FIFO queues in lockstep:
    send queue      commands not yet written to the transport
    response queue  callbacks waiting for a response, in issue order

Only one command is ever in flight. The next queued command is written
once the response for the current one has been correlated.

State machine:
    NOT_READY -> connect() -> READY
    READY: idle <-> waiting, driven by dispatch and on_response()

Example:
    >>> from marionette_channel import CommandChannel
    >>> from marionette_channel.transport import MockTransport
    >>>
    >>> transport = MockTransport()
    >>> channel = CommandChannel(transport)
    >>> channel.connect(lambda: print(channel.application_type))
    >>> transport.handshake()
    gecko
    >>> channel.send({"name": "getTitle"}, print)
    >>> transport.respond("Example Domain")
    Example Domain
"""

from __future__ import annotations

import asyncio
import logging
from collections import deque
from collections.abc import Callable, Mapping
from enum import Enum, auto
from typing import TYPE_CHECKING, Any

from pydantic import ValidationError

from marionette_channel.constants import ChannelConstants
from marionette_channel.exceptions import MissingCallbackError, NotReadyError
from marionette_channel.models import HandshakeInfo, ResponseEnvelope

if TYPE_CHECKING:
    from marionette_channel.registry import TransportRegistry
    from marionette_channel.transport.abc import AbstractTransport

# Module logger
logger = logging.getLogger(__name__)

ResponseCallback = Callable[[Any], Any]


class ChannelState(Enum):
    """Command channel readiness states."""

    NOT_READY = auto()
    """connect() has not been called; sends are rejected."""

    READY = auto()
    """connect() has been called; sends are accepted and queued."""


class CommandChannel:
    """
    Single-connection command pipeline with in-order response correlation.

    Commands are opaque: the channel never looks inside them or inside
    the responses. The transport is bound on construction and calls
    on_response() (through AbstractTransport.deliver) for every response
    it reads.

    Responses are only accepted while the channel is ready and when the
    envelope id equals connection_id. Anything else is dropped without
    error, since late data from a superseded connection is expected.
    A dropped response that never comes back leaves its callback pending
    for good; there is no timeout or cancellation.

    Attributes:
        state: Current readiness state.
        connection_id: Identifier responses must carry to be accepted.
        timeout_ms: Advisory command timeout, not enforced here.
        application_type: Remote application type from the handshake.
        traits: Remote traits from the handshake.

    Example:
        >>> channel = CommandChannel(transport, connection_id=1)
        >>> channel.connect(on_ready)
        >>> channel.send({"name": "getUrl"}, handle_url)
    """

    def __init__(
        self,
        transport: AbstractTransport,
        *,
        connection_id: Any = None,
        timeout_ms: float = ChannelConstants.DEFAULT_TIMEOUT_MS,
    ) -> None:
        """
        Initialize the channel and bind it to a transport.

        Args:
            transport: Transport that owns the connection.
            connection_id: Initial connection identifier. The transport may
                replace it when connect() reports one.
            timeout_ms: Advisory command timeout in milliseconds.

        Raises:
            ValueError: If timeout_ms is negative.
        """
        if timeout_ms < 0:
            raise ValueError(f"timeout_ms must be non-negative, got {timeout_ms}")

        self._transport = transport
        self._connection_id = connection_id
        self._timeout_ms = timeout_ms
        self._ready = False
        self._waiting = False
        self._advancing = False
        self._completed = 0
        self._send_queue: deque[Any] = deque()
        self._response_queue: deque[ResponseCallback] = deque()
        self._handshake: HandshakeInfo | None = None

        transport.bind(self.on_response)

    @classmethod
    def from_registry(
        cls,
        registry: TransportRegistry,
        name: str,
        *,
        connection_id: Any = None,
        timeout_ms: float = ChannelConstants.DEFAULT_TIMEOUT_MS,
        **transport_options: Any,
    ) -> CommandChannel:
        """
        Build a transport by name and wrap it in a channel.

        Args:
            registry: Registry to look the transport up in.
            name: Registered transport name.
            connection_id: Initial connection identifier.
            timeout_ms: Advisory command timeout in milliseconds.
            **transport_options: Passed to the transport factory.

        Raises:
            UnknownTransportError: If name is not registered.
        """
        transport = registry.create(name, **transport_options)
        return cls(transport, connection_id=connection_id, timeout_ms=timeout_ms)

    @property
    def state(self) -> ChannelState:
        """Get the current readiness state."""
        return ChannelState.READY if self._ready else ChannelState.NOT_READY

    @property
    def is_ready(self) -> bool:
        """Check if the channel accepts commands."""
        return self._ready

    @property
    def is_waiting(self) -> bool:
        """
        Check if a command is awaiting its response.

        Also true between connect() and the handshake response: the handshake
        holds the single in-flight slot, so commands sent while connecting
        are buffered instead of going out alongside it.
        """
        return self._waiting

    @property
    def connection_id(self) -> Any:
        """Get the identifier responses must carry."""
        return self._connection_id

    @connection_id.setter
    def connection_id(self, value: Any) -> None:
        self._connection_id = value

    @property
    def timeout_ms(self) -> float:
        """Get the advisory command timeout in milliseconds."""
        return self._timeout_ms

    @property
    def handshake(self) -> HandshakeInfo | None:
        """Get the handshake received on connect, if any."""
        return self._handshake

    @property
    def application_type(self) -> Any:
        """Get the remote application type from the handshake."""
        return self._handshake.application_type if self._handshake else None

    @property
    def traits(self) -> Any:
        """Get the remote traits from the handshake."""
        return self._handshake.traits if self._handshake else None

    @property
    def pending_commands(self) -> int:
        """Get the number of commands not yet written to the transport."""
        return len(self._send_queue)

    @property
    def pending_responses(self) -> int:
        """Get the number of callbacks still waiting for a response."""
        return len(self._response_queue)

    @property
    def transport(self) -> AbstractTransport:
        """Get the underlying transport."""
        return self._transport

    def connect(self, on_ready: Callable[[], Any]) -> None:
        """
        Connect the transport and queue the handshake.

        The channel becomes ready immediately so commands can be sent while
        the handshake is still outstanding. Those commands are buffered and
        written once the handshake response has been correlated.

        Calling connect() twice queues two handshake callbacks; guarding
        against that is up to the caller.

        Args:
            on_ready: Called with no arguments once the handshake arrives.

        Raises:
            MissingCallbackError: If on_ready is not callable.
            TransportError: If the transport fails to connect.
        """
        if not callable(on_ready):
            raise MissingCallbackError("on_ready callback is required", received=on_ready)

        self._ready = True
        # The handshake occupies the single in-flight slot until it arrives.
        self._waiting = True
        self._response_queue.append(lambda response: self._complete_handshake(response, on_ready))

        logger.info("Connecting transport %r", self._transport)
        connection_id = self._transport.connect()
        if connection_id is not None:
            self._connection_id = connection_id
            logger.debug("Transport reported connection id %r", connection_id)

    def send(self, command: Any, callback: ResponseCallback | None = None) -> None:
        """
        Queue a command and write it when no other command is in flight.

        Args:
            command: Opaque command payload.
            callback: Called with the response payload exactly once.

        Raises:
            NotReadyError: If connect() has not been called.
            MissingCallbackError: If callback is omitted or not callable.
            TransportError: If the transport fails to write the command. The
                failed command and its callback are discarded, and the
                channel stays usable for later commands.
        """
        if not self._ready:
            raise NotReadyError()

        if not callable(callback):
            raise MissingCallbackError(received=callback)

        self._response_queue.append(callback)
        self._send_queue.append(command)
        logger.debug("Queued command (%d waiting to send)", len(self._send_queue))

        self._advance()

    def on_response(self, data: Any) -> None:
        """
        Correlate a response envelope with the oldest pending callback.

        Invoked by the transport. Must not be called concurrently with
        itself; transports reading on several threads have to serialize
        delivery.

        The envelope id must equal connection_id and be of the same type,
        so an id of True or 1.0 does not match a connection id of 1.

        Args:
            data: Mapping or ResponseEnvelope with ``id`` and ``response``.
        """
        envelope = self._parse_envelope(data)
        if envelope is None:
            return

        if not self._ready or not self._is_current_connection(envelope.id):
            logger.debug(
                "Dropping response for connection %r (expected %r, ready=%s)",
                envelope.id,
                self._connection_id,
                self._ready,
            )
            return

        if not self._response_queue:
            logger.warning("Dropping response for connection %r: no pending callback", envelope.id)
            return

        callback = self._response_queue.popleft()
        self._completed += 1
        try:
            callback(envelope.response)
        finally:
            self._waiting = False
            self._advance()

    async def open(self) -> HandshakeInfo:
        """
        Connect and wait for the handshake.

        Returns:
            HandshakeInfo received from the remote end.
        """
        loop = asyncio.get_running_loop()
        ready: asyncio.Future[HandshakeInfo] = loop.create_future()

        def on_ready() -> None:
            if not ready.done():
                ready.set_result(self._handshake)

        self.connect(on_ready)
        return await ready

    async def execute(self, command: Any) -> Any:
        """
        Send a command and wait for its response.

        No timeout is applied; wrap the call in asyncio.wait_for() if one is
        needed. Cancelling the wait does not remove the command from the
        pipeline.

        Args:
            command: Opaque command payload.

        Returns:
            The response payload.

        Raises:
            NotReadyError: If connect() has not been called.
        """
        loop = asyncio.get_running_loop()
        result: asyncio.Future[Any] = loop.create_future()

        def on_response(response: Any) -> None:
            if not result.done():
                result.set_result(response)

        self.send(command, on_response)
        return await result

    def _advance(self) -> None:
        """
        Dispatch queued commands until one is left awaiting its response.

        Transports that answer from inside send() re-enter on_response();
        those nested calls only correlate, and this loop writes the next
        command, so the stack depth stays flat however long the queue is.

        A callback raising during such a nested answer does not stop the
        loop. The first such error is re-raised once the queue is drained
        or a command is left in flight.
        """
        if self._advancing:
            return

        self._advancing = True
        callback_error: Exception | None = None
        try:
            while not self._waiting and self._send_queue:
                completed = self._completed
                try:
                    self._dispatch()
                except Exception as e:
                    if self._completed == completed:
                        raise
                    if callback_error is None:
                        callback_error = e
        finally:
            self._advancing = False

        if callback_error is not None:
            raise callback_error

    def _dispatch(self) -> None:
        """
        Write the next queued command unless one is already in flight.

        If the transport fails before the command is answered, the command
        and its callback are discarded and the channel is left idle.
        """
        if not self._waiting and self._send_queue:
            self._waiting = True
            command = self._send_queue.popleft()
            completed = self._completed
            logger.debug("Dispatching command %r", command)
            try:
                self._transport.send(command)
            except Exception:
                if self._completed == completed:
                    # Nothing is in flight; the callback at the head was paired with command.
                    self._response_queue.popleft()
                    self._waiting = False
                    logger.warning("Transport failed to send command %r; discarded", command)
                raise

    def _is_current_connection(self, connection_id: Any) -> bool:
        """Check an envelope id against connection_id, type included."""
        return (
            type(connection_id) is type(self._connection_id)
            and connection_id == self._connection_id
        )

    def _complete_handshake(self, response: Any, on_ready: Callable[[], Any]) -> None:
        """Record handshake details and signal readiness."""
        if isinstance(response, HandshakeInfo):
            self._handshake = response
        elif isinstance(response, Mapping):
            self._handshake = HandshakeInfo.model_validate(dict(response))
        else:
            logger.warning("Handshake response is not a mapping: %r", response)
            self._handshake = HandshakeInfo()

        logger.info(
            "Connected to %s on connection %r",
            self._handshake.application_type,
            self._connection_id,
        )
        on_ready()

    @staticmethod
    def _parse_envelope(data: Any) -> ResponseEnvelope | None:
        """Coerce transport data into an envelope, or None if malformed."""
        if isinstance(data, ResponseEnvelope):
            return data
        if not isinstance(data, Mapping):
            logger.warning("Dropping malformed response envelope: %r", data)
            return None
        try:
            return ResponseEnvelope.model_validate(dict(data))
        except ValidationError as e:
            logger.warning("Dropping malformed response envelope: %s", e)
            return None

    def __repr__(self) -> str:
        return (
            f"CommandChannel(state={self.state.name}, connection_id={self._connection_id!r}, "
            f"waiting={self._waiting}, queued={len(self._send_queue)})"
        )
