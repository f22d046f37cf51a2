"""
Mock transports for testing.

This module provides in-memory transport implementations that allow
exercising a CommandChannel without a real connection. Responses are
delivered explicitly by the test or generated from the sent command.

Example:
    >>> from marionette_channel import CommandChannel
    >>> from marionette_channel.transport import MockTransport
    >>>
    >>> mock = MockTransport()
    >>> channel = CommandChannel(mock)
    >>> channel.connect(lambda: print("ready"))
    >>> mock.handshake()
    ready
"""

from __future__ import annotations

from collections.abc import Callable, Iterable
from typing import Any

from marionette_channel.constants import ChannelConstants
from marionette_channel.exceptions import TransportError
from marionette_channel.transport.abc import AbstractTransport

_OWN_ID = object()


class MockTransport(AbstractTransport):
    """
    Mock transport for testing without a real connection.

    Records every command the channel sends and lets the test deliver
    responses on demand. By default responses carry the transport's own
    connection id, so they pass the channel's id check.

    Attributes:
        sent_commands: List of all commands passed to send().
        connect_count: Number of times connect() was called.

    Example:
        >>> mock = MockTransport()
        >>> channel = CommandChannel(mock)
        >>> channel.connect(lambda: None)
        >>> mock.handshake(traits=["T1"])
        >>> channel.send({"name": "getTitle"}, print)
        >>> mock.last_sent
        {'name': 'getTitle'}
        >>> mock.respond("Example Domain")
        Example Domain
    """

    def __init__(
        self,
        connection_id: Any = ChannelConstants.DEFAULT_MOCK_CONNECTION_ID,
        report_connection_id: bool = True,
    ) -> None:
        """
        Initialize the mock transport.

        Args:
            connection_id: Identifier stamped on delivered envelopes.
            report_connection_id: Whether connect() returns the id to the
                channel. Disable to simulate a transport that never
                identifies its connection.
        """
        super().__init__()
        self._connection_id = connection_id
        self._report_connection_id = report_connection_id
        self._is_open = False
        self._connect_count = 0
        self._sent_commands: list[Any] = []
        self._response_callback: Callable[[Any], Any | None] | None = None

    @property
    def is_open(self) -> bool:
        """Check if the mock transport is open."""
        return self._is_open

    @property
    def connection_id(self) -> Any:
        """Get the id stamped on delivered envelopes."""
        return self._connection_id

    @property
    def connect_count(self) -> int:
        """Get the number of connect() calls."""
        return self._connect_count

    @property
    def sent_commands(self) -> list[Any]:
        """Get all commands sent through the transport."""
        return self._sent_commands.copy()

    @property
    def last_sent(self) -> Any | None:
        """Get the most recently sent command."""
        return self._sent_commands[-1] if self._sent_commands else None

    def set_response_callback(
        self,
        callback: Callable[[Any], Any | None] | None,
    ) -> None:
        """
        Set a callback to answer commands as they are sent.

        The callback receives each sent command. A non-None return value is
        delivered immediately as the response payload, from inside send().

        Args:
            callback: Function that takes a command and returns a payload.
        """
        self._response_callback = callback

    def clear(self) -> None:
        """Clear the sent command history."""
        self._sent_commands.clear()

    def connect(self) -> Any | None:
        """Open the mock transport."""
        self._is_open = True
        self._connect_count += 1
        return self._connection_id if self._report_connection_id else None

    def close(self) -> None:
        """Close the mock transport."""
        self._is_open = False

    def send(self, command: Any) -> None:
        """
        Record a command and optionally answer it.

        Args:
            command: Command payload.

        Raises:
            TransportError: If transport is not open.
        """
        if not self._is_open:
            raise TransportError("Mock transport not open")

        self._sent_commands.append(command)

        if self._response_callback:
            response = self._response_callback(command)
            if response is not None:
                self.respond(response)

    def respond(self, response: Any = None, connection_id: Any = _OWN_ID) -> None:
        """
        Deliver a response envelope to the bound channel.

        Args:
            response: Response payload.
            connection_id: Id to stamp on the envelope. Defaults to the
                transport's own connection id.
        """
        if connection_id is _OWN_ID:
            connection_id = self._connection_id
        self.deliver({"id": connection_id, "response": response})

    def handshake(
        self,
        application_type: str = ChannelConstants.DEFAULT_APPLICATION_TYPE,
        traits: Iterable[Any] = (),
    ) -> None:
        """
        Deliver the server greeting that completes connect().

        Args:
            application_type: Announced application type.
            traits: Announced traits.
        """
        self.respond(
            {"from": "root", "applicationType": application_type, "traits": list(traits)}
        )

    def assert_sent(self, expected: Any, index: int = -1) -> None:
        """
        Assert that a specific command was sent.

        Args:
            expected: Expected command.
            index: Index in sent_commands (-1 for last).

        Raises:
            AssertionError: If the command doesn't match.
        """
        if not self._sent_commands:
            raise AssertionError("No commands sent through mock transport")

        actual = self._sent_commands[index]
        if actual != expected:
            raise AssertionError(f"Sent command mismatch: expected {expected!r}, got {actual!r}")

    def assert_send_count(self, expected: int) -> None:
        """
        Assert number of send operations.

        Args:
            expected: Expected number of sends.

        Raises:
            AssertionError: If count doesn't match.
        """
        actual = len(self._sent_commands)
        if actual != expected:
            raise AssertionError(f"Send count mismatch: expected {expected}, got {actual}")

    def __repr__(self) -> str:
        state = "open" if self._is_open else "closed"
        return f"MockTransport(id={self._connection_id!r}, {state})"


class ScriptedMockTransport(MockTransport):
    """
    Mock transport with scripted command/response pairs.

    Each sent command consumes the next script step and its response is
    delivered right away. A step without an expected command matches any.

    Example:
        >>> mock = ScriptedMockTransport()
        >>> mock.expect(command={"name": "getTitle"}, response="Example Domain")
        >>> mock.expect(response="https://example.com/")
    """

    def __init__(
        self,
        connection_id: Any = ChannelConstants.DEFAULT_MOCK_CONNECTION_ID,
    ) -> None:
        super().__init__(connection_id)
        self._script: list[tuple[Any | None, Any]] = []
        self._script_index = 0

    @property
    def remaining_steps(self) -> int:
        """Get the number of script steps not yet consumed."""
        return len(self._script) - self._script_index

    def expect(
        self,
        response: Any,
        command: Any | None = None,
    ) -> None:
        """
        Add an expected command/response pair.

        Args:
            response: Response payload to deliver.
            command: Expected command (None to match any).
        """
        self._script.append((command, response))

    def send(self, command: Any) -> None:
        """Send with script validation."""
        if not self._is_open:
            raise TransportError("Mock transport not open")

        self._sent_commands.append(command)

        if self._script_index < len(self._script):
            expected_command, response = self._script[self._script_index]

            if expected_command is not None and command != expected_command:
                raise AssertionError(
                    f"Script mismatch at step {self._script_index}: "
                    f"expected {expected_command!r}, got {command!r}"
                )

            self._script_index += 1
            self.respond(response)

    def reset_script(self) -> None:
        """Reset script to beginning."""
        self._script_index = 0

    def clear_script(self) -> None:
        """Clear all scripted expectations."""
        self._script.clear()
        self._script_index = 0
