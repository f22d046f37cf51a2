"""
Transport factory registry.

Maps transport names to factories so callers can pick a connection
implementation by name without module-level registration. A registry is
an ordinary object: build one, register what you need and pass it to
CommandChannel.from_registry().

Example:
    >>> registry = create_default_registry()
    >>> registry.register("tcp", MyTcpTransport)
    >>> transport = registry.create("tcp", host="127.0.0.1", port=2828)
"""

from __future__ import annotations

from collections.abc import Callable
from typing import Any

from marionette_channel.exceptions import UnknownTransportError
from marionette_channel.transport.abc import AbstractTransport
from marionette_channel.transport.mock import MockTransport, ScriptedMockTransport

TransportFactory = Callable[..., AbstractTransport]


class TransportRegistry:
    """
    Registry of named transport factories.

    A factory is any callable returning an AbstractTransport, usually the
    transport class itself. Keyword arguments given to create() are passed
    through to the factory.

    Example:
        >>> registry = TransportRegistry()
        >>> registry.register("mock", MockTransport)
        >>> registry.has("mock")
        True
        >>> transport = registry.create("mock", connection_id=42)
    """

    def __init__(self) -> None:
        """Initialize empty registry."""
        self._factories: dict[str, TransportFactory] = {}

    def register(self, name: str, factory: TransportFactory) -> None:
        """
        Register a transport factory.

        Args:
            name: Name the factory is looked up by.
            factory: Callable returning a transport.

        Raises:
            TypeError: If factory is not callable.

        Note:
            Replaces any existing factory with the same name.
        """
        if not callable(factory):
            raise TypeError(f"Transport factory for {name!r} must be callable")
        self._factories[name] = factory

    def unregister(self, name: str) -> bool:
        """
        Remove a transport factory.

        Args:
            name: Name to remove.

        Returns:
            True if a factory was removed, False if none was registered.
        """
        return self._factories.pop(name, None) is not None

    def get(self, name: str) -> TransportFactory | None:
        """
        Get the factory registered under a name.

        Returns:
            The factory, or None if not registered.
        """
        return self._factories.get(name)

    def has(self, name: str) -> bool:
        """Check if a factory is registered under a name."""
        return name in self._factories

    def create(self, name: str, **kwargs: Any) -> AbstractTransport:
        """
        Build a transport with the named factory.

        Args:
            name: Registered transport name.
            **kwargs: Passed through to the factory.

        Returns:
            New transport instance.

        Raises:
            UnknownTransportError: If no factory is registered under name.
        """
        factory = self._factories.get(name)
        if factory is None:
            raise UnknownTransportError(name)
        return factory(**kwargs)

    @property
    def registered_names(self) -> frozenset[str]:
        """Get all registered transport names."""
        return frozenset(self._factories)

    def clear(self) -> None:
        """Remove all registered factories."""
        self._factories.clear()

    def __len__(self) -> int:
        return len(self._factories)

    def __repr__(self) -> str:
        names = ", ".join(sorted(self._factories))
        return f"TransportRegistry(transports=[{names}])"


def create_default_registry() -> TransportRegistry:
    """
    Create a registry with the built-in transports.

    Registers ``"mock"`` (MockTransport) and ``"scripted"``
    (ScriptedMockTransport).

    Returns:
        TransportRegistry with the built-in transports registered.
    """
    registry = TransportRegistry()
    registry.register("mock", MockTransport)
    registry.register("scripted", ScriptedMockTransport)
    return registry
