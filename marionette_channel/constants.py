"""
Channel-wide constants and defaults.
"""

from __future__ import annotations

from typing import Final


class ChannelConstants:
    """Default values used when a channel is constructed without overrides."""

    DEFAULT_TIMEOUT_MS: Final[float] = 10000
    """Advisory command timeout in milliseconds. Not enforced by the channel."""

    DEFAULT_MOCK_CONNECTION_ID: Final[str] = "mock-0"
    """Connection id reported by the in-memory transports."""

    DEFAULT_APPLICATION_TYPE: Final[str] = "gecko"
    """Application type the mock transports announce in their handshake."""
