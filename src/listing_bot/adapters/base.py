"""
Abstract base class for messaging platform adapters.

Every chat platform that hosts the listing wizard implements this
interface. Core logic (wizard, resolver, payloads) never imports
platform-specific libraries; handlers reach platform features only
through the adapter.
"""

from abc import ABC, abstractmethod


class PlatformAdapter(ABC):
    """
    Interface that every messaging platform adapter must implement.

    The adapter owns the platform client plus the outbound gateways it
    wires into the wizard, and releases them on stop().
    """

    platform: str = ""

    @abstractmethod
    async def download_file(self, file_ref: str) -> bytes:
        """Download a media file (e.g. a service photo) from the platform by reference."""
        ...

    @abstractmethod
    async def start(self) -> None:
        """Start listening for incoming messages (polling, webhook, etc.)."""
        ...

    @abstractmethod
    async def stop(self) -> None:
        """Gracefully shut down the adapter and its HTTP clients."""
        ...
