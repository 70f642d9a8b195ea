"""Transport interface.

This is the (small) contract that transport implementations should follow.
The endpoint state machine only ever talks to a transport through it, so
the core remains transport-agnostic.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Callable, Mapping

from ..errors import TransportConnectionError, TransportError
from ..signals import Signal

__all__ = [
    "Context",
    "Socket",
    "TransportConnectionError",
    "TransportError",
]


class Socket(ABC):
    """A single connected socket of one archetype.

    Signals:
        data(chunk):  one inbound message body, as bytes
        closed():     the socket has finished closing
        error(error): the transport failed; no recovery is attempted
    """

    def __init__(self, archetype: str, options: Mapping[str, Any]):
        self.archetype = archetype
        self.options = options
        self.data = Signal("data", ("chunk",))
        self.closed = Signal("closed")
        self.error = Signal("error", ("error",))

    @abstractmethod
    def connect(self, destination: str, callback: Callable[[], None]) -> None:
        """Connect to *destination*, invoking *callback* once ready."""

    @abstractmethod
    def write(self, chunk: bytes) -> None:
        """Send one message body."""

    @abstractmethod
    def pause(self) -> None:
        """Stop delivering inbound messages."""

    @abstractmethod
    def resume(self) -> None:
        """Resume delivering inbound messages."""

    @abstractmethod
    def close(self) -> None:
        """Tear down the socket; emit :attr:`closed` when done."""

    @abstractmethod
    def ack(self) -> None:
        """Positively acknowledge the oldest unsettled delivery."""

    @abstractmethod
    def discard(self) -> None:
        """Negatively acknowledge the oldest unsettled delivery, without requeue."""

    def taken(self) -> None:
        """The consumer took the oldest inbound message off its buffer.

        Transports that settle a delivery on hand-over, rather than on job
        completion, do so here. The default does nothing.
        """


class Context(ABC):
    """Factory for sockets sharing one transport URI."""

    def __init__(self, uri: str):
        self.uri = uri

    @abstractmethod
    def socket(self, archetype: str, options: Mapping[str, Any]) -> Socket:
        """Return a new, unconnected socket."""
