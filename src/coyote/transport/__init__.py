"""Transport layer implementations."""

from __future__ import annotations

import asyncio
from urllib.parse import urlsplit

from ..errors import ConfigurationError, TransportConnectionError, TransportError
from .base import Context, Socket

# Implementations are imported lazily so that selecting one does not pull in
# the client libraries of the others.

_BACKENDS = {
    "amqp": "rabbitmq",
    "amqps": "rabbitmq",
}

schemes = frozenset(_BACKENDS)


def backend(uri: str) -> str:
    """Return the name of the transport module serving *uri*."""

    scheme = urlsplit(str(uri)).scheme.lower()
    try:
        return _BACKENDS[scheme]
    except KeyError:
        raise ConfigurationError(
            f"no transport for URI scheme {scheme!r}; expected one of {sorted(schemes)}"
        ) from None


def context(uri: str, loop: asyncio.AbstractEventLoop) -> Context:
    """Return a new transport :class:`Context` for *uri* running on *loop*."""

    name = backend(uri)

    if name == "rabbitmq":
        from . import rabbitmq
        return rabbitmq.Context(str(uri), loop)

    raise ImportError(f"unknown transport backend: {name!r}")
