"""RabbitMQ transport.

Each :class:`Socket` owns one ``pika`` connection and one channel, driven by
the asyncio loop the endpoint runs on. The archetypes follow the familiar
broker socket patterns:

    PUBLISH / SUBSCRIBE   exchange named after the destination
    PUSH / PULL / WORKER  work queue named after the destination
    REQUEST / REPLY       work queue plus a private reply queue
"""

from __future__ import annotations

import asyncio
import collections
import itertools
import logging
from typing import Any, Callable, Deque, List, Mapping, NamedTuple, Optional
from urllib.parse import parse_qs, urlsplit

import pika
from pika.adapters.asyncio_connection import AsyncioConnection

from ..config import settings
from .base import Context as BaseContext
from .base import Socket as BaseSocket
from .base import TransportConnectionError, TransportError

logger = logging.getLogger(__name__)

Step = Callable[[Callable[..., None]], None]


def parameters(uri: str) -> pika.URLParameters:
    """Return connection parameters for *uri*, filling in the process-wide
    defaults for anything the URI query string does not set."""

    params = pika.URLParameters(uri)
    query = parse_qs(urlsplit(uri).query)

    if "heartbeat" not in query:
        params.heartbeat = settings.amqp_heartbeat
    if "blocked_connection_timeout" not in query:
        params.blocked_connection_timeout = settings.amqp_blocked_timeout

    return params


class Delivery(NamedTuple):
    """An inbound message that still has to be settled."""

    tag: int
    properties: pika.BasicProperties


class Socket(BaseSocket):
    """One broker socket of a single archetype."""

    # Archetypes whose deliveries are settled explicitly: via ack/discard for
    # WORKER, by writing the reply for REPLY, and by taken() for PULL.
    manual_ack = frozenset(("PULL", "WORKER", "REPLY"))
    ack_on_take = frozenset(("PULL",))
    consumers = frozenset(("SUBSCRIBE", "PULL", "WORKER", "REQUEST", "REPLY"))

    def __init__(
        self,
        context: "Context",
        archetype: str,
        options: Mapping[str, Any],
    ):
        super().__init__(archetype.upper(), options)
        self.context = context

        self.destination: Optional[str] = None
        self.private_queue: Optional[str] = None

        self._connection: Optional[AsyncioConnection] = None
        self._channel = None
        self._consumer_tag: Optional[str] = None
        self._on_connected: Optional[Callable[[], None]] = None
        self._closing = False
        self._unsettled: Deque[Delivery] = collections.deque()
        self._correlation = itertools.count(1)

    # --- options ---

    @property
    def durable(self) -> bool:
        return bool(self.options.get("persistent"))

    @property
    def exchange_type(self) -> str:
        return self.options.get("routing") or "fanout"

    @property
    def binding_key(self) -> str:
        topic = self.options.get("topic")
        if topic:
            return topic
        return "#" if self.exchange_type == "topic" else ""

    def properties(self, **kwargs) -> pika.BasicProperties:
        expiration = self.options.get("expiration")
        if expiration is not None:
            kwargs["expiration"] = str(int(expiration))
        if self.durable:
            kwargs["delivery_mode"] = 2
        return pika.BasicProperties(content_type="application/json", **kwargs)

    # --- connection ---

    def connect(self, destination: str, callback: Callable[[], None]) -> None:
        self.destination = destination
        self._on_connected = callback
        self._connection = AsyncioConnection(
            parameters=self.context.parameters,
            on_open_callback=self._on_connection_open,
            on_open_error_callback=self._on_connection_open_error,
            on_close_callback=self._on_connection_closed,
            custom_ioloop=self.context.loop,
        )

    def _on_connection_open(self, connection: AsyncioConnection) -> None:
        logger.debug("%s connection open to %s", self.archetype, self.context.uri)
        connection.channel(on_open_callback=self._on_channel_open)

    def _on_connection_open_error(self, _connection, exc: BaseException) -> None:
        logger.error("%s connection to %s failed: %s", self.archetype, self.context.uri, exc)
        self.error.emit(TransportConnectionError(f"could not connect to {self.context.uri}: {exc}"))

    def _on_connection_closed(self, _connection, reason: BaseException) -> None:
        self._channel = None
        self._consumer_tag = None
        if not self._closing:
            logger.error("%s connection to %s lost: %s", self.archetype, self.context.uri, reason)
            self.error.emit(TransportConnectionError(f"connection lost: {reason}"))
        self.closed.emit()

    def _on_channel_open(self, channel) -> None:
        self._channel = channel
        self._run(self.plan())

    def plan(self) -> List[Step]:
        """Return the declarations needed before this socket is usable."""

        plans = {
            "PUBLISH": [self._declare_exchange],
            "SUBSCRIBE": [self._declare_exchange, self._declare_private, self._bind, self._consume],
            "PUSH": [self._declare_queue],
            "PULL": [self._declare_queue, self._qos, self._consume],
            "WORKER": [self._declare_queue, self._qos, self._consume],
            "REQUEST": [self._declare_queue, self._declare_private, self._consume],
            "REPLY": [self._declare_queue, self._qos, self._consume],
        }
        return list(plans.get(self.archetype, ()))

    def _run(self, steps: List[Step]) -> None:
        """Run the asynchronous *steps* one after another, then signal that
        the socket is connected."""

        def proceed(_frame=None) -> None:
            if steps:
                step = steps.pop(0)
                step(proceed)
            else:
                callback = self._on_connected
                self._on_connected = None
                if callback is not None:
                    callback()

        proceed()

    def _declare_exchange(self, callback) -> None:
        self._channel.exchange_declare(
            exchange=self.destination,
            exchange_type=self.exchange_type,
            durable=self.durable,
            callback=callback,
        )

    def _declare_queue(self, callback) -> None:
        self._channel.queue_declare(
            queue=self.destination, durable=self.durable, callback=callback
        )

    def _declare_private(self, callback) -> None:
        def declared(frame) -> None:
            self.private_queue = frame.method.queue
            callback(frame)

        self._channel.queue_declare(queue="", exclusive=True, callback=declared)

    def _bind(self, callback) -> None:
        self._channel.queue_bind(
            queue=self.private_queue,
            exchange=self.destination,
            routing_key=self.binding_key,
            callback=callback,
        )

    def _qos(self, callback) -> None:
        self._channel.basic_qos(
            prefetch_count=int(self.options.get("prefetch", 1)), callback=callback
        )

    def _consume(self, callback=None) -> None:
        if self.archetype in ("SUBSCRIBE", "REQUEST"):
            queue = self.private_queue
        else:
            queue = self.destination

        self._consumer_tag = self._channel.basic_consume(
            queue=queue,
            on_message_callback=self._on_message,
            auto_ack=self.archetype not in self.manual_ack,
            callback=callback,
        )

    def _on_message(self, _channel, method, properties, body: bytes) -> None:
        if self.archetype in self.manual_ack:
            self._unsettled.append(Delivery(method.delivery_tag, properties))
        self.data.emit(body)

    # --- stream ---

    def write(self, chunk: bytes) -> None:
        channel = self._require_channel()

        if self.archetype == "PUBLISH":
            channel.basic_publish(
                exchange=self.destination,
                routing_key=self.options.get("topic") or "",
                body=chunk,
                properties=self.properties(),
            )
        elif self.archetype == "PUSH":
            channel.basic_publish(
                exchange="", routing_key=self.destination, body=chunk,
                properties=self.properties(),
            )
        elif self.archetype == "REQUEST":
            channel.basic_publish(
                exchange="",
                routing_key=self.destination,
                body=chunk,
                properties=self.properties(
                    reply_to=self.private_queue,
                    correlation_id=str(next(self._correlation)),
                ),
            )
        elif self.archetype == "REPLY":
            self._reply(channel, chunk)
        else:
            raise TransportError(f"cannot write on a {self.archetype} socket")

    def _reply(self, channel, chunk: bytes) -> None:
        """Answer the oldest request that has not been answered yet."""

        try:
            delivery = self._unsettled.popleft()
        except IndexError:
            raise TransportError("no request is awaiting a reply") from None

        reply_to = delivery.properties.reply_to
        if reply_to:
            channel.basic_publish(
                exchange="",
                routing_key=reply_to,
                body=chunk,
                properties=self.properties(
                    correlation_id=delivery.properties.correlation_id
                ),
            )
        else:
            logger.warning("request %s has no reply_to, dropping reply", delivery.tag)

        channel.basic_ack(delivery_tag=delivery.tag)

    def ack(self) -> None:
        delivery = self._next_unsettled("ack")
        if delivery is not None:
            self._require_channel().basic_ack(delivery_tag=delivery.tag)

    def discard(self) -> None:
        delivery = self._next_unsettled("discard")
        if delivery is not None:
            self._require_channel().basic_nack(delivery_tag=delivery.tag, requeue=False)

    def taken(self) -> None:
        # Anything still buffered when the connection closes is unacked, and
        # the broker hands it to another consumer.
        if self.archetype not in self.ack_on_take:
            return

        delivery = self._next_unsettled("ack")
        if delivery is None:
            return

        if self._channel is None:
            logger.warning("%s channel gone, delivery %s will be redelivered", self.archetype, delivery.tag)
        else:
            self._channel.basic_ack(delivery_tag=delivery.tag)

    def _next_unsettled(self, action: str) -> Optional[Delivery]:
        try:
            return self._unsettled.popleft()
        except IndexError:
            logger.warning("%s %s with no unsettled delivery", self.archetype, action)
            return None

    def _require_channel(self):
        if self._channel is None:
            raise TransportError(f"{self.archetype} socket has no open channel")
        return self._channel

    # --- flow control ---

    def pause(self) -> None:
        if self._consumer_tag is not None and self._channel is not None:
            self._channel.basic_cancel(self._consumer_tag)
            self._consumer_tag = None

    def resume(self) -> None:
        if self._consumer_tag is None and self._channel is not None:
            if self.archetype in self.consumers:
                self._consume()

    def close(self) -> None:
        self._closing = True
        connection = self._connection

        if connection is None or connection.is_closed:
            self.context.loop.call_soon(self.closed.emit)
        elif not connection.is_closing:
            connection.close()


class Context(BaseContext):
    """Shared connection parameters for every socket of one broker URI."""

    def __init__(self, uri: str, loop: asyncio.AbstractEventLoop):
        super().__init__(uri)
        self.loop = loop
        self.parameters = parameters(uri)

    def socket(self, archetype: str, options: Mapping[str, Any]) -> Socket:
        return Socket(self, archetype, options)
