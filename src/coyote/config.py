"""Construction parameters and process-wide settings.

Endpoint parameters are validated with pydantic before the state machine is
allowed to start; anything wrong with them is a :class:`ConfigurationError`.
Transport defaults that are not part of an endpoint's identity come from the
environment.
"""

from __future__ import annotations

import os
from collections.abc import Mapping
from typing import Any, Optional

from pydantic import AnyUrl, BaseModel, ConfigDict, Field, StrictStr, ValidationError

from .errors import ConfigurationError


class EndpointOptions(BaseModel):
    """Options recognized by every endpoint; unknown keys are rejected."""

    model_config = ConfigDict(extra="forbid", frozen=True)

    topic: Optional[StrictStr] = Field(None, description="Routing key or binding pattern")
    expiration: Optional[float] = Field(None, ge=0, description="Per-message TTL in milliseconds")
    prefetch: int = Field(1, ge=0, description="Unacknowledged deliveries allowed in flight")
    persistent: Optional[bool] = Field(None, description="Durable queues and persistent messages")
    routing: Optional[StrictStr] = Field(None, description="Exchange type for PUBLISH/SUBSCRIBE")


class EndpointConfig(BaseModel):
    """The full identity of an endpoint."""

    model_config = ConfigDict(frozen=True)

    uri: AnyUrl
    archetype: StrictStr
    queue: StrictStr = Field(..., min_length=1)
    options: EndpointOptions = Field(default_factory=EndpointOptions)


def validate(
    uri: Any,
    archetype: Any,
    queue: Any,
    options: Optional[Mapping[str, Any]] = None,
) -> EndpointConfig:
    """Return a validated :class:`EndpointConfig`, or raise
    :class:`ConfigurationError` describing every problem found."""

    if options is None:
        options = {}
    elif not isinstance(options, Mapping):
        raise ConfigurationError(f"options must be a mapping, not {type(options).__name__}")

    try:
        return EndpointConfig(
            uri=uri,
            archetype=archetype,
            queue=queue,
            options=EndpointOptions.model_validate(dict(options)),
        )
    except ValidationError as exc:
        raise ConfigurationError(str(exc)) from exc


class Settings:
    """Transport defaults read from the environment at import time.

    Call :meth:`reload` after changing the environment.
    """

    def __init__(self) -> None:
        self.reload()

    def reload(self) -> None:
        self.amqp_heartbeat = _env_int("COYOTE_AMQP_HEARTBEAT", 600)
        self.amqp_blocked_timeout = _env_int("COYOTE_AMQP_BLOCKED_TIMEOUT", 300)


def _env_int(name: str, default: int) -> int:
    raw = os.environ.get(name)
    if raw in (None, ""):
        return default
    try:
        return int(raw)
    except ValueError as exc:
        raise ConfigurationError(f"{name} must be an integer, got {raw!r}") from exc


settings = Settings()
