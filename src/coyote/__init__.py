""" Python implementation of coyote: a single message-queue endpoint that
    reads JSON jobs from a broker socket, hands them to a handler, and
    replies, acknowledges, or discards each one according to the endpoint's
    archetype.
"""

import logging

logging.getLogger(__name__).addHandler(logging.NullHandler())

# Utility components.

from . import errors
from . import json
from . import signals

# Submodules used by multiple other components.

from . import config
from . import mode
from . import states
from . import transport

# Primary public-facing interfaces.

from .completion import Failure, Job, Success
from .endpoint import Endpoint
from .errors import (
    CoyoteError,
    ConfigurationError,
    DecodeError,
    EncodeError,
    NotConnected,
    ProtocolViolation,
    TransportError,
)
from .mode import Mode
from .states import Event, State

__version__ = '0.1.0'

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
