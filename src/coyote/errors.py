""" Exception classes raised by coyote. Everything raised on purpose by this
    package derives from :class:`CoyoteError`, so that callers can catch the
    whole family at once.
"""


class CoyoteError(Exception):
    """ Base class for all coyote errors.
    """


class ConfigurationError(CoyoteError, ValueError):
    """ The construction parameters for an :class:`coyote.Endpoint` are
        invalid. Raised before the state machine starts.
    """


class ProtocolViolation(CoyoteError, RuntimeError):
    """ An event arrived in a state that cannot accept it, such as a job
        being received while another job is still in flight.
    """


class NotConnected(CoyoteError, RuntimeError):
    """ An operation required the stream adapter, but the endpoint has not
        finished connecting.
    """


class DecodeError(CoyoteError, ValueError):
    """ An inbound chunk could not be decoded as JSON. The raw chunk is
        retained as the *chunk* attribute.
    """

    def __init__(self, message, chunk=None):
        CoyoteError.__init__(self, message)
        self.chunk = chunk


class EncodeError(CoyoteError, TypeError):
    """ An outbound value could not be encoded as JSON. The offending value
        is retained as the *value* attribute.
    """

    def __init__(self, message, value=None):
        CoyoteError.__init__(self, message)
        self.value = value


class TransportError(CoyoteError):
    """ Base class for all transport-layer errors.
    """


class TransportConnectionError(TransportError):
    """ The transport could not establish or maintain a connection.
    """


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
