""" Bridge a transport socket's byte stream to structured values. Reading
    and writing are independent; an endpoint attaches whichever directions
    its :class:`coyote.mode.Mode` allows.
"""

import collections
import logging

from . import json
from .errors import DecodeError

logger = logging.getLogger(__name__)


class Inbound:
    """ Buffer the raw chunks arriving on a socket and hand them over one at
        a time, decoded, whenever the consumer asks for one via
        :func:`demand`. Chunks that arrive while nobody is asking simply wait
        in the buffer. The socket is told about every chunk taken off the
        buffer via :func:`coyote.transport.base.Socket.taken`, so that
        transports can settle a delivery only once it is actually handed
        over. Chunks still buffered upon :func:`detach` are never handed
        over; they are logged.

        The *deliver* callable receives either the decoded value, or a
        :class:`coyote.errors.DecodeError` instance if the chunk was not
        valid JSON.
    """

    def __init__(self, socket, deliver):

        self.socket = socket
        self.deliver = deliver
        self.chunks = collections.deque()
        self.wanted = False

        socket.data.connect(self.receive)


    def __len__(self):
        return len(self.chunks)


    def receive(self, chunk):
        """ Accept one raw *chunk* from the socket.
        """

        self.chunks.append(chunk)

        if self.wanted:
            self._hand_over()


    def demand(self):
        """ Request the next value. It is delivered immediately if a chunk is
            already buffered, otherwise as soon as one arrives.
        """

        self.wanted = True

        if self.chunks:
            self._hand_over()


    def withdraw(self):
        """ Cancel an outstanding :func:`demand`.
        """

        self.wanted = False


    def detach(self):

        self.wanted = False
        self.socket.data.disconnect(self.receive)

        if self.chunks:
            logger.warning('%s socket detached with %d chunk(s) never handed over: %r',
                           self.socket.archetype, len(self.chunks), list(self.chunks))


    def _hand_over(self):

        self.wanted = False
        chunk = self.chunks.popleft()
        self.socket.taken()

        try:
            value = json.loads(chunk)
        except DecodeError as error:
            logger.error('undecodable chunk becomes a failed job: %s', error)
            value = error

        self.deliver(value)


# end of class Inbound



class Outbound:
    """ Serialize structured values as UTF-8 JSON and write them to the
        socket, one value per chunk.
    """

    def __init__(self, socket):
        self.socket = socket


    def write(self, value):
        chunk = json.dumps(value)
        self.socket.write(chunk)
        return chunk


# end of class Outbound


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
