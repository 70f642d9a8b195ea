import asyncio
import pytest

import coyote
from coyote.transport.base import Context, Socket


class FakeSocket(Socket):
    """ Records every primitive the endpoint invokes. The connect callback
        fires immediately unless *connect_now* is False, in which case the
        test calls :func:`connected` itself. Closing never completes on its
        own; the test emits the close notification via :func:`finish_close`.
    """

    def __init__(self, archetype, options, connect_now=True):
        Socket.__init__(self, archetype, options)
        self.connect_now = connect_now
        self.calls = list()
        self.written = list()
        self.destination = None
        self.on_connected = None
        self.takes = 0

    def connect(self, destination, callback):
        self.calls.append('connect')
        self.destination = destination
        self.on_connected = callback
        if self.connect_now:
            callback()

    def connected(self):
        self.on_connected()

    def deliver(self, value):
        self.data.emit(coyote.json.dumps(value))

    def finish_close(self):
        self.closed.emit()

    def write(self, chunk):
        self.calls.append('write')
        self.written.append(chunk)

    def pause(self):
        self.calls.append('pause')

    def resume(self):
        self.calls.append('resume')

    def close(self):
        self.calls.append('close')

    def taken(self):
        self.takes += 1

    def ack(self):
        self.calls.append('ack')

    def discard(self):
        self.calls.append('discard')


class FakeContext(Context):

    def __init__(self, connect_now=True):
        Context.__init__(self, 'amqp://localhost/')
        self.connect_now = connect_now
        self.sockets = list()

    def socket(self, archetype, options):
        socket = FakeSocket(archetype, options, self.connect_now)
        self.sockets.append(socket)
        return socket


def drain(loop, turns=10):
    """ Let the loop run until every callback scheduled so far, and those
        they schedule in turn, has had a chance to run.
    """

    async def idle():
        for turn in range(turns):
            await asyncio.sleep(0)

    loop.run_until_complete(idle())


@pytest.fixture
def loop():
    loop = asyncio.new_event_loop()
    yield loop
    loop.close()


@pytest.fixture
def make_endpoint(loop):
    """ Return a factory for endpoints wired to a :class:`FakeContext`. The
        endpoint is started and connected before it is returned, unless
        *start* is False.
    """

    def make(archetype, options=None, start=True, connect_now=True):
        context = FakeContext(connect_now)
        endpoint = coyote.Endpoint('amqp://localhost/', archetype, 'jobs',
                                   options, loop=loop, context=context)
        if start:
            drain(loop)
        return endpoint

    return make


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
