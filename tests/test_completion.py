import asyncio
import json
import pytest

from coyote.completion import Coordinator, Failure, Job, Success, invoke
from coyote.errors import EncodeError, NotConnected
from coyote.mode import resolve
from coyote.signals import Signal, VariadicSignal
from coyote.stream import Outbound

from conftest import FakeSocket, drain


class Harness:
    """ A coordinator for the given archetype, attached to a fake socket,
        recording everything it reports.
    """

    def __init__(self, archetype, attach=True):

        self.socket = FakeSocket(archetype, {})
        self.failures = list()
        self.completed = list()

        mode = resolve(archetype)
        debug = VariadicSignal('debug', ('message',))
        job_failure = Signal('job_failure', ('job', 'error'))
        job_failure.connect(lambda job, error: self.failures.append((job, error)))

        self.coordinator = Coordinator(mode, debug, job_failure, self.completed.append)

        if attach:
            outbound = Outbound(self.socket) if mode.can_write else None
            self.coordinator.attach(self.socket, outbound)

    def job(self, payload='payload'):
        return Job(payload, self.coordinator.complete)


def test_job_settles_once():

    settled = list()
    job = Job('payload', settled.append)

    assert job.settled == False
    assert job.callback(response='first') == True
    assert job.callback(error=RuntimeError('second')) == False

    assert settled == [job]
    assert job.outcome == Success('first')


def test_job_callback_failure():

    job = Job('payload', lambda job: None)
    error = ValueError('nope')
    job.callback(error)

    assert job.outcome == Failure(error)


def test_reply_success_writes_response():

    harness = Harness('REPLY')
    job = harness.job()
    job.callback(response='Yum!')

    assert harness.socket.written == [b'"Yum!"']
    assert harness.completed == [job]
    assert harness.failures == []


def test_reply_failure_writes_error_envelope():

    harness = Harness('REPLY')
    job = harness.job()
    error = RuntimeError('out of birdseed')
    job.callback(error)

    assert harness.socket.written == [b'{"error":"out of birdseed"}']
    assert harness.failures == [(job, error)]
    assert harness.completed == [job]


def test_worker_success_acks():

    harness = Harness('WORKER')
    job = harness.job()
    job.callback(response='ignored')

    assert harness.socket.calls == ['ack']
    assert harness.completed == [job]


def test_worker_failure_discards():

    harness = Harness('WORKER')
    job = harness.job()
    error = RuntimeError('splat')
    job.callback(error)

    assert harness.socket.calls == ['discard']
    assert harness.socket.written == []
    assert harness.failures == [(job, error)]
    assert harness.completed == [job]


def test_subscribe_does_nothing_downstream():

    harness = Harness('SUBSCRIBE')

    job = harness.job()
    job.callback(response='whatever')
    failed = harness.job()
    failed.callback(RuntimeError('no one to tell'))

    assert harness.socket.calls == []
    assert len(harness.failures) == 1
    assert harness.completed == [job, failed]


def test_write_precedence_over_ack():
    """ REQUEST and REPLY never acknowledge through write(), they send.
    """

    harness = Harness('REQUEST')
    harness.coordinator.write({'question': 'what'})

    assert harness.socket.calls == ['write']


def test_unencodable_response_fails_the_job():

    harness = Harness('REPLY')
    job = harness.job()

    assert job.callback(response={'eggs', 'spam'}) == True

    assert len(harness.failures) == 1
    failed, error = harness.failures[0]
    assert failed is job
    assert isinstance(error, EncodeError)

    assert harness.socket.calls == ['write']
    assert json.loads(harness.socket.written[0]) == {'error': str(error)}
    assert harness.completed == [job]


def test_completed_even_when_not_connected():

    harness = Harness('REPLY', attach=False)
    job = harness.job()

    with pytest.raises(NotConnected):
        job.callback(response='Yum!')

    assert harness.completed == [job]


def test_invoke_callback_style(loop):

    job = Job('payload', lambda job: None)

    def handler(payload, callback):
        callback(response=payload.upper())

    invoke(handler, job.payload, job.callback, loop)
    assert job.outcome == Success('PAYLOAD')


def test_invoke_coroutine(loop):

    job = Job('payload', lambda job: None)

    async def handler(payload, callback):
        await asyncio.sleep(0)
        return 'Yum!'

    invoke(handler, job.payload, job.callback, loop)
    assert job.settled == False

    drain(loop)
    assert job.outcome == Success('Yum!')


def test_invoke_coroutine_raises(loop):

    job = Job('payload', lambda job: None)
    error = RuntimeError('rejected')

    async def handler(payload, callback):
        raise error

    invoke(handler, job.payload, job.callback, loop)
    drain(loop)

    assert job.outcome == Failure(error)


def test_invoke_future(loop):

    job = Job('payload', lambda job: None)
    future = loop.create_future()

    invoke(lambda payload, callback: future, job.payload, job.callback, loop)
    assert job.settled == False

    future.set_result(42)
    drain(loop)
    assert job.outcome == Success(42)


def test_invoke_cancelled(loop):

    job = Job('payload', lambda job: None)
    future = loop.create_future()

    invoke(lambda payload, callback: future, job.payload, job.callback, loop)
    future.cancel()
    drain(loop)

    assert isinstance(job.outcome, Failure)
    assert isinstance(job.outcome.error, asyncio.CancelledError)


def test_invoke_handler_raises(loop):

    job = Job('payload', lambda job: None)

    def handler(payload, callback):
        raise KeyError('boom')

    invoke(handler, job.payload, job.callback, loop)

    assert isinstance(job.outcome, Failure)
    assert isinstance(job.outcome.error, KeyError)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
