""" Everything that happens between a job arriving and the job being
    finished: the :class:`Job` itself, the :class:`Success` and
    :class:`Failure` outcomes a handler can produce, and the
    :class:`Coordinator` that turns an outcome into a reply, an
    acknowledgment, or a discard.
"""

import asyncio
import dataclasses
import functools
import inspect
import itertools
import logging
from typing import Any

from .errors import EncodeError, NotConnected

logger = logging.getLogger(__name__)


@dataclasses.dataclass(frozen=True)
class Success:
    value: Any = None


@dataclasses.dataclass(frozen=True)
class Failure:
    error: BaseException


_job_ids = itertools.count(1)


class Job:
    """ A single unit of work. The *payload* is the decoded inbound value;
        the outcome is assigned exactly once, by whichever of
        :func:`callback` or :func:`settle` gets there first. The
        *on_settle* callable is invoked with the job upon settlement.
    """

    def __init__(self, payload, on_settle):

        self.id = next(_job_ids)
        self.payload = payload
        self.outcome = None
        self.on_settle = on_settle


    def __repr__(self):
        return 'Job(%d, %r)' % (self.id, self.payload)


    @property
    def settled(self):
        return self.outcome is not None


    def settle(self, outcome):
        """ Assign the *outcome* of this job. Returns True if the outcome was
            accepted, False if the job had already been settled.
        """

        if self.outcome is not None:
            logger.warning('%r already settled as %r, ignoring %r', self, self.outcome, outcome)
            return False

        self.outcome = outcome
        self.on_settle(self)
        return True


    def callback(self, error=None, response=None):
        """ The completion callback handed to handlers. Pass *error* to fail
            the job, otherwise *response* is the result.
        """

        if error is not None:
            return self.settle(Failure(error))
        else:
            return self.settle(Success(response))


# end of class Job



def invoke(handler, payload, callback, loop):
    """ Run *handler* for one job, normalizing the ways it can finish into a
        single call to *callback*. A handler may call the callback itself,
        return an awaitable, or raise.
    """

    try:
        result = handler(payload, callback)
    except Exception as error:
        callback(error=error)
        return

    if inspect.isawaitable(result):
        future = asyncio.ensure_future(result, loop=loop)
        future.add_done_callback(functools.partial(_settle_from_future, callback))


def _settle_from_future(callback, future):

    if future.cancelled():
        callback(error=asyncio.CancelledError())
        return

    error = future.exception()

    if error is None:
        callback(response=future.result())
    else:
        callback(error=error)



class Coordinator:
    """ Translate the outcome of a settled :class:`Job` into the action
        appropriate for the endpoint's :class:`coyote.mode.Mode`, then
        report the job as complete.

        The *debug* and *job_failure* arguments are the endpoint's
        :class:`coyote.signals.Signal` channels; *completed* is invoked
        exactly once for every job passed to :func:`complete`.
    """

    def __init__(self, mode, debug, job_failure, completed):

        self.mode = mode
        self.debug = debug
        self.job_failure = job_failure
        self.completed = completed

        self.socket = None
        self.outbound = None


    def attach(self, socket, outbound=None):
        self.socket = socket
        self.outbound = outbound


    def complete(self, job):

        outcome = job.outcome

        try:
            if isinstance(outcome, Failure):
                self.fail(job, outcome.error)
            else:
                self._succeed(job, outcome.value)
        finally:
            self.completed(job)


    def _succeed(self, job, response):

        # An unencodable response fails the job, which still settles it.

        try:
            self.write(response)
        except EncodeError as error:
            self.fail(job, error)


    def fail(self, job, error):

        self.debug.emit('Job failed', job, error)
        self.job_failure.emit(job, error)

        if self.mode.can_write:
            self.write({'error': str(error)})
        elif self.mode.can_ack:
            self.debug.emit('Discarding job', job)
            self._socket().discard()


    def write(self, response):
        """ Send *response* downstream if the endpoint can write, otherwise
            acknowledge the job if it can acknowledge. Writing takes
            precedence when both are possible.
        """

        if self.mode.can_write:
            self.debug.emit('Writing response', response)

            if self.outbound is None:
                raise NotConnected('endpoint is not connected, cannot write')

            self.outbound.write(response)

        elif self.mode.can_ack:
            self.debug.emit('ACKing job')
            self._socket().ack()


    def _socket(self):

        if self.socket is None:
            raise NotConnected('endpoint is not connected')

        return self.socket


# end of class Coordinator


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
