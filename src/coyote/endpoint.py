""" The :class:`Endpoint` is the primary public-facing interface: a single
    message-queue socket of one archetype, together with the lifecycle state
    machine that reads jobs from it, hands them to a handler, and completes
    them without ever dropping or interrupting a job in flight.
"""

import asyncio
import collections
import logging

from . import config
from . import mode as modes
from . import states
from . import transport
from .completion import Coordinator, Failure, Job, invoke
from .errors import DecodeError, ProtocolViolation
from .signals import Signal, VariadicSignal
from .states import Event, State
from .stream import Inbound, Outbound

logger = logging.getLogger(__name__)


class Endpoint:
    """ Connect to the queue or exchange named *queue* at the broker
        identified by *uri*, acting as the given *archetype*. The
        *options* mapping may contain ``topic``, ``expiration``,
        ``prefetch``, ``persistent``, and ``routing``; see
        :class:`coyote.config.EndpointOptions`.

        Construction only validates the parameters. The state machine starts
        on the next turn of the event *loop*, so that the caller has the
        chance to connect to the signals and :func:`set_handler` first. If no
        *loop* is specified the running loop is used. A transport *context*
        may be supplied in place of the one selected by the URI scheme.

        Signals, each a :class:`coyote.signals.Signal`:

        :ivar debug: (message, \\*details) diagnostic messages.
        :ivar job: (payload, callback) a job for callback-style consumers.
        :ivar job_failure: (job, error) a job completed unsuccessfully.
        :ivar data: (chunk) raw inbound chunks, before decoding.
        :ivar state_changed: (old, new) every state transition.
        :ivar transport_error: (error) a transport failure; nothing recovers.
    """

    def __init__(self, uri, archetype, queue, options=None, *, loop=None, context=None):

        parameters = config.validate(uri, archetype, queue, options)

        if context is None:
            transport.backend(parameters.uri)

        if loop is None:
            loop = asyncio.get_running_loop()

        self.uri = str(parameters.uri)
        self.archetype = modes.normalize(parameters.archetype)
        self.queue = parameters.queue
        self.options = parameters.options
        self.mode = modes.resolve(self.archetype)
        self.loop = loop

        self.debug = VariadicSignal('debug', ('message',))
        self.job = Signal('job', ('payload', 'callback'))
        self.job_failure = Signal('job_failure', ('job', 'error'))
        self.data = Signal('data', ('chunk',))
        self.state_changed = Signal('state_changed', ('old', 'new'))
        self.transport_error = Signal('transport_error', ('error',))

        self.debug.connect(self._log_debug)

        self.state = State.INITIALIZING
        self.context = context
        self.socket = None
        self.inbound = None
        self.outbound = None
        self.pending = None

        self.coordinator = Coordinator(self.mode, self.debug, self.job_failure,
                                       self._job_completed)

        self._handler = None
        self._events = collections.deque()
        self._dispatching = False
        self._closed = loop.create_future()

        # Transition actions, run before the state changes. Entry and exit
        # actions are looked up by name, see _enter() and _exit().

        self._actions = {
            (State.INITIALIZING, Event.INITIALIZED): self.init_context,
            (State.READY, Event.RECEIVE_JOB): self._receive_job,
            (State.PAUSED, Event.RESUME): self._resume_socket,
        }

        loop.call_soon(self._dispatch, Event.INITIALIZED)


    def __repr__(self):
        return '<Endpoint %s %s %s>' % (self.archetype, self.queue, self.state.name)


    # Public operations.

    def pause(self):
        """ Stop receiving jobs. A job already in flight is allowed to finish
            before the socket is physically paused.
        """

        self._dispatch(Event.PAUSE)


    def resume(self):
        """ Resume receiving jobs after :func:`pause`. Resuming an endpoint
            that is not paused has no effect.
        """

        self._dispatch(Event.RESUME)


    def shutdown(self):
        """ Close the connection. A job already in flight is allowed to
            finish first; :func:`wait_closed` resolves once the connection
            is gone.
        """

        self._dispatch(Event.SHUTDOWN)


    def set_handler(self, handler):
        """ Register *handler* to process every job. It is invoked as
            ``handler(payload, callback)`` and finishes the job either by
            calling ``callback(error=None, response=None)``, or by returning
            an awaitable: its result is the response, and an exception
            raised from it fails the job. Registering a new handler replaces
            the previous one.
        """

        if self._handler is not None:
            self.job.disconnect(self._handler)

        def run(payload, callback):
            invoke(handler, payload, callback, self.loop)

        self._handler = run
        self.job.connect(run)


    def write(self, value):
        """ Send *value* downstream if this endpoint can write, otherwise
            acknowledge the current job if it can acknowledge.
        """

        self.coordinator.write(value)


    async def wait_closed(self):
        """ Wait until the endpoint has reached its terminal state.
        """

        await asyncio.shield(self._closed)


    @property
    def closed(self):
        return self.state in states.terminal


    # Connection management; these are the entry and exit actions.

    def init_context(self):

        if self.context is None:
            self.context = transport.context(self.uri, self.loop)


    def connect(self):

        options = self.options.model_dump()
        self.debug.emit('Socket options', options)

        self.socket = self.context.socket(self.archetype, options)
        self.socket.error.connect(self.transport_error.emit)
        self.socket.connect(self.queue, self._socket_connected)


    def setup_listeners(self):

        self.socket.data.connect(self.data.emit)

        if self.mode.can_read:
            self.inbound = Inbound(self.socket, self._inbound_value)

        if self.mode.can_write:
            self.outbound = Outbound(self.socket)

        self.coordinator.attach(self.socket, self.outbound)


    def cleanup_connection(self):

        self.debug.emit('Closing socket')

        if self.socket is None:
            self.loop.call_soon(self._dispatch, Event.SOCKET_CLOSE)
            return

        if self.inbound is not None:
            self.inbound.detach()

        self.socket.closed.connect(self._socket_closed)
        self.socket.close()


    def _enter_connecting(self):
        self.connect()

    def _exit_connecting(self):
        self.setup_listeners()

    def _exit_ready(self):
        if self.inbound is not None:
            self.inbound.withdraw()

    def _enter_paused(self):
        self.socket.pause()

    def _enter_shutdown(self):
        self.cleanup_connection()

    def _enter_final(self):
        if not self._closed.done():
            self._closed.set_result(None)


    # Transition actions.

    def _receive_job(self, job, error=None):

        self.pending = job

        # The hand-off happens on a later turn of the loop, never from within
        # the dispatch of the receiveJob event itself.

        self.loop.call_soon(self._start_job, job, error)


    def _resume_socket(self):
        self.socket.resume()


    def _start_job(self, job, error=None):

        if error is not None:
            # The chunk never decoded; the handler does not get to see it.
            job.settle(Failure(error))
            return

        self.debug.emit('Starting job', job)
        self.job.emit(job.payload, job.callback)


    def _job_completed(self, job):

        if self.pending is job:
            self.pending = None

        self._dispatch(Event.COMPLETE_JOB)


    # Callbacks from the transport.

    def _socket_connected(self):
        self._dispatch(Event.SOCKET_CONNECT)


    def _socket_closed(self):
        self._dispatch(Event.SOCKET_CLOSE)


    def _inbound_value(self, value):

        if isinstance(value, DecodeError):
            job = Job(value.chunk, self.coordinator.complete)
            self._dispatch(Event.RECEIVE_JOB, job, value)
        else:
            job = Job(value, self.coordinator.complete)
            self._dispatch(Event.RECEIVE_JOB, job)


    # The state machine proper.

    def _dispatch(self, event, *args):
        """ Deliver *event* to the state machine. Events raised while another
            event is being handled are queued, and handled in order once the
            current one is finished.
        """

        self._events.append((event, args))

        if self._dispatching:
            return

        self._dispatching = True

        try:
            while self._events:
                event, args = self._events.popleft()
                self._handle(event, args)

                if not self._events:
                    self._quiescent()
        finally:
            self._dispatching = False


    def _quiescent(self):
        """ Invoked whenever the event queue runs dry. A READY endpoint only
            asks for its next job once no other event is pending.
        """

        if self.state == State.READY and self.inbound is not None:
            self.inbound.demand()


    def _handle(self, event, args):

        current = self.state
        target = states.transition(current, event)

        if target is None:
            if event in states.strict:
                self._events.clear()
                raise ProtocolViolation('%s is not accepted while %s' % (event.value, current.value))

            self.debug.emit('Ignoring event', event.value, current.value)
            return

        try:
            action = self._actions[(current, event)]
        except KeyError:
            pass
        else:
            action(*args)

        self._transition_to(target)


    def _transition_to(self, target):

        current = self.state

        self._exit(current)
        self.state = target
        self.debug.emit('Transition', current.value, target.value)
        self.state_changed.emit(current, target)
        self._enter(target)


    def _enter(self, state):

        try:
            action = getattr(self, '_enter_' + state.name.lower())
        except AttributeError:
            return

        action()


    def _exit(self, state):

        try:
            action = getattr(self, '_exit_' + state.name.lower())
        except AttributeError:
            return

        action()


    def _log_debug(self, message, *details):

        if details:
            logger.debug('%r %s: %r', self, message, details)
        else:
            logger.debug('%r %s', self, message)


# end of class Endpoint


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
