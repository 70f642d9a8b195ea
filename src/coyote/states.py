""" The lifecycle states of an endpoint, the events that move it between
    them, and the transition table itself. The table is pure data: the
    actions that accompany a transition live with the
    :class:`coyote.Endpoint` that owns the connection.
"""

import enum


class State(enum.Enum):
    INITIALIZING = 'Initializing'
    CONNECTING = 'Connecting'
    READY = 'Ready'
    WORKING = 'Working'
    PAUSING = 'Pausing'
    PAUSED = 'Paused'
    STOPPING = 'Stopping'
    SHUTDOWN = 'Shutdown'
    FINAL = 'Final'


class Event(enum.Enum):
    INITIALIZED = 'initialized'
    SOCKET_CONNECT = 'socketConnect'
    PAUSE = 'pause'
    RESUME = 'resume'
    RECEIVE_JOB = 'receiveJob'
    COMPLETE_JOB = 'completeJob'
    SHUTDOWN = 'shutdown'
    SOCKET_CLOSE = 'socketClose'


transitions = {
    (State.INITIALIZING, Event.INITIALIZED): State.CONNECTING,

    (State.CONNECTING, Event.SOCKET_CONNECT): State.READY,

    (State.READY, Event.PAUSE): State.PAUSED,
    (State.READY, Event.RECEIVE_JOB): State.WORKING,
    (State.READY, Event.SHUTDOWN): State.SHUTDOWN,

    (State.WORKING, Event.PAUSE): State.PAUSING,
    (State.WORKING, Event.SHUTDOWN): State.STOPPING,
    (State.WORKING, Event.COMPLETE_JOB): State.READY,

    (State.PAUSING, Event.RESUME): State.WORKING,
    (State.PAUSING, Event.SHUTDOWN): State.STOPPING,
    (State.PAUSING, Event.COMPLETE_JOB): State.PAUSED,

    (State.PAUSED, Event.RESUME): State.READY,
    (State.PAUSED, Event.SHUTDOWN): State.SHUTDOWN,

    (State.STOPPING, Event.COMPLETE_JOB): State.SHUTDOWN,

    (State.SHUTDOWN, Event.SOCKET_CLOSE): State.FINAL,
}


# A job is in flight in exactly these states.

in_flight = frozenset((State.WORKING, State.PAUSING, State.STOPPING))

terminal = frozenset((State.FINAL,))

# Receiving these events in a state that does not accept them means the
# exactly-one-job-in-flight bookkeeping is broken; they are never ignored.

strict = frozenset((Event.RECEIVE_JOB, Event.COMPLETE_JOB))


def transition(state, event):
    """ Return the state that *event* moves *state* into, or None if the
        event is not accepted in that state.
    """

    return transitions.get((state, event))


def accepted(state):
    """ Return the set of events accepted in *state*.
    """

    return frozenset(event for (source, event) in transitions if source == state)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
