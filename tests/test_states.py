import itertools

from coyote import states
from coyote.states import Event, State


# Written out in full, independently of the table in coyote.states, so that
# every (state, event) pair is checked against what it should be.

expected = {
    State.INITIALIZING: {Event.INITIALIZED: State.CONNECTING},
    State.CONNECTING: {Event.SOCKET_CONNECT: State.READY},
    State.READY: {
        Event.PAUSE: State.PAUSED,
        Event.RECEIVE_JOB: State.WORKING,
        Event.SHUTDOWN: State.SHUTDOWN,
    },
    State.WORKING: {
        Event.PAUSE: State.PAUSING,
        Event.SHUTDOWN: State.STOPPING,
        Event.COMPLETE_JOB: State.READY,
    },
    State.PAUSING: {
        Event.RESUME: State.WORKING,
        Event.SHUTDOWN: State.STOPPING,
        Event.COMPLETE_JOB: State.PAUSED,
    },
    State.PAUSED: {
        Event.RESUME: State.READY,
        Event.SHUTDOWN: State.SHUTDOWN,
    },
    State.STOPPING: {Event.COMPLETE_JOB: State.SHUTDOWN},
    State.SHUTDOWN: {Event.SOCKET_CLOSE: State.FINAL},
    State.FINAL: {},
}


def test_every_pair():

    for state, event in itertools.product(State, Event):
        assert states.transition(state, event) == expected[state].get(event), (state, event)


def test_nine_states():
    assert len(State) == 9
    assert set(expected) == set(State)


def test_final_is_terminal():
    assert states.accepted(State.FINAL) == frozenset()
    assert State.FINAL in states.terminal


def test_in_flight_states():
    """ A job is in flight exactly in the states reachable by receiving a
        job and not yet left by completing one.
    """

    assert states.in_flight == {State.WORKING, State.PAUSING, State.STOPPING}

    for state in states.in_flight:
        assert Event.RECEIVE_JOB not in states.accepted(state)
        assert Event.COMPLETE_JOB in states.accepted(state)

    for state in set(State) - states.in_flight:
        assert Event.COMPLETE_JOB not in states.accepted(state)


def test_receive_only_when_ready():

    for state in State:
        if state == State.READY:
            assert Event.RECEIVE_JOB in states.accepted(state)
        else:
            assert Event.RECEIVE_JOB not in states.accepted(state)


def test_every_state_reachable():

    reachable = set((State.INITIALIZING,))
    frontier = [State.INITIALIZING]

    while frontier:
        state = frontier.pop()
        for event in states.accepted(state):
            target = states.transition(state, event)
            if target not in reachable:
                reachable.add(target)
                frontier.append(target)

    assert reachable == set(State)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
