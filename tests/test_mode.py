import pytest

from coyote.mode import Mode, resolve


@pytest.mark.parametrize('archetype,expected', [
    ('PUBLISH', Mode.WRITE),
    ('PUSH', Mode.WRITE),
    ('SUBSCRIBE', Mode.READ),
    ('PULL', Mode.READ),
    ('WORKER', Mode.READ | Mode.ACK),
    ('REQUEST', Mode.READ | Mode.WRITE),
    ('REPLY', Mode.READ | Mode.WRITE),
])
def test_archetypes(archetype, expected):
    assert resolve(archetype) == expected


def test_case_insensitive():
    assert resolve('worker') == resolve('WORKER')
    assert resolve('Reply') == Mode.READ | Mode.WRITE


def test_unknown_archetype_has_no_capabilities():
    mode = resolve('DEALER')

    assert mode == Mode.NONE
    assert mode.can_read == False
    assert mode.can_write == False
    assert mode.can_ack == False


def test_capability_properties():
    worker = resolve('WORKER')
    assert worker.can_read
    assert worker.can_ack
    assert not worker.can_write

    reply = resolve('REPLY')
    assert reply.can_read
    assert reply.can_write
    assert not reply.can_ack


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
