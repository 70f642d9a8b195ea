""" Resolve an endpoint archetype into the set of things an endpoint of
    that archetype is able to do. The resolution happens once, when the
    :class:`coyote.Endpoint` is constructed; nothing downstream compares
    archetype strings.
"""

import enum
import logging

logger = logging.getLogger(__name__)


class Mode(enum.Flag):
    """ Capability flags for an endpoint. An empty Mode is legal, it can
        neither read, write, nor acknowledge anything.
    """

    NONE = 0
    READ = enum.auto()
    WRITE = enum.auto()
    ACK = enum.auto()

    @property
    def can_read(self):
        return bool(self & Mode.READ)

    @property
    def can_write(self):
        return bool(self & Mode.WRITE)

    @property
    def can_ack(self):
        return bool(self & Mode.ACK)


archetypes = {
    'PUBLISH': Mode.WRITE,
    'PUSH': Mode.WRITE,
    'SUBSCRIBE': Mode.READ,
    'PULL': Mode.READ,
    'WORKER': Mode.READ | Mode.ACK,
    'REQUEST': Mode.READ | Mode.WRITE,
    'REPLY': Mode.READ | Mode.WRITE,
}


def normalize(archetype):
    """ Return the canonical, upper case spelling of *archetype*.
    """

    return archetype.upper()


def resolve(archetype):
    """ Return the :class:`Mode` for the supplied *archetype* string. The
        comparison is case-insensitive. Unknown archetypes resolve to
        :attr:`Mode.NONE` rather than raising.
    """

    archetype = normalize(archetype)

    try:
        mode = archetypes[archetype]
    except KeyError:
        logger.warning('unknown archetype %r, endpoint will have no capabilities', archetype)
        mode = Mode.NONE

    return mode


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
