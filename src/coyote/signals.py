""" Typed notification channels. Each :class:`Signal` has a fixed name and
    a fixed argument shape, documented where the signal is declared; a
    listener is any callable accepting those arguments.
"""

import logging
import traceback
import weakref

logger = logging.getLogger(__name__)


def _reference(thing):
    """ Return a weak reference to the supplied callable, regardless of
        whether it is a simple function or a bound method. A plain
        :func:`weakref.ref` to a bound method dies immediately, since the
        bound method object itself is transient.
    """

    try:
        thing.__func__
        thing.__self__
    except AttributeError:
        return weakref.ref(thing)
    else:
        return weakref.WeakMethod(thing)


class Signal:
    """ A single named notification channel. Listeners are invoked in the
        order they were connected. An exception raised by one listener is
        logged and does not prevent delivery to the remaining listeners.

        :ivar name: The name of the channel, used in log messages.
        :ivar arguments: A tuple naming the positional arguments every
            emission carries.
    """

    def __init__(self, name, arguments=()):

        self.name = name
        self.arguments = tuple(arguments)
        self._listeners = list()


    def __len__(self):
        return len(self._live())


    def __repr__(self):
        return 'Signal(%r, %r)' % (self.name, self.arguments)


    def connect(self, listener, weak=False):
        """ Register *listener* to be invoked upon every :func:`emit`. If
            *weak* is True only a weak reference is retained, and the
            listener is dropped once the referenced object is gone.
        """

        if callable(listener):
            pass
        else:
            raise TypeError('the listener must be callable')

        if weak:
            reference = _reference(listener)
        else:
            reference = _Strong(listener)

        self._listeners.append(reference)
        return listener


    def disconnect(self, listener):
        """ Remove *listener*; removing a listener that is not connected
            is a no-op.
        """

        for reference in tuple(self._listeners):
            if reference() == listener:
                self._listeners.remove(reference)


    def emit(self, *args):
        """ Invoke every live listener with *args*.
        """

        self._check(args)

        for listener in self._live():
            try:
                listener(*args)
            except Exception:
                logger.error('%s listener %r failed:\n%s', self.name, listener,
                             traceback.format_exc())


    def _check(self, args):

        if len(args) != len(self.arguments):
            raise TypeError('%s emits %d arguments %r, got %d' % (self.name,
                            len(self.arguments), self.arguments, len(args)))


    def _live(self):
        """ Return the currently reachable listeners, pruning any weak
            references whose target has been collected.
        """

        live = list()
        dead = list()

        for reference in self._listeners:
            listener = reference()

            if listener is None:
                dead.append(reference)
            else:
                live.append(listener)

        for reference in dead:
            self._listeners.remove(reference)

        return live


# end of class Signal



class VariadicSignal(Signal):
    """ A :class:`Signal` whose emissions carry at least the named
        arguments, followed by any number of additional details. The
        ``debug`` channel is the principal example.
    """

    def _check(self, args):

        if len(args) < len(self.arguments):
            raise TypeError('%s emits at least %d arguments %r, got %d' % (
                            self.name, len(self.arguments), self.arguments,
                            len(args)))


# end of class VariadicSignal



class _Strong:
    """ Mimic the call interface of a weak reference while holding a
        regular one.
    """

    __slots__ = ('target',)

    def __init__(self, target):
        self.target = target

    def __call__(self):
        return self.target


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
