""" Every blocking operation in driverlink funnels through :func:`with_timeout`.
    The engine enforces the same timeout remotely, and a remote timeout
    carries far better diagnostics than a local one; the local wait is
    therefore extended by a small grace period so the remote side has a
    chance to answer first.
"""

import concurrent.futures
import queue
import time

from . import config
from .errors import Timeout


class Expired(Exception):
    """ Raised by actions handed to :func:`with_timeout` when their wait
        runs out. It never escapes :func:`with_timeout`.
    """


def normalize(timeout, settings=None):
    """ Return the effective timeout in integer milliseconds. None selects
        the configured default; floats are truncated.
    """

    if timeout is None:
        if settings is None:
            settings = config.defaults
        return settings.timeout

    timeout = int(timeout)

    if timeout < 0:
        raise ValueError('timeout cannot be negative: %d' % (timeout))

    return timeout


def with_timeout(timeout, action, settings=None):
    """ Invoke *action* with a single argument, the number of seconds it is
        allowed to block for; that number is the requested *timeout* (in
        milliseconds) plus the configured grace period. A *timeout* of zero
        disables the limit, and *action* receives None.

        If the action signals that its wait expired, by raising
        :class:`Expired`, :class:`queue.Empty`, or
        :class:`concurrent.futures.TimeoutError`, a
        :class:`driverlink.errors.Timeout` is raised instead, carrying the
        originally requested duration.
    """

    if settings is None:
        settings = config.defaults

    timeout = normalize(timeout, settings)

    if timeout == 0:
        seconds = None
    else:
        seconds = (timeout + settings.grace) / 1000.0

    try:
        return action(seconds)
    except Timeout:
        raise
    except (Expired, queue.Empty, concurrent.futures.TimeoutError):
        raise Timeout("Timeout %dms exceeded." % (timeout), timeout) from None


class Deadline:
    """ Track the time remaining for a wait that may block more than once,
        such as a predicate wait that sees several non-matching events.
        A *seconds* value of None never expires.
    """

    def __init__(self, seconds):

        self.seconds = seconds

        if seconds is None:
            self.expires = None
        else:
            self.expires = time.monotonic() + seconds


    def remaining(self):
        """ Return the number of seconds left, or None for an unbounded wait.
            Raises :class:`Expired` once the deadline has passed.
        """

        if self.expires is None:
            return None

        left = self.expires - time.monotonic()

        if left <= 0:
            raise Expired()

        return left


# end of class Deadline


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
