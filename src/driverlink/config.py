""" Runtime configuration for driverlink sessions. Defaults are established
    from environment variables when this module is first imported; any
    :class:`Settings` instance can override them on a per-session basis.

    Recognized environment variables:

    ``DRIVERLINK_TIMEOUT``
        Default timeout, in milliseconds, injected into every request that
        does not specify one. The engine enforces the same value remotely.

    ``DRIVERLINK_GRACE``
        Extra time, in milliseconds, added to every local wait so that the
        engine's own timeout can fire first and report a richer error.

    ``DRIVERLINK_TRANSPORT``
        Either ``pipe`` (spawn the engine and talk over its stdio) or
        ``zmq`` (connect to an already-running engine).

    ``DRIVERLINK_ENDPOINT``
        The ZeroMQ endpoint used by the ``zmq`` transport.
"""

import os


DEFAULT_TIMEOUT = 30000
DEFAULT_GRACE = 100
DEFAULT_ENDPOINT = 'tcp://127.0.0.1:13779'

transports = set(('pipe', 'zmq'))


def _milliseconds(name, default):

    raw = os.environ.get(name)

    if raw is None or raw.strip() == '':
        return default

    try:
        value = int(raw)
    except ValueError:
        raise ValueError("%s must be an integer number of milliseconds, not %s" % (name, repr(raw)))

    if value < 0:
        raise ValueError("%s cannot be negative: %d" % (name, value))

    return value


class Settings:
    """ A small container for the tunable parameters of a
        :class:`driverlink.session.Session`. All times are in milliseconds.

        :ivar timeout: Default request timeout.
        :ivar grace: Grace period added to every local wait.
        :ivar transport: Name of the transport backend.
        :ivar endpoint: ZeroMQ endpoint, if the ``zmq`` transport is used.
        :ivar handler_workers: Thread count for route/locator handlers.
    """

    def __init__(self, timeout=None, grace=None, transport=None, endpoint=None, handler_workers=4):

        if timeout is None:
            timeout = _milliseconds('DRIVERLINK_TIMEOUT', DEFAULT_TIMEOUT)

        if grace is None:
            grace = _milliseconds('DRIVERLINK_GRACE', DEFAULT_GRACE)

        if transport is None:
            transport = os.environ.get('DRIVERLINK_TRANSPORT', 'pipe')

        transport = transport.lower()
        if transport not in transports:
            raise ValueError('unknown transport backend: ' + repr(transport))

        if endpoint is None:
            endpoint = os.environ.get('DRIVERLINK_ENDPOINT', DEFAULT_ENDPOINT)

        self.timeout = int(timeout)
        self.grace = int(grace)
        self.transport = transport
        self.endpoint = endpoint
        self.handler_workers = int(handler_workers)


    def __repr__(self):
        return "Settings(timeout=%d, grace=%d, transport=%s, endpoint=%s)" % (self.timeout, self.grace, repr(self.transport), repr(self.endpoint))


    def copy(self, **overrides):
        """ Return a new :class:`Settings` with the same values as this one,
            except where explicitly overridden by keyword arguments.
        """

        values = dict(vars(self))
        values.update(overrides)
        return Settings(**values)


# end of class Settings


defaults = Settings()


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
