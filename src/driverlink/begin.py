""" Implementation of the top-level :func:`connect` and :func:`launch`
    methods. These are intended to be the principal entry points for users:
    each returns a started :class:`driverlink.session.Session` that has
    already completed its opening handshake with the engine.
"""

import shlex

from loguru import logger

from . import config
from . import transport
from .session import Session


def start(link, settings=None, sdk_language='python'):
    """ Start a :class:`driverlink.session.Session` over the unopened
        transport *link*, and perform the opening handshake. If the
        handshake fails the session is closed before the error propagates.
    """

    if settings is None:
        settings = config.defaults

    session = Session(link, settings)
    session.start()

    try:
        session.initialize(sdk_language)
    except BaseException:
        session.close()
        raise

    logger.info("connected to engine via {}", link)
    return session



def connect(endpoint=None, settings=None):
    """ Connect to an already-running engine listening on the ZeroMQ
        *endpoint*. If no endpoint is specified, the configured default
        (``DRIVERLINK_ENDPOINT``) is used.
    """

    if settings is None:
        settings = config.defaults

    if endpoint is None:
        endpoint = settings.endpoint

    settings = settings.copy(transport='zmq', endpoint=endpoint)
    link = transport.create(settings)

    return start(link, settings)



def launch(command, settings=None):
    """ Spawn the engine with *command*, which may be a list of arguments or
        a single shell-style string, and talk to it over its standard input
        and output.
    """

    if settings is None:
        settings = config.defaults

    if isinstance(command, str):
        command = shlex.split(command)

    settings = settings.copy(transport='pipe')
    link = transport.create(settings, command)

    return start(link, settings)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
