""" Python client for a browser automation engine. The engine owns a graph
    of remote objects (browsers, contexts, pages, frames, requests); this
    package keeps a local proxy for each of them, relays method calls, and
    delivers the events those objects emit.
"""

from loguru import logger

# Library logging stays silent unless the application opts in with
# logger.enable('driverlink').

logger.disable('driverlink')

# Utility components.

from . import json
from . import weakref

# Submodules used by multiple other components.

from . import config
from . import errors
from . import protocol
from . import registry
from . import timeouts
from . import transport

from .errors import ChannelError, NotFound, RemoteError, SessionClosed, Timeout, TransportError, UnknownEvent, UnknownType

# Primary public-facing interfaces.

from . import objects
from .session import Session
from .owner import ChannelOwner
from .registry import register

from . import begin
connect = begin.connect
launch = begin.launch

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
