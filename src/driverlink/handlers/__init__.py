""" Client-side handler chains: route handlers that intercept network
    requests, and locator handlers that clear blocking overlays.
"""

from . import callback
from . import matcher
from . import route
from . import locator

from .matcher import URLMatcher, glob_to_regex
from .route import RouteChain, RouteHandler
from .locator import LocatorHandler, LocatorHandlerRegistry

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
