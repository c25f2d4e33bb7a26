""" The driverlink protocol layer: the message envelope, the classification
    of inbound frames, and the vocabulary of lifecycle methods and event
    names. Nothing in this package depends on a transport implementation.
"""

from . import fields
from . import message
from . import events
from . import values

from .message import Message, build, classify

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
