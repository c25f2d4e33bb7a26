""" The fixed set of event names the engine may emit. Event names arrive on
    the wire as strings; rather than trusting arbitrary names, every name
    supplied by a caller is validated against this enumeration and
    normalized to its wire spelling.
"""

from ..errors import UnknownEvent
from . import message


names = frozenset((
    'backgroundPage',
    'bindingCall',
    'close',
    'console',
    'context',
    'crash',
    'dialog',
    'disconnected',
    'domcontentloaded',
    'download',
    'fileChooser',
    'frameAttached',
    'frameDetached',
    'frameReceived',
    'frameSent',
    'load',
    'loadstate',
    'locatorHandlerTriggered',
    'navigated',
    'page',
    'pageError',
    'popup',
    'request',
    'requestFailed',
    'requestFinished',
    'response',
    'route',
    'serviceWorker',
    'socketError',
    'video',
    'viewportSizeChanged',
    'webSocket',
    'webSocketRoute',
    'worker',
))

_by_folded = dict()

for _name in names:
    _by_folded[_name.lower()] = _name

del _name


def normalize(name):
    """ Return the wire spelling of the event *name*. The name may be given
        in snake_case (``file_chooser``), camelCase (``fileChooser``), or
        folded to lowercase (``filechooser``). Unknown names raise
        :class:`driverlink.errors.UnknownEvent`.
    """

    if not isinstance(name, str):
        raise UnknownEvent(repr(name))

    folded = message.camelize(name.strip()).lower()

    try:
        return _by_folded[folded]
    except KeyError:
        raise UnknownEvent(name) from None


def is_known(name):
    """ Return True if *name* is already in its wire spelling and belongs to
        the enumeration.
    """

    return name in names


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
