""" A class representation of driverlink messages. Outbound requests are
    :class:`Message` instances; inbound frames are interpreted by
    :func:`classify` into one of the small frame classes defined here.
"""

import itertools
import threading
import time as timemodule

from .. import config
from ..errors import ProtocolError, RemoteError
from . import fields


class Message:
    """ The :class:`Message` is the envelope for a single request to the
        engine: the *guid* of the target object, the *method* to invoke,
        the *params* for that method, and free-form *metadata* describing
        the call. The identification number is generated automatically and
        is strictly increasing for the lifetime of the process; it is only
        used to tie the response back to this request.

        The *method* name and every key in *params* are normalized to the
        camelCase convention expected on the wire, and *params* always
        carries a timeout: the engine enforces its own timeout for the same
        request, and the local wait must never be shorter than the remote
        one.

        :ivar id: Locally unique, strictly increasing identification number.
        :ivar timestamp: A UNIX epoch timestamp for the message creation.
    """

    def __init__(self, guid, method, params=None, metadata=None, id=None):

        if guid is None:
            raise ValueError('a message requires a target guid')

        if method is None or method == '':
            raise ValueError('a message requires a method name')

        if id is None:
            id = _id_next()

        if params is None:
            params = dict()
        else:
            params = dict(params)

        if fields.TIMEOUT not in params:
            params[fields.TIMEOUT] = config.defaults.timeout

        if metadata is None:
            metadata = dict()

        self.id = id
        self.guid = guid
        self.method = camelize(method)
        self.params = camelize_keys(params)
        self.metadata = camelize_keys(metadata)
        self.timestamp = timemodule.time()


    def __repr__(self):
        return "Message(id=%d, guid=%s, method=%s, params=%s)" % (self.id, repr(self.guid), repr(self.method), repr(self.params))


    @property
    def timeout(self):
        """ The timeout, in milliseconds, carried by this message.
        """

        return self.params[fields.TIMEOUT]


    def to_dict(self):
        """ Return the outbound wire envelope for this message.
        """

        envelope = dict()
        envelope[fields.ID] = self.id
        envelope[fields.GUID] = self.guid
        envelope[fields.METHOD] = self.method
        envelope[fields.PARAMS] = self.params
        envelope[fields.METADATA] = self.metadata

        return envelope


# end of class Message



def build(guid, method, params=None, metadata=None):
    """ Return a new :class:`Message`. This is the only supported way to
        construct outbound requests.
    """

    if isinstance(params, dict) and fields.TIMEOUT in params and params[fields.TIMEOUT] is None:
        params = dict(params)
        del params[fields.TIMEOUT]

    return Message(guid, method, params, metadata)



def camelize(name):
    """ Convert a snake_case *name* to camelCase. Names that are already
        camelCase, or that begin with an underscore, are returned unchanged.
    """

    if '_' not in name or name.startswith('_'):
        return name

    head, *rest = name.split('_')
    tail = ''.join(part[:1].upper() + part[1:] for part in rest)

    return head + tail



def decamelize(name):
    """ The inverse of :func:`camelize`: convert a camelCase *name* to
        snake_case. Runs of capitals are treated as a single word.
    """

    converted = list()
    previous = ''

    for character in name:
        if character.isupper():
            if previous != '' and previous != '_' and not previous.isupper():
                converted.append('_')
            converted.append(character.lower())
        else:
            converted.append(character)
        previous = character

    return ''.join(converted)



def camelize_keys(value):
    """ Recursively camelize every dictionary key in *value*, descending
        through nested dictionaries and lists.
    """

    if isinstance(value, dict):
        converted = dict()
        for key, item in value.items():
            if isinstance(key, str):
                key = camelize(key)
            converted[key] = camelize_keys(item)
        return converted

    if isinstance(value, (list, tuple)):
        return [camelize_keys(item) for item in value]

    return value



class Response:
    """ The engine's answer to a request, correlated by *id*. Exactly one of
        *result* or *error* is meaningful.
    """

    def __init__(self, id, result=None, error=None):
        self.id = id
        self.result = result
        self.error = error


    def __repr__(self):
        return "Response(id=%s, error=%s)" % (repr(self.id), repr(self.error))


    def exception(self):
        """ Return a :class:`driverlink.errors.RemoteError` describing the
            error, or None if this is a successful response.
        """

        if self.error is None:
            return None

        return RemoteError.from_wire(self.error)


class Create:
    """ A new remote object was created under *parent_guid*. """

    def __init__(self, parent_guid, guid, type, initializer):
        self.parent_guid = parent_guid
        self.guid = guid
        self.type = type
        self.initializer = initializer


class Dispose:
    """ A remote object is gone. """

    def __init__(self, guid):
        self.guid = guid


class Adopt:
    """ An existing remote object moved under a new parent. """

    def __init__(self, parent_guid, guid):
        self.parent_guid = parent_guid
        self.guid = guid


class Patch:
    """ Remote-side property changes for an existing object. """

    def __init__(self, guid, properties):
        self.guid = guid
        self.properties = properties


class Notification:
    """ A named event emitted by the remote object *guid*. """

    def __init__(self, guid, method, params):
        self.guid = guid
        self.method = method
        self.params = params


    def __repr__(self):
        return "Notification(guid=%s, method=%s)" % (repr(self.guid), repr(self.method))



def classify(frame):
    """ Interpret a decoded inbound *frame* (a dictionary) as one of
        :class:`Response`, :class:`Create`, :class:`Dispose`,
        :class:`Adopt`, :class:`Patch`, or :class:`Notification`. The
        presence of an id is what distinguishes a response from everything
        else; all other frames are identified by their method name.
    """

    if not isinstance(frame, dict):
        raise ProtocolError('inbound frame is not an object: ' + repr(frame))

    if fields.ID in frame and fields.METHOD not in frame:
        return Response(frame[fields.ID], frame.get(fields.RESULT), frame.get(fields.ERROR))

    try:
        method = frame[fields.METHOD]
    except KeyError:
        raise ProtocolError('inbound frame has neither id nor method: ' + repr(frame)) from None

    params = frame.get(fields.PARAMS)
    if params is None:
        params = dict()

    guid = frame.get(fields.GUID, fields.ROOT_GUID)

    if method == fields.CREATE:
        try:
            child = params[fields.GUID]
            type = params['type']
        except KeyError:
            raise ProtocolError('malformed create frame: ' + repr(frame)) from None

        parent = params.get('parent', guid)
        if isinstance(parent, dict):
            parent = parent.get(fields.GUID, fields.ROOT_GUID)

        initializer = params.get('initializer')
        if initializer is None:
            initializer = dict()

        return Create(parent, child, type, initializer)

    if method == fields.DISPOSE:
        return Dispose(params.get(fields.GUID, guid))

    if method == fields.ADOPT:
        try:
            child = params[fields.GUID]
        except KeyError:
            raise ProtocolError('malformed adopt frame: ' + repr(frame)) from None
        return Adopt(guid, child)

    if method == fields.PATCH:
        properties = params.get('properties')
        if properties is None:
            properties = dict()
        return Patch(params.get(fields.GUID, guid), properties)

    return Notification(guid, method, params)



_id_lock = threading.Lock()
_id_ticker = itertools.count(1)


def _id_next():
    """ Return the next request identification number. Numbers are never
        reused within a process, regardless of how many sessions exist.
    """

    with _id_lock:
        id = next(_id_ticker)

    return id


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
