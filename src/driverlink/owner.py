""" :class:`ChannelOwner` is the common base for every local proxy of a
    remote object. A proxy is a thin handle: it knows its guid, its type,
    its parent, and a small amount of locally cached state, and it forwards
    everything else to the session that owns it.
"""

from . import weakref
from .errors import NotFound
from .protocol import message


class _Weak:
    """ Wrapper marking a cached property that refers to another proxy.
        Proxies that refer to each other, such as a page and the context
        created solely to hold it, must not keep each other alive.
    """

    __slots__ = ('reference',)

    def __init__(self, thing):
        self.reference = weakref.ref(thing)


class ChannelOwner:
    """ Local proxy for the remote object *guid*. Subclasses declare the
        wire type they represent with :func:`driverlink.registry.register`,
        and list in :attr:`properties` the initializer members they cache,
        using snake_case names; cached values are available as attributes.
        The :func:`init` hook runs once, on the session's dispatch thread,
        before the new proxy becomes visible to anyone else.

        :ivar session: The owning :class:`driverlink.session.Session`.
        :ivar catalog: The :class:`driverlink.catalog.Catalog` holding this
            proxy, attached when the catalog constructs it.
        :ivar guid: The identifier assigned by the engine.
        :ivar type: The wire type name.
        :ivar parent_guid: The guid of the parent object, or None for the
            root object.
        :ivar initializer: The initializer received with the create frame,
            with object references resolved.
    """

    properties = tuple()

    def __init__(self, session, guid, type, parent_guid, initializer):

        self.session = session
        self.catalog = None
        self.guid = guid
        self.type = type
        self.parent_guid = parent_guid
        self.initializer = initializer
        self._disposed = False
        self._state = dict()

        for name in self.properties:
            self._state[name] = initializer.get(message.camelize(name))


    def __repr__(self):
        return "<%s guid=%s>" % (self.__class__.__name__, repr(self.guid))


    def __getattr__(self, name):

        if name.startswith('_'):
            raise AttributeError(name)

        # Reaching here for a name the class defines means its property
        # raised AttributeError; run it again so that error surfaces.

        for klass in type(self).__mro__:
            if name in klass.__dict__:
                return klass.__dict__[name].__get__(self, type(self))

        try:
            state = self.__dict__['_state']
        except KeyError:
            raise AttributeError(name) from None

        try:
            value = state[name]
        except KeyError:
            raise AttributeError("%s has no attribute %s" % (repr(self), repr(name))) from None

        if isinstance(value, _Weak):
            value = weakref.deref(value.reference)

        return value


    def init(self):
        """ Hook invoked once after construction; the base implementation
            does nothing. Subclasses use it to bind the events that keep
            their cached state current.
        """

        pass


    def get(self, name, default=None):
        """ Return the cached property *name*, or *default* if it is not set.
        """

        try:
            return getattr(self, name)
        except AttributeError:
            return default


    def _apply_patch(self, properties):
        """ Merge *properties* into the cached state. Keys may be given in
            either camelCase or snake_case. Only the dispatch thread calls
            this method.
        """

        for key, value in properties.items():
            key = message.decamelize(key)

            if isinstance(value, ChannelOwner):
                value = _Weak(value)

            self._state[key] = value


    @property
    def parent(self):
        if self.parent_guid is None or self.catalog is None:
            return None

        try:
            return self.catalog.get(self.parent_guid)
        except NotFound:
            return None


    @property
    def is_disposed(self):
        return self._disposed


    def post(self, method, params=None, timeout=None):
        return self.session.post(self, method, params, timeout=timeout)


    def post_no_reply(self, method, params=None):
        self.session.post_no_reply(self, method, params)


    def patch(self, **properties):
        return self.session.patch(self, properties)


    def on(self, event, callback):
        """ Invoke *callback* with a :class:`driverlink.events.Event` every
            time this object emits *event*.
        """

        self.session.bind(self, event, callback)


    def off(self, event, callback=None):
        return self.session.unbind(self, event, callback)


    def wait_for_event(self, event, timeout=None, predicate=None, trigger=None):
        return self.session.wait(self, event, timeout=timeout, predicate=predicate, trigger=trigger)


    def refresh(self, timeout=None):
        """ Return the current proxy for this object from the catalog;
            raises :class:`driverlink.errors.NotFound` if it is gone.
        """

        return self.session.find(self.guid, timeout)


    def children(self, type=None):
        return self.session.list(self, type)


# end of class ChannelOwner



class Root(ChannelOwner):
    """ The root object of every session, with the empty guid. It exists
        locally before the engine says anything, and is never disposed.
    """

    def initialize(self, sdk_language='python', timeout=None):
        params = dict()
        params['sdk_language'] = sdk_language
        return self.post('initialize', params, timeout=timeout)


# end of class Root


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
