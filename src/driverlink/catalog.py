""" The catalog is the authoritative local registry of live remote objects
    for one session, keyed by guid. It is mutated only by the session's
    dispatch thread, in response to lifecycle frames from the engine, but
    may be read from any thread: lookups are protected by a condition
    variable so that a caller can wait for an object the engine has not
    announced yet.
"""

import threading

from loguru import logger

from . import owner
from . import registry
from . import timeouts
from .errors import NotFound, ProtocolError
from .protocol import fields


class Catalog:
    """ Registry of proxies for a single :class:`driverlink.session.Session`.

        :ivar session: The owning session.
        :ivar types: The :class:`driverlink.registry.TypeRegistry` used to
            construct proxies for newly announced objects.
    """

    def __init__(self, session, types=None):

        if types is None:
            types = registry.default

        self.session = session
        self.types = types

        self._objects = dict()
        self._disposed = set()
        self._condition = threading.Condition()

        if 'Root' in types:
            root_class = types.lookup('Root')
        else:
            root_class = owner.Root

        self.root = root_class(session, fields.ROOT_GUID, 'Root', None, dict())
        self.root.catalog = self
        self._objects[fields.ROOT_GUID] = self.root


    def __contains__(self, guid):
        with self._condition:
            return guid in self._objects


    def __len__(self):
        with self._condition:
            return len(self._objects)


    def create(self, guid, type, parent_guid, initializer=None):
        """ Construct, initialize, and register the proxy for a newly
            announced remote object. Raises
            :class:`driverlink.errors.UnknownType` if no proxy class is
            registered for *type*; the catalog is left unchanged in that case.
        """

        if initializer is None:
            initializer = dict()

        with self._condition:
            if guid in self._objects or guid in self._disposed:
                raise ProtocolError('guid reused by create: ' + repr(guid))

            if parent_guid not in self._objects:
                logger.warning("{} {} announced under unknown parent {}", type, guid, parent_guid)

        cls = self.types.lookup(type, guid)
        initializer = self.resolve(initializer)

        proxy = cls(self.session, guid, type, parent_guid, initializer)
        proxy.catalog = self

        try:
            proxy.init()
        except Exception:
            logger.opt(exception=True).error("init hook for {} {} failed", type, guid)

        with self._condition:
            self._objects[guid] = proxy
            self._condition.notify_all()

        logger.trace("created {} {}", type, guid)
        return proxy


    def get(self, guid):
        """ Return the live proxy for *guid* without waiting.
        """

        with self._condition:
            return self._lookup(guid)


    def find(self, guid, timeout=None):
        """ Return the live proxy for *guid*. If *timeout* (milliseconds) is
            given, wait up to that long for the object to be created; a
            *timeout* of None does not wait at all. Raises
            :class:`driverlink.errors.NotFound` if the object is not live
            when the wait ends, or has already been disposed.
        """

        if timeout is None:
            return self.get(guid)

        deadline = timeouts.Deadline(timeouts.normalize(timeout) / 1000.0)

        with self._condition:
            while True:
                try:
                    return self._lookup(guid)
                except NotFound as missing:
                    if missing.disposed:
                        raise

                try:
                    remaining = deadline.remaining()
                except timeouts.Expired:
                    raise NotFound(guid) from None

                self._condition.wait(remaining)


    def _lookup(self, guid):

        try:
            return self._objects[guid]
        except KeyError:
            pass

        raise NotFound(guid, guid in self._disposed)


    def list(self, parent_guid, type=None):
        """ Return the live children of *parent_guid*, optionally filtered to
            a wire *type*, in creation order.
        """

        with self._condition:
            proxies = list(self._objects.values())

        children = list()

        for proxy in proxies:
            if proxy.parent_guid != parent_guid:
                continue
            if type is not None and proxy.type != type:
                continue
            children.append(proxy)

        return children


    def dispose(self, guid):
        """ Remove *guid* from the catalog and return its proxy, or None if
            *guid* is not live. Children are left alone: the engine sends a
            separate dispose for every object it retires.
        """

        with self._condition:
            try:
                proxy = self._objects.pop(guid)
            except KeyError:
                return None

            proxy._disposed = True
            self._disposed.add(guid)
            self._condition.notify_all()

        logger.trace("disposed {}", guid)
        return proxy


    def adopt(self, guid, parent_guid):
        """ Move the live object *guid* under a new parent.
        """

        with self._condition:
            proxy = self._lookup(guid)

            if parent_guid not in self._objects:
                raise NotFound(parent_guid, parent_guid in self._disposed)

            proxy.parent_guid = parent_guid

        return proxy


    def patch(self, guid, properties):
        """ Merge *properties* into the local state of the object *guid*, and
            return its proxy.
        """

        proxy = self.get(guid)
        proxy._apply_patch(properties)
        return proxy


    def resolve(self, value):
        """ Replace every object reference (a dictionary whose only member is
            ``guid``) in *value* with the corresponding live proxy. Unknown
            references are left as they are.
        """

        if isinstance(value, dict):
            if len(value) == 1 and fields.GUID in value and isinstance(value[fields.GUID], str):
                guid = value[fields.GUID]
                with self._condition:
                    try:
                        return self._objects[guid]
                    except KeyError:
                        logger.debug("unresolved reference to {}", guid)
                        return value

            resolved = dict()
            for key, item in value.items():
                resolved[key] = self.resolve(item)
            return resolved

        if isinstance(value, list):
            return [self.resolve(item) for item in value]

        return value


# end of class Catalog


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
