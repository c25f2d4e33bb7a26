""" Mapping from wire type names (``Page``, ``BrowserContext``, ...) to the
    proxy classes that represent them locally. Proxy classes declare their
    wire type with the :func:`register` decorator; a catalog consults a
    :class:`TypeRegistry` whenever the engine announces a new object.
"""

from .errors import UnknownType


class TypeRegistry:

    def __init__(self):
        self._classes = dict()


    def register(self, name, cls=None):
        """ Associate the wire type *name* with *cls*. If *cls* is omitted
            the method returns a decorator, so that proxy classes can be
            registered where they are defined.
        """

        if cls is None:
            def decorator(cls):
                self.register(name, cls)
                return cls
            return decorator

        self._classes[name] = cls
        return cls


    def lookup(self, name, guid=None):
        """ Return the class registered for *name*; raise
            :class:`driverlink.errors.UnknownType` if there is none.
        """

        try:
            return self._classes[name]
        except KeyError:
            raise UnknownType(name, guid) from None


    def copy(self):
        duplicate = TypeRegistry()
        duplicate._classes.update(self._classes)
        return duplicate


    def __contains__(self, name):
        return name in self._classes


    def names(self):
        return sorted(self._classes.keys())


# end of class TypeRegistry


default = TypeRegistry()


def register(name):
    """ Decorator registering a proxy class in the :data:`default` registry.
    """

    return default.register(name)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
