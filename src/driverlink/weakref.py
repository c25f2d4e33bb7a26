
import weakref


def ref(thing):
    """ Return a weak reference to the supplied argument, regardless of
        whether it is a simple object or a bound method.
    """

    try:
        thing.__func__
        thing.__self__
    except AttributeError:
        return weakref.ref(thing)
    else:
        return weakref.WeakMethod(thing)


def deref(reference):
    """ Return the referenced object, or None if either the *reference* is
        None or the referenced object no longer exists.
    """

    if reference is None:
        return None

    return reference()


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
