import inspect


def positional_count(callback):
    """ Return the number of positional arguments *callback* accepts, or
        None if it accepts any number of them.
    """

    if not callable(callback):
        raise TypeError('handler must be callable, not ' + repr(callback))

    try:
        signature = inspect.signature(callback)
    except (TypeError, ValueError):
        return None

    count = 0

    for parameter in signature.parameters.values():
        if parameter.kind == parameter.VAR_POSITIONAL:
            return None
        if parameter.kind in (parameter.POSITIONAL_ONLY, parameter.POSITIONAL_OR_KEYWORD):
            count += 1

    return count


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
