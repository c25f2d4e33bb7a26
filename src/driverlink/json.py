''' Wrapper module providing the equivalent of :func:`json.loads` and
    :func:`json.dumps` for frames on the wire. Both directions operate on
    bytes; :func:`dumps` always returns bytes, and :func:`loads` accepts
    either bytes or str.
'''

import orjson


def dumps(value):
    return orjson.dumps(value, option=orjson.OPT_NON_STR_KEYS)


def loads(encoded):
    return orjson.loads(encoded)


JSONDecodeError = orjson.JSONDecodeError

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
