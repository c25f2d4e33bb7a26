""" Conversion between Python values and the engine's tagged representation
    of JavaScript values, as used for the arguments and results of exposed
    bindings. Each value is a single-member dictionary whose key names its
    kind: ``n`` number, ``b`` boolean, ``s`` string, ``v`` special value,
    ``d`` date, ``a`` array, ``o`` object.
"""

import datetime
import math

from ..errors import ProtocolError


_specials = {
    'null': None,
    'undefined': None,
    'NaN': math.nan,
    'Infinity': math.inf,
    '-Infinity': -math.inf,
    '-0': -0.0,
}


def serialize(value):
    """ Return the tagged representation of the Python *value*.
    """

    if value is None:
        return {'v': 'null'}

    if isinstance(value, bool):
        return {'b': value}

    if isinstance(value, float):
        if math.isnan(value):
            return {'v': 'NaN'}
        if value == math.inf:
            return {'v': 'Infinity'}
        if value == -math.inf:
            return {'v': '-Infinity'}
        if value == 0 and math.copysign(1, value) < 0:
            return {'v': '-0'}
        return {'n': value}

    if isinstance(value, int):
        return {'n': value}

    if isinstance(value, str):
        return {'s': value}

    if isinstance(value, datetime.datetime):
        return {'d': value.isoformat()}

    if isinstance(value, (list, tuple)):
        return {'a': [serialize(item) for item in value]}

    if isinstance(value, dict):
        members = list()
        for key, item in value.items():
            members.append({'k': str(key), 'v': serialize(item)})
        return {'o': members}

    raise TypeError('cannot serialize value of type ' + type(value).__name__)


def parse(value):
    """ Return the Python equivalent of the tagged *value*.
    """

    if not isinstance(value, dict):
        raise ProtocolError('malformed serialized value: ' + repr(value))

    if 'v' in value:
        try:
            return _specials[value['v']]
        except KeyError:
            raise ProtocolError('unknown special value: ' + repr(value['v'])) from None

    if 'n' in value:
        return value['n']

    if 'b' in value:
        return value['b']

    if 's' in value:
        return value['s']

    if 'd' in value:
        return datetime.datetime.fromisoformat(value['d'].replace('Z', '+00:00'))

    if 'a' in value:
        return [parse(item) for item in value['a']]

    if 'o' in value:
        parsed = dict()
        for member in value['o']:
            parsed[member['k']] = parse(member['v'])
        return parsed

    raise ProtocolError('malformed serialized value: ' + repr(value))


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
