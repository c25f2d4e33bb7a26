""" URL matching for route handlers. A pattern may be a glob string, a
    compiled regular expression, or a callable predicate; all three are
    evaluated locally, and the first two are also serialized so that the
    engine only intercepts requests a handler could possibly want.
"""

import re
import urllib.parse


_escaped = frozenset('$^+.*()|\\?{}[]')

_flag_letters = (
    (re.IGNORECASE, 'i'),
    (re.MULTILINE, 'm'),
    (re.DOTALL, 's'),
)


def glob_to_regex(glob):
    """ Translate a URL glob into a regular expression source string. The
        supported syntax is:

            ``*``       any run of characters other than ``/``
            ``**``      any run of characters, including ``/``, when it
                        forms a whole path segment
            ``{a,b}``   either ``a`` or ``b``
            ``\\c``     the literal character ``c``

        Every other character, ``?`` included, matches itself.
    """

    tokens = ['^']
    in_group = False
    index = 0
    length = len(glob)

    while index < length:
        character = glob[index]

        if character == '\\' and index + 1 < length:
            escaped = glob[index + 1]
            if escaped in _escaped:
                tokens.append('\\' + escaped)
            else:
                tokens.append(escaped)
            index += 2
            continue

        if character == '*':
            before = glob[index - 1] if index > 0 else None
            stars = 1

            while index + 1 < length and glob[index + 1] == '*':
                stars += 1
                index += 1

            after = glob[index + 1] if index + 1 < length else None
            deep = stars > 1 and before in (None, '/') and after in (None, '/')

            if deep:
                tokens.append('((?:[^/]*(?:/|$))*)')
                index += 1
            else:
                tokens.append('([^/]*)')

            index += 1
            continue

        if character == '{':
            in_group = True
            tokens.append('(')
        elif character == '}':
            in_group = False
            tokens.append(')')
        elif character == ',' and in_group:
            tokens.append('|')
        elif character in _escaped:
            tokens.append('\\' + character)
        else:
            tokens.append(character)

        index += 1

    tokens.append('$')
    return ''.join(tokens)


def regex_flags(pattern):
    """ Return the wire spelling of the flags of a compiled *pattern*.
    """

    letters = ''

    for flag, letter in _flag_letters:
        if pattern.flags & flag:
            letters += letter

    return letters


class URLMatcher:
    """ Decide whether a URL is selected by *match*, which may be a glob
        string, a compiled regular expression, or a callable taking the URL
        and returning a truth value. Relative globs are resolved against
        *base_url* when one is given.
    """

    def __init__(self, match, base_url=None):

        self.match = match
        self.glob = None
        self.regex = None
        self.predicate = None

        if isinstance(match, str):
            if base_url is not None and not match.startswith('*'):
                match = urllib.parse.urljoin(base_url, match)
            self.glob = match
            self.regex = re.compile(glob_to_regex(match))
        elif isinstance(match, re.Pattern):
            self.regex = match
        elif callable(match):
            self.predicate = match
        else:
            raise TypeError('a URL pattern must be a glob, a regex, or a callable, not ' + repr(match))


    def __repr__(self):
        return "URLMatcher(%s)" % (repr(self.match))


    def matches(self, url):

        if self.predicate is not None:
            return bool(self.predicate(url))

        if self.glob is not None:
            return self.regex.match(url) is not None

        return self.regex.search(url) is not None


    def serialize(self):
        """ Return the wire form of this pattern. A callable cannot be sent
            to the engine, so it is represented by a glob matching every URL
            and evaluated locally instead.
        """

        if self.glob is not None:
            return {'glob': self.glob}

        if self.regex is not None:
            return {'regexSource': self.regex.pattern, 'regexFlags': regex_flags(self.regex)}

        return {'glob': '**/*'}


    def same_pattern(self, match):
        return self.match == match


# end of class URLMatcher


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
