""" Route handlers intercept network requests made by a page. Handlers are
    kept in a :class:`RouteChain`; the most recently added handler is
    consulted first, and the first one whose pattern matches the request
    URL is the only one invoked for that request.
"""

import threading

from loguru import logger

from .callback import positional_count
from .matcher import URLMatcher


class RouteHandler:
    """ A *callback* invoked for intercepted requests whose URL matches
        *matcher*. The callback receives the route and the request, or only
        the route if it accepts a single argument. If *times* is given, the
        handler retires itself after that many invocations.
    """

    def __init__(self, matcher, callback, times=None):

        if not isinstance(matcher, URLMatcher):
            matcher = URLMatcher(matcher)

        if times is not None:
            times = int(times)
            if times < 1:
                raise ValueError('times must be at least one: ' + repr(times))

        arguments = positional_count(callback)

        if arguments is not None and arguments not in (1, 2):
            raise TypeError('a route handler takes (route) or (route, request)')

        self.matcher = matcher
        self.callback = callback
        self.remaining = times
        self.arguments = arguments


    def __repr__(self):
        return "RouteHandler(%s, remaining=%s)" % (repr(self.matcher), repr(self.remaining))


    def __call__(self, route, request):

        if self.arguments == 1:
            return self.callback(route)

        return self.callback(route, request)


    def matches(self, url):
        return self.matcher.matches(url)


# end of class RouteHandler



class RouteChain:
    """ The ordered set of route handlers for one page or context. The chain
        is shared between the caller registering handlers and the worker
        threads invoking them, and is protected by its own lock.
    """

    def __init__(self):

        self._handlers = list()
        self._lock = threading.Lock()


    def __len__(self):
        with self._lock:
            return len(self._handlers)


    def handlers(self):
        """ Return a snapshot of the chain, newest handler first.
        """

        with self._lock:
            return list(self._handlers)


    def add(self, handler):
        with self._lock:
            self._handlers.insert(0, handler)


    def remove(self, match=None, callback=None):
        """ Remove every handler registered with the pattern *match*, and
            additionally with *callback* if one is given; if *match* is None,
            remove every handler. Returns the number removed.
        """

        with self._lock:
            before = len(self._handlers)
            kept = list()

            for handler in self._handlers:
                selected = match is None or handler.matcher.same_pattern(match)
                if selected and callback is not None:
                    selected = handler.callback == callback
                if not selected:
                    kept.append(handler)

            self._handlers = kept
            return before - len(kept)


    def select(self, url):
        """ Return a tuple (handler, retired): the newest handler matching
            *url*, or None, and whether selecting it used up its last
            invocation. A retired handler is removed from the chain here, so
            it can never be selected twice.
        """

        for handler in self.handlers():
            if not handler.matches(url):
                continue

            with self._lock:
                if handler not in self._handlers:
                    continue

                if handler.remaining is None:
                    return handler, False

                handler.remaining -= 1

                if handler.remaining > 0:
                    return handler, False

                self._handlers.remove(handler)
                return handler, True

        return None, False


    def patterns(self):
        """ Return the wire form of every pattern in the chain.
        """

        return [handler.matcher.serialize() for handler in self.handlers()]


# end of class RouteChain



def dispatch(chain, route, retired=None):
    """ Hand the intercepted *route* to the matching handler in *chain*. If
        no handler matches, the request continues unmodified. *retired* is
        invoked when the selected handler has used up its last invocation,
        so the caller can narrow the set of intercepted patterns. Returns
        the invoked handler, if any.

        This runs on a handler worker thread, never on the dispatch thread:
        handlers answer the route by posting requests of their own.
    """

    request = route.request
    url = request.url
    handler, used_up = chain.select(url)

    if used_up and retired is not None:
        retired()

    if handler is None:
        logger.debug("no route handler for {}, continuing", url)
        route.continue_()
        return None

    handler(route, request)
    return handler


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
