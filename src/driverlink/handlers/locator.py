""" Locator handlers let a page react when an element matching a selector
    appears and blocks the page, such as a cookie banner or a modal dialog.
    The engine does the watching; when it sees a match it emits
    ``locatorHandlerTriggered`` with the handler's uid, pauses, and waits
    for a ``resolveLocatorHandlerNoReply`` notification before resuming.
    That notification is always sent, whether or not the handler ran or
    succeeded, so the engine is never left waiting.
"""

import threading

from loguru import logger

from ..errors import ChannelError
from .callback import positional_count


class LocatorHandler:
    """ The local half of a registered locator handler: the *callback* to
        invoke, the *selector* it was registered for, and how many more
        times it may run. A *times* of None means no limit.
    """

    def __init__(self, selector, callback, times=None, locator=None):

        if times is not None:
            times = int(times)
            if times < 1:
                raise ValueError('times must be at least one: ' + repr(times))

        arguments = positional_count(callback)

        if arguments is not None and arguments > 1:
            raise TypeError('a locator handler takes at most one argument, the locator')

        self.selector = selector
        self.callback = callback
        self.times = times
        self.locator = locator
        self.arguments = arguments


    def __repr__(self):
        return "LocatorHandler(%s, times=%s)" % (repr(self.selector), repr(self.times))


    def __call__(self):

        if self.arguments == 0:
            return self.callback()

        return self.callback(self.locator)


# end of class LocatorHandler



class LocatorHandlerRegistry:
    """ Every locator handler of a session, keyed by the guid of the page
        that owns it and the uid the engine assigned at registration. The
        registry is shared by the dispatch thread, the listener thread, and
        the handler workers, and is protected by its own lock.
    """

    def __init__(self, session):

        self.session = session
        self._handlers = dict()
        self._lock = threading.Lock()


    def __len__(self):
        with self._lock:
            return len(self._handlers)


    def store(self, owner_guid, uid, handler):
        with self._lock:
            self._handlers[(owner_guid, uid)] = handler


    def lookup(self, owner_guid, uid):
        """ Return the handler for the given key, or None if there is none.
        """

        with self._lock:
            return self._handlers.get((owner_guid, uid))


    def find_by_selector(self, owner_guid, selector):
        """ Return the uids of every handler on *owner_guid* registered for
            *selector*, in registration order.
        """

        uids = list()

        with self._lock:
            for key, handler in self._handlers.items():
                if key[0] == owner_guid and handler.selector == selector:
                    uids.append(key[1])

        return uids


    def delete(self, owner_guid, uid):
        """ Remove the handler for the given key. Returns True if there was
            one to remove.
        """

        with self._lock:
            return self._handlers.pop((owner_guid, uid), None) is not None


    def update_times(self, owner_guid, uid, times):

        with self._lock:
            try:
                handler = self._handlers[(owner_guid, uid)]
            except KeyError:
                return False

            handler.times = times

        return True


    def cleanup(self, owner_guid):
        """ Drop every handler belonging to *owner_guid*, which has closed or
            been disposed. Returns the number dropped.
        """

        with self._lock:
            keys = [key for key in self._handlers if key[0] == owner_guid]
            for key in keys:
                del self._handlers[key]

        if keys:
            logger.debug("dropped {} locator handler(s) for {}", len(keys), owner_guid)

        return len(keys)


    def register(self, owner, selector, callback, times=None, no_wait_after=False, locator=None):
        """ Register a new handler with the engine on behalf of the page
            *owner*, and store it under the uid the engine assigns. Returns
            that uid.
        """

        handler = LocatorHandler(selector, callback, times, locator)

        params = dict()
        params['selector'] = selector
        params['no_wait_after'] = no_wait_after

        result = self.session.post(owner, 'registerLocatorHandler', params)
        uid = result['uid']

        self.store(owner.guid, uid, handler)
        return uid


    def remove(self, owner, selector):
        """ Unregister every handler on *owner* for *selector*, locally and
            with the engine. Returns the number removed.
        """

        uids = self.find_by_selector(owner.guid, selector)

        for uid in uids:
            self.delete(owner.guid, uid)
            self.session.post(owner, 'unregisterLocatorHandler', {'uid': uid})

        return len(uids)


    def trigger(self, owner_guid, uid):
        """ The engine reported that handler *uid* on *owner_guid* should run.
            The handler is invoked on a worker thread; the returned future
            completes once the engine has been told to resume.
        """

        return self.session.run_handler(self._run, owner_guid, uid)


    def _claim(self, owner_guid, uid):
        """ Look up the handler and consume one of its invocations. Returns
            a tuple (handler, remove), where *remove* says whether the
            engine should forget the handler once it has run.
        """

        with self._lock:
            try:
                handler = self._handlers[(owner_guid, uid)]
            except KeyError:
                return None, True

            if handler.times is None:
                return handler, False

            handler.times -= 1

            if handler.times > 0:
                return handler, False

            del self._handlers[(owner_guid, uid)]
            return handler, True


    def _run(self, owner_guid, uid):

        handler, remove = self._claim(owner_guid, uid)

        try:
            if handler is None:
                logger.debug("locator handler {} on {} is gone", uid, owner_guid)
            else:
                handler()
        finally:
            params = dict()
            params['uid'] = uid
            params['remove'] = remove

            try:
                self.session.post_no_reply(owner_guid, 'resolveLocatorHandlerNoReply', params)
            except ChannelError as error:
                logger.warning("cannot resolve locator handler {}: {}", uid, error)


# end of class LocatorHandlerRegistry


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
