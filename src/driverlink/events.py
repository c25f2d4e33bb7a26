""" Event fan-out for a :class:`driverlink.session.Session`. Two kinds of
    consumers are supported over the same stream of events: persistent
    listeners, bound with :func:`Subscriptions.bind` and invoked for every
    matching event until unbound, and one-shot :class:`Waiter` instances
    that resolve on the first event satisfying a predicate.

    The :class:`Subscriptions` tables are owned by the session's dispatch
    thread; nothing else mutates them. Listener callbacks are never invoked
    on the dispatch thread, they are handed to a :class:`Dispatcher`.
"""

import queue
import threading

from loguru import logger

from . import timeouts


class Event:
    """ A named event emitted by a remote object.

        :ivar target: The proxy object that emitted the event.
        :ivar type: The wire name of the event.
        :ivar params: The event payload, with object references resolved.
    """

    def __init__(self, target, type, params=None):

        if params is None:
            params = dict()

        self.target = target
        self.type = type
        self.params = params


    def __repr__(self):
        return "Event(%s, target=%s)" % (repr(self.type), repr(self.target))


    def __getitem__(self, key):
        return self.params[key]


    def get(self, key, default=None):
        return self.params.get(key, default)


# end of class Event



class Waiter:
    """ A one-shot wait for an event named *name* on the object *guid*. The
        dispatch thread pushes every event of that name to the waiter's
        queue; the *predicate*, if any, is evaluated on the waiting thread,
        never on the dispatch thread, so it may safely do anything a normal
        caller could do.
    """

    def __init__(self, guid, name, predicate=None):

        if predicate is not None and not callable(predicate):
            raise TypeError('the predicate must be callable')

        self.guid = guid
        self.name = name
        self.predicate = predicate
        self.queue = queue.SimpleQueue()


    def push(self, event):
        self.queue.put(event)


    def fail(self, exception):
        """ Abort the wait; the waiting thread will raise *exception*.
        """

        self.queue.put(exception)


    def wait(self, seconds):
        """ Block for up to *seconds* for a matching event and return it.
            This is the action handed to
            :func:`driverlink.timeouts.with_timeout`.
        """

        deadline = timeouts.Deadline(seconds)

        while True:
            item = self.queue.get(timeout=deadline.remaining())

            if isinstance(item, BaseException):
                raise item

            if self.predicate is None or self.predicate(item):
                return item


# end of class Waiter



class Subscriptions:
    """ Registry of listeners and waiters, keyed by (guid, event name).
        Listeners for a key are kept in registration order.
    """

    def __init__(self):

        self.listeners = dict()
        self.waiters = dict()


    def bind(self, guid, name, callback):

        if not callable(callback):
            raise TypeError('the bound callback must be callable')

        key = (guid, name)

        try:
            callbacks = self.listeners[key]
        except KeyError:
            callbacks = list()
            self.listeners[key] = callbacks

        callbacks.append(callback)


    def unbind(self, guid, name, callback=None):
        """ Remove *callback* for the given key, or every callback for the
            key if *callback* is None. Returns the number removed.
        """

        key = (guid, name)

        try:
            callbacks = self.listeners[key]
        except KeyError:
            return 0

        if callback is None:
            removed = len(callbacks)
            del self.listeners[key]
            return removed

        before = len(callbacks)
        callbacks[:] = [bound for bound in callbacks if bound != callback]
        removed = before - len(callbacks)

        if len(callbacks) == 0:
            del self.listeners[key]

        return removed


    def add_waiter(self, waiter):

        key = (waiter.guid, waiter.name)

        try:
            waiters = self.waiters[key]
        except KeyError:
            waiters = list()
            self.waiters[key] = waiters

        waiters.append(waiter)


    def remove_waiter(self, waiter):

        key = (waiter.guid, waiter.name)

        try:
            waiters = self.waiters[key]
        except KeyError:
            return

        try:
            waiters.remove(waiter)
        except ValueError:
            pass

        if len(waiters) == 0:
            del self.waiters[key]


    def deliver(self, guid, event):
        """ Push *event* to any waiters registered for it, and return the
            list of listener callbacks that should receive it. The caller is
            responsible for invoking those callbacks elsewhere.
        """

        key = (guid, event.type)

        try:
            waiters = self.waiters[key]
        except KeyError:
            pass
        else:
            for waiter in waiters:
                waiter.push(event)

        try:
            callbacks = self.listeners[key]
        except KeyError:
            return list()

        return list(callbacks)


    def forget(self, guid, exception):
        """ The object *guid* is gone: drop its listeners, and fail any
            waiters still expecting events from it with *exception*.
        """

        for key in list(self.listeners.keys()):
            if key[0] == guid:
                del self.listeners[key]

        for key in list(self.waiters.keys()):
            if key[0] == guid:
                for waiter in self.waiters.pop(key):
                    waiter.fail(exception)


    def fail_all(self, exception):
        """ Fail every outstanding waiter with *exception*. Used when the
            session itself is going away.
        """

        for waiters in self.waiters.values():
            for waiter in waiters:
                waiter.fail(exception)

        self.waiters.clear()


# end of class Subscriptions



class _DispatcherWake(RuntimeError):
    pass


class Dispatcher:
    """ Background thread to invoke listener callbacks. This allows the
        frame processing loop of the session to stay consistent and tight,
        where a user-provided callback may require an unbounded amount of
        time, or may itself issue requests that need that same loop to make
        progress. Callbacks run one at a time, in the order their events
        arrived.
    """

    def __init__(self, name='driverlink-listeners'):

        self.queue = queue.SimpleQueue()
        self.shutdown = False

        self.thread = threading.Thread(target=self.run, name=name)
        self.thread.daemon = True
        self.thread.start()


    def submit(self, callback, event):

        if self.shutdown == True:
            return

        self.queue.put((callback, event))


    def run(self):

        while True:
            if self.shutdown == True:
                break

            try:
                dequeued = self.queue.get(timeout=300)
            except queue.Empty:
                continue

            if isinstance(dequeued, _DispatcherWake):
                continue

            callback, event = dequeued

            try:
                callback(event)
            except Exception:
                logger.opt(exception=True).warning("listener for {} raised", event)
                continue


    def stop(self):
        self.shutdown = True
        self.wake()

        if self.thread is not threading.current_thread():
            self.thread.join(timeout=2)


    def wake(self):
        self.queue.put(_DispatcherWake())


# end of class Dispatcher


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
