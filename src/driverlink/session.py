""" A :class:`Session` is one live connection to an engine. It owns the
    transport, the catalog of remote objects, the table of outstanding
    requests, and the event subscriptions for that connection.

    All of that state is owned by a single dispatch thread. Other threads
    never touch it directly; they hand work to the dispatch thread through
    its inbox and, where a result is needed, block on a private event until
    the dispatch thread answers. A separate reader thread does nothing but
    pull frames off the transport and queue them for dispatch, and listener
    callbacks run on their own thread so that a slow or blocking callback
    cannot stall frame processing.
"""

import concurrent.futures
import queue
import threading

from loguru import logger

from . import catalog
from . import config
from . import events
from . import owner
from . import protocol
from . import timeouts
from .errors import ChannelError, NotFound, ProtocolError, SessionClosed, Timeout, TransportError, UnknownType
from .handlers import locator
from .protocol import fields
from .protocol import message


class PendingRequest:
    """ A request that has been handed to the dispatch thread and is waiting
        for the engine to respond.
    """

    def __init__(self, message):

        self.message = message
        self.result = None
        self.error = None
        self.event = threading.Event()


    @property
    def id(self):
        return self.message.id


    def complete(self, result):
        self.result = result
        self.event.set()


    def fail(self, error):
        self.error = error
        self.event.set()


    def wait(self, seconds):

        if not self.event.wait(seconds):
            raise timeouts.Expired()

        if self.error is not None:
            raise self.error

        return self.result


# end of class PendingRequest



class _Call:
    """ A function to be invoked on the dispatch thread, with its outcome
        reported back to the thread that submitted it. A call cancelled
        before the dispatch thread reaches it never runs.
    """

    def __init__(self, function, args):

        self.function = function
        self.args = args
        self.result = None
        self.error = None
        self.event = threading.Event()
        self.lock = threading.Lock()
        self.started = False
        self.cancelled = False


    def run(self):

        with self.lock:
            if self.cancelled:
                return
            self.started = True

        try:
            self.result = self.function(*self.args)
        except Exception as error:
            self.error = error
        finally:
            self.event.set()


    def fail(self, error):
        self.error = error
        self.event.set()


    def cancel(self):

        with self.lock:
            if self.started == False:
                self.cancelled = True


    def wait(self, seconds):

        if not self.event.wait(seconds):
            raise timeouts.Expired()

        if self.error is not None:
            raise self.error

        return self.result


# end of class _Call



class Expectation:
    """ A registered one-shot wait, as returned by :func:`Session.expect`.
        Events emitted after registration are captured even if
        :func:`wait` is called later. Used as a context manager, the wait
        happens when the block exits without an exception, and the event is
        stored as :attr:`value`.
    """

    def __init__(self, session, waiter, timeout=None):

        self.session = session
        self.waiter = waiter
        self.timeout = timeout
        self.value = None
        self._active = True


    def __enter__(self):
        return self


    def __exit__(self, exc_type, exc_value, traceback):

        if exc_type is None:
            self.value = self.wait()
        else:
            self.cancel()


    def wait(self, timeout=None):
        """ Block until the event arrives and return it; the registration
            is released either way.
        """

        if timeout is None:
            timeout = self.timeout

        try:
            return timeouts.with_timeout(timeout, self.waiter.wait, self.session.settings)
        finally:
            self.cancel()


    def cancel(self):

        if self._active == False:
            return

        self._active = False

        try:
            self.session._call(self.session.subscriptions.remove_waiter, self.waiter)
        except ChannelError:
            pass


# end of class Expectation



class Session:
    """ One connection to an engine over *transport*. The session does
        nothing until :func:`start` is called; it can be used as a context
        manager, which starts it on entry and closes it on exit.

        :ivar catalog: The :class:`driverlink.catalog.Catalog` of live
            remote objects.
        :ivar settings: The :class:`driverlink.config.Settings` in effect.
        :ivar engine: The engine's top-level object, once
            :func:`initialize` has been called.
    """

    poll_interval = 0.5

    def __init__(self, transport, settings=None, types=None):

        if settings is None:
            settings = config.defaults

        self.transport = transport
        self.settings = settings
        self.catalog = catalog.Catalog(self, types)
        self.subscriptions = events.Subscriptions()
        self.locator_handlers = locator.LocatorHandlerRegistry(self)
        self.listeners = None
        self.workers = None
        self.engine = None

        self._inbox = queue.SimpleQueue()
        self._inbox_lock = threading.Lock()
        self._release_lock = threading.Lock()
        self._pending = dict()
        self._failure = None
        self._state = 'new'
        self._released = False
        self._dispatch_thread = None
        self._reader_thread = None


    def __repr__(self):
        return "Session(%s, %s)" % (repr(self.transport), self._state)


    def __enter__(self):
        if self._state == 'new':
            self.start()
        return self


    def __exit__(self, *exc_info):
        self.close()


    @property
    def root(self):
        return self.catalog.root


    @property
    def closed(self):
        return self._state == 'closed'


    @property
    def failure(self):
        """ The transport error that ended this session, if any.
        """

        return self._failure


    def start(self):
        """ Open the transport and start the session's background threads.
        """

        if self._state != 'new':
            raise ChannelError('a session can only be started once')

        self.transport.open()

        with self._inbox_lock:
            self._state = 'running'

        self.listeners = events.Dispatcher()
        self.workers = concurrent.futures.ThreadPoolExecutor(self.settings.handler_workers, 'driverlink-handler')

        self._dispatch_thread = threading.Thread(target=self._dispatch_loop, name='driverlink-dispatch')
        self._dispatch_thread.daemon = True
        self._dispatch_thread.start()

        self._reader_thread = threading.Thread(target=self._read_loop, name='driverlink-reader')
        self._reader_thread.daemon = True
        self._reader_thread.start()

        logger.debug("session started on {}", self.transport)
        return self


    def close(self):
        """ Close the session. Outstanding requests and waits fail with
            :class:`driverlink.errors.SessionClosed`; closing more than once
            is harmless.
        """

        with self._inbox_lock:
            state = self._state

            if state == 'running':
                self._inbox.put(('stop', None))
            elif state == 'new':
                self._state = 'closed'
                return

        self._release()


    def _release(self):

        with self._release_lock:
            if self._released == True:
                return
            self._released = True

        current = threading.current_thread()

        if self._dispatch_thread is not current:
            self._dispatch_thread.join()

        self.transport.close()

        if self._reader_thread is not current:
            self._reader_thread.join(timeout=2)

        self.listeners.stop()
        self.workers.shutdown(wait=False, cancel_futures=True)
        logger.debug("session on {} closed", self.transport)


    def initialize(self, sdk_language='python', timeout=None):
        """ Perform the opening handshake with the engine, and return the
            engine's top-level object.
        """

        result = self.root.initialize(sdk_language, timeout)

        if isinstance(result, dict):
            for value in result.values():
                if isinstance(value, owner.ChannelOwner):
                    self.engine = value
                    break

        return self.engine


    def post(self, target, method, params=None, timeout=None, metadata=None):
        """ Invoke *method* on the remote object *target* and block until
            the engine responds, returning the result with any object
            references replaced by their proxies. *timeout* (milliseconds)
            overrides the default timeout placed in *params*.

            Raises :class:`driverlink.errors.RemoteError` if the engine
            reports a failure, and :class:`driverlink.errors.Timeout` if no
            response arrives within the timeout plus the grace period.
        """

        guid = _guid(target)

        if params is None:
            params = dict()
        else:
            params = dict(params)

        if timeout is not None:
            params[fields.TIMEOUT] = timeout
        elif params.get(fields.TIMEOUT) is None:
            params[fields.TIMEOUT] = self.settings.timeout

        request = protocol.build(guid, method, params, metadata)

        if self._on_dispatch_thread():
            raise ChannelError('post() cannot block the dispatch thread; use post_no_reply()')

        pending = PendingRequest(request)
        self._submit(('post', pending))

        try:
            return timeouts.with_timeout(request.timeout, pending.wait, self.settings)
        except Timeout:
            self._forget(request.id)
            raise


    def post_no_reply(self, target, method, params=None):
        """ Send *method* to the remote object *target* without waiting for,
            or tracking, any response.
        """

        if params is None:
            params = dict()
        else:
            params = dict(params)

        if params.get(fields.TIMEOUT) is None:
            params[fields.TIMEOUT] = self.settings.timeout

        request = protocol.build(_guid(target), method, params)

        if self._on_dispatch_thread():
            self._send(request)
        else:
            self._submit(('send', request))


    def patch(self, target, properties):
        """ Merge *properties* into the local state of *target* and return
            its proxy. The merge happens on the dispatch thread, in order
            with every frame that arrived before it.
        """

        return self._call(self.catalog.patch, _guid(target), dict(properties))


    def find(self, target, timeout=None):
        """ Return the live proxy for *target*, waiting up to *timeout*
            milliseconds for it to appear. Raises
            :class:`driverlink.errors.NotFound`.
        """

        if self._on_dispatch_thread():
            timeout = None

        return self.catalog.find(_guid(target), timeout)


    def list(self, target=None, type=None):
        """ Return the live children of *target*, optionally filtered to a
            wire *type*, in creation order.
        """

        return self.catalog.list(_guid(target), type)


    def bind(self, target, event, callback):
        """ Invoke *callback* with a :class:`driverlink.events.Event` every
            time *target* emits *event*. Callbacks run on the listener
            thread; an exception raised by a callback is logged and
            otherwise ignored.
        """

        name = protocol.events.normalize(event)
        self._call(self.subscriptions.bind, _guid(target), name, callback)


    def unbind(self, target, event, callback=None):

        name = protocol.events.normalize(event)
        return self._call(self.subscriptions.unbind, _guid(target), name, callback)


    def wait(self, target, event, timeout=None, predicate=None, trigger=None):
        """ Block until *target* emits *event* and return the
            :class:`driverlink.events.Event`. If *predicate* is given, events
            for which it returns false are skipped. If *trigger* is given it
            is invoked after the wait is registered, so that an event caused
            by the trigger cannot be missed.

            Raises :class:`driverlink.errors.Timeout` if no matching event
            arrives in time, and :class:`driverlink.errors.NotFound` if the
            target is disposed while waiting.
        """

        if self._on_dispatch_thread():
            raise ChannelError('wait() cannot block the dispatch thread')

        expectation = self.expect(target, event, predicate, timeout)

        if trigger is not None:
            try:
                trigger()
            except BaseException:
                expectation.cancel()
                raise

        return expectation.wait()


    def expect(self, target, event, predicate=None, timeout=None):
        """ Register a one-shot wait for *event* on *target* immediately, and
            return an :class:`Expectation` to collect the event later. This
            is the building block for :func:`wait`; used as a context
            manager it waits for the event when the block exits.
        """

        name = protocol.events.normalize(event)
        waiter = events.Waiter(_guid(target), name, predicate)

        self._call(self._add_waiter, waiter)
        return Expectation(self, waiter, timeout)


    def _add_waiter(self, waiter):
        self.catalog.get(waiter.guid)
        self.subscriptions.add_waiter(waiter)


    def run_handler(self, function, *args):
        """ Run *function* on the handler worker pool and return its
            :class:`concurrent.futures.Future`. Route and locator handlers are
            invoked this way so that they may post requests of their own.
        """

        try:
            future = self.workers.submit(function, *args)
        except RuntimeError:
            raise self._closed_error() from None

        future.add_done_callback(_log_handler_failure)
        return future


    ### Everything below here is internal machinery.


    def _on_dispatch_thread(self):
        return threading.current_thread() is self._dispatch_thread


    def _closed_error(self):

        if self._failure is not None:
            return self._failure

        return SessionClosed('session is closed')


    def _submit(self, item):

        with self._inbox_lock:
            if self._state != 'running':
                raise self._closed_error()

            self._inbox.put(item)


    def _call(self, function, *args):
        """ Invoke *function* on the dispatch thread and return its result,
            or raise what it raised. If the dispatch thread does not get to
            it within the default timeout, raise
            :class:`driverlink.errors.Timeout` and cancel the call.
        """

        if self._on_dispatch_thread():
            return function(*args)

        call = _Call(function, args)
        self._submit(('call', call))

        try:
            return timeouts.with_timeout(None, call.wait, self.settings)
        except Timeout:
            call.cancel()
            raise


    def _forget(self, id):

        try:
            self._submit(('forget', id))
        except ChannelError:
            pass


    def _stop(self, failure):

        with self._inbox_lock:
            if self._state != 'running':
                return

            if self._failure is None:
                self._failure = failure

            self._inbox.put(('stop', failure))


    def _read_loop(self):

        while self._state == 'running':
            try:
                frame = self.transport.recv(self.poll_interval)
            except ProtocolError as error:
                logger.warning("discarding undecodable frame: {}", error)
                continue
            except TransportError as error:
                if self._state == 'running':
                    logger.error("transport failed: {}", error)
                    self._stop(error)
                return

            if frame is None:
                continue

            try:
                self._submit(('frame', frame))
            except ChannelError:
                return


    def _dispatch_loop(self):

        while True:
            kind, payload = self._inbox.get()

            if kind == 'stop':
                break

            try:
                self._handle(kind, payload)
            except Exception:
                logger.opt(exception=True).error("internal error handling {}", kind)

        self._finish()


    def _finish(self):

        with self._inbox_lock:
            self._state = 'closed'
            leftovers = list()

            while True:
                try:
                    leftovers.append(self._inbox.get(block=False))
                except queue.Empty:
                    break

        error = self._closed_error()

        for pending in self._pending.values():
            pending.fail(error)

        self._pending.clear()

        for kind, payload in leftovers:
            if kind == 'post' or kind == 'call':
                payload.fail(error)

        self.subscriptions.fail_all(error)

        # A failed session releases its threads without waiting for close().

        if self._failure is not None:
            self._release()


    def _handle(self, kind, payload):

        if kind == 'frame':
            self._process(payload)
        elif kind == 'call':
            payload.run()
        elif kind == 'post':
            self._pending[payload.id] = payload
            try:
                self.transport.send(payload.message.to_dict())
            except TransportError as error:
                del self._pending[payload.id]
                payload.fail(error)
                self._stop(error)
        elif kind == 'send':
            self._send(payload)
        elif kind == 'forget':
            self._pending.pop(payload, None)
        else:
            raise ValueError('unhandled inbox item: ' + repr(kind))


    def _send(self, request):

        try:
            self.transport.send(request.to_dict())
        except TransportError as error:
            logger.error("cannot send {}: {}", request, error)
            self._stop(error)


    def _process(self, frame):

        try:
            item = protocol.classify(frame)
        except ProtocolError as error:
            logger.warning("{}", error)
            return

        if isinstance(item, message.Response):
            self._on_response(item)

        elif isinstance(item, message.Create):
            try:
                self.catalog.create(item.guid, item.type, item.parent_guid, item.initializer)
            except (UnknownType, ProtocolError) as error:
                logger.error("cannot create {}: {}", item.guid, error)

        elif isinstance(item, message.Dispose):
            self._on_dispose(item.guid)

        elif isinstance(item, message.Adopt):
            try:
                self.catalog.adopt(item.guid, item.parent_guid)
            except NotFound as error:
                logger.warning("cannot adopt {}: {}", item.guid, error)

        elif isinstance(item, message.Patch):
            try:
                self.catalog.patch(item.guid, self.catalog.resolve(item.properties))
            except NotFound as error:
                logger.debug("ignoring patch: {}", error)

        else:
            self._on_event(item)


    def _on_response(self, response):

        try:
            pending = self._pending.pop(response.id)
        except KeyError:
            logger.warning("response for unknown request id {}", response.id)
            return

        error = response.exception()

        if error is None:
            pending.complete(self.catalog.resolve(response.result))
        else:
            pending.fail(error)


    def _on_dispose(self, guid):

        if self.catalog.dispose(guid) is None:
            logger.debug("ignoring dispose of unknown object {}", guid)
            return

        self.subscriptions.forget(guid, NotFound(guid, True))
        self.locator_handlers.cleanup(guid)


    def _on_event(self, notification):

        try:
            target = self.catalog.get(notification.guid)
        except NotFound:
            logger.debug("dropping {} for an unknown object", notification)
            return

        params = self.catalog.resolve(notification.params)
        event = events.Event(target, notification.method, params)

        for callback in self.subscriptions.deliver(target.guid, event):
            self.listeners.submit(callback, event)


# end of class Session



def _guid(target):
    """ Accept either a proxy or a bare guid wherever a target is expected.
    """

    if target is None:
        return fields.ROOT_GUID

    if isinstance(target, owner.ChannelOwner):
        return target.guid

    if isinstance(target, str):
        return target

    raise TypeError('expected a proxy or a guid, not ' + repr(target))



def _log_handler_failure(future):

    if future.cancelled():
        return

    error = future.exception()

    if error is not None:
        logger.opt(exception=error).warning("handler raised {}", error)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
