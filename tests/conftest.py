import queue
import threading
import time

import pytest

import driverlink


class FakeEngine(driverlink.transport.Transport):
    """ A scripted stand-in for the engine. Frames sent by the session are
        recorded; a responder registered for the method name can answer
        them. Frames queued with :func:`emit` are delivered to the session
        in order.
    """

    def __init__(self):
        self.frames = list()
        self.responders = dict()
        self.inbox = queue.SimpleQueue()
        self.lock = threading.Lock()
        self.opened = False
        self.broken = False


    def open(self):
        self.opened = True


    def close(self):
        if self.opened:
            self.opened = False
            self.inbox.put(None)


    @property
    def is_open(self):
        return self.opened


    def send(self, frame):
        if self.broken:
            raise driverlink.transport.TransportConnectionError('engine went away')

        with self.lock:
            self.frames.append(frame)

        try:
            responder = self.responders[frame['method']]
        except KeyError:
            return

        reply = responder(frame)
        if reply is not None:
            self.inbox.put(reply)


    def recv(self, timeout=None):
        try:
            item = self.inbox.get(timeout=timeout)
        except queue.Empty:
            return None

        if item is None:
            self.inbox.put(None)
            raise driverlink.transport.TransportClosed('fake engine closed')

        if isinstance(item, Exception):
            raise item

        return item


    ### Scripting helpers.

    def emit(self, frame):
        self.inbox.put(frame)


    def create(self, guid, type, parent='', initializer=None):
        if initializer is None:
            initializer = dict()

        params = dict(guid=guid, type=type, initializer=initializer)
        self.emit({'guid': parent, 'method': '__create__', 'params': params})


    def dispose(self, guid):
        self.emit({'guid': guid, 'method': '__dispose__', 'params': {}})


    def event(self, guid, method, params=None):
        if params is None:
            params = dict()
        self.emit({'guid': guid, 'method': method, 'params': params})


    def fail(self, error):
        self.inbox.put(error)


    def respond(self, method, result=None):
        def responder(frame):
            return {'id': frame['id'], 'result': result}
        self.responders[method] = responder


    def reject(self, method, message, name='Error'):
        def responder(frame):
            error = {'error': {'name': name, 'message': message, 'stack': ''}}
            return {'id': frame['id'], 'error': error}
        self.responders[method] = responder


    def sent(self, method=None):
        with self.lock:
            frames = list(self.frames)

        if method is None:
            return frames

        return [frame for frame in frames if frame['method'] == method]


def _eventually(condition, timeout=2):
    """ Poll *condition* until it returns a true value, and return that
        value. Fails the test if it never does.
    """

    expires = time.monotonic() + timeout

    while True:
        value = condition()
        if value:
            return value

        if time.monotonic() > expires:
            pytest.fail('condition never became true')

        time.sleep(0.01)


@pytest.fixture
def eventually():
    return _eventually


@pytest.fixture
def settings():
    return driverlink.config.Settings(timeout=2000, grace=100, transport='pipe')


@pytest.fixture
def engine():
    return FakeEngine()


@pytest.fixture
def session(engine, settings):

    session = driverlink.Session(engine, settings)
    session.start()

    yield session

    session.close()

# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
