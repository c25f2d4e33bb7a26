import threading

import pytest

import driverlink


def test_post_result(session, engine):

    engine.respond('evaluateExpression', {'value': {'n': 3}})

    result = session.post('frame@1', 'evaluate_expression', {'expression': '1 + 2', 'is_function': False})
    assert result == {'value': {'n': 3}}

    sent = engine.sent('evaluateExpression')
    assert len(sent) == 1

    frame = sent[0]
    assert frame['guid'] == 'frame@1'
    assert frame['params'] == {'expression': '1 + 2', 'isFunction': False, 'timeout': 2000}


def test_post_timeout_argument(session, engine):

    engine.respond('goto', None)

    session.post('frame@1', 'goto', {'url': 'about:blank'}, timeout=750)
    assert engine.sent('goto')[0]['params']['timeout'] == 750


def test_post_resolves_references(session, engine):

    engine.create('request@1', 'Request', initializer={'url': 'https://example.com/', 'method': 'GET'})
    engine.respond('redirectedFrom', {'request': {'guid': 'request@1'}})

    request = session.find('request@1', timeout=1000)
    result = session.post('request@2', 'redirected_from')

    assert result['request'] is request
    assert request.url == 'https://example.com/'
    assert request.method == 'GET'


def test_remote_error(session, engine):

    engine.reject('click', 'element is not visible', name='TimeoutError')

    with pytest.raises(driverlink.RemoteError) as caught:
        session.post('frame@1', 'click', {'selector': '#hidden'})

    assert caught.value.name == 'TimeoutError'
    assert caught.value.message == 'element is not visible'

    # The session is unaffected.

    engine.respond('title', {'value': 'ok'})
    assert session.post('frame@1', 'title') == {'value': 'ok'}


def test_post_times_out(session, engine):

    with pytest.raises(driverlink.Timeout) as caught:
        session.post('frame@1', 'never_answered', timeout=50)

    assert '50' in str(caught.value)
    assert caught.value.timeout == 50

    # A late response for the abandoned request is dropped quietly.

    frame = engine.sent('neverAnswered')[0]
    engine.emit({'id': frame['id'], 'result': {}})

    engine.respond('title', {'value': 'still fine'})
    assert session.post('frame@1', 'title') == {'value': 'still fine'}


def test_unknown_response_id(session, engine):

    engine.emit({'id': 987654321, 'result': {'value': 1}})

    engine.respond('title', {'value': 'ok'})
    assert session.post('frame@1', 'title') == {'value': 'ok'}


def test_post_no_reply(session, engine, eventually):

    session.post_no_reply('page@1', 'resolve_locator_handler_no_reply', {'uid': 3, 'remove': True})

    sent = eventually(lambda: engine.sent('resolveLocatorHandlerNoReply'))
    assert sent[0]['params']['uid'] == 3
    assert sent[0]['params']['remove'] == True


def test_post_on_dispatch_thread(session):

    with pytest.raises(driverlink.ChannelError):
        session._call(session.post, 'frame@1', 'title')


def test_initialize(session, engine):

    engine.create('browser-type@1', 'BrowserType', initializer={'name': 'chromium'})
    engine.create('Playwright', 'Playwright', initializer={'chromium': {'guid': 'browser-type@1'}})
    engine.respond('initialize', {'playwright': {'guid': 'Playwright'}})

    top = session.initialize()

    assert isinstance(top, driverlink.objects.Engine)
    assert session.engine is top
    assert top.chromium.name == 'chromium'
    assert top.browser_type('chromium') is top.chromium

    frame = engine.sent('initialize')[0]
    assert frame['guid'] == ''
    assert frame['params']['sdkLanguage'] == 'python'


def test_unknown_type_is_not_fatal(session, engine):

    engine.create('widget@1', 'Widget')
    engine.create('request@1', 'Request', initializer={'url': 'https://example.com/'})

    assert session.find('request@1', timeout=1000).url == 'https://example.com/'

    with pytest.raises(driverlink.NotFound):
        session.find('widget@1')


def test_dispose(session, engine, eventually):

    engine.create('request@1', 'Request')
    request = session.find('request@1', timeout=1000)

    engine.dispose('request@1')
    eventually(lambda: request.is_disposed)

    with pytest.raises(driverlink.NotFound) as caught:
        session.find('request@1', timeout=500)

    assert caught.value.disposed == True

    with pytest.raises(driverlink.NotFound):
        request.refresh()


def test_dispose_parent_keeps_children(session, engine, eventually):

    engine.create('context@1', 'BrowserContext')
    engine.create('request@1', 'Request', parent='context@1')
    context = session.find('context@1', timeout=1000)
    request = session.find('request@1', timeout=1000)

    engine.dispose('context@1')
    eventually(lambda: context.is_disposed)

    assert session.find('request@1') is request
    assert request.is_disposed == False

    engine.dispose('request@1')
    eventually(lambda: request.is_disposed)

    with pytest.raises(driverlink.NotFound) as caught:
        session.find('request@1')

    assert caught.value.disposed == True


def test_list(session, engine):

    engine.create('browser@1', 'Browser')
    engine.create('context@1', 'BrowserContext', parent='browser@1')
    engine.create('context@2', 'BrowserContext', parent='browser@1')

    session.find('context@2', timeout=1000)

    contexts = session.list('browser@1', 'BrowserContext')
    assert [context.guid for context in contexts] == ['context@1', 'context@2']
    assert contexts[0].browser.guid == 'browser@1'


def test_patch(session, engine):

    engine.create('request@1', 'Request')
    request = session.find('request@1', timeout=1000)

    patched = session.patch(request, {'intercepted': True})

    assert patched is request
    assert request.intercepted == True


def test_remote_patch(session, engine, eventually):

    engine.create('request@1', 'Request', initializer={'url': 'https://example.com/'})
    request = session.find('request@1', timeout=1000)

    engine.emit({'method': '__patch__', 'params': {'guid': 'request@1', 'properties': {'url': 'https://example.org/'}}})
    eventually(lambda: request.url == 'https://example.org/')


def test_wait_with_trigger(session, engine, eventually):

    engine.create('frame@1', 'Frame', initializer={'url': 'about:blank'})
    frame = session.find('frame@1', timeout=1000)

    def trigger():
        engine.event('frame@1', 'navigated', {'url': 'https://example.com/', 'name': ''})

    event = session.wait(frame, 'navigated', timeout=1000, trigger=trigger)

    assert event.type == 'navigated'
    assert event.target is frame
    assert event['url'] == 'https://example.com/'

    eventually(lambda: frame.url == 'https://example.com/')


def test_wait_times_out(session, engine):

    engine.create('frame@1', 'Frame')
    session.find('frame@1', timeout=1000)

    with pytest.raises(driverlink.Timeout) as caught:
        session.wait('frame@1', 'navigated', timeout=100)

    assert '100' in str(caught.value)


def test_wait_predicate(session, engine):

    engine.create('frame@1', 'Frame')
    frame = session.find('frame@1', timeout=1000)

    def trigger():
        engine.event('frame@1', 'navigated', {'url': 'https://example.com/first'})
        engine.event('frame@1', 'navigated', {'url': 'https://example.com/second'})

    def second(event):
        return event['url'].endswith('second')

    event = frame.wait_for_navigation(timeout=1000, predicate=second, trigger=trigger)
    assert event['url'] == 'https://example.com/second'


def test_wait_predicate_raises(session, engine):

    engine.create('frame@1', 'Frame')
    session.find('frame@1', timeout=1000)

    def broken(event):
        raise KeyError('no such field')

    def trigger():
        engine.event('frame@1', 'navigated', {'url': 'https://example.com/'})

    with pytest.raises(KeyError):
        session.wait('frame@1', 'navigated', timeout=1000, predicate=broken, trigger=trigger)


def test_wait_validation(session, engine):

    with pytest.raises(driverlink.UnknownEvent):
        session.wait('', 'teleported', timeout=100)

    with pytest.raises(driverlink.NotFound):
        session.wait('frame@missing', 'navigated', timeout=100)


def test_wait_on_disposed_target(session, engine):

    engine.create('frame@1', 'Frame')
    session.find('frame@1', timeout=1000)

    def trigger():
        engine.dispose('frame@1')

    with pytest.raises(driverlink.NotFound):
        session.wait('frame@1', 'navigated', timeout=1000, trigger=trigger)


def test_expect(session, engine):

    engine.create('page@1', 'Page')
    page = session.find('page@1', timeout=1000)

    with page.expect_event('dialog', timeout=1000) as expected:
        engine.event('page@1', 'dialog', {'message': 'hello'})

    assert expected.value['message'] == 'hello'


def test_bound_listeners(session, engine, eventually):

    engine.create('page@1', 'Page')
    page = session.find('page@1', timeout=1000)

    received = list()
    caller = threading.current_thread()

    def broken(event):
        raise RuntimeError('listener failure')

    def collect(event):
        received.append((event['text'], threading.current_thread()))

    page.on('console', broken)
    page.on('console', collect)

    engine.event('page@1', 'console', {'text': 'one'})
    engine.event('page@1', 'console', {'text': 'two'})

    eventually(lambda: len(received) == 2)
    assert [text for text, thread in received] == ['one', 'two']

    for text, thread in received:
        assert thread is not caller
        assert thread is not session._dispatch_thread

    assert page.off('console', collect) == 1

    engine.event('page@1', 'console', {'text': 'three'})
    engine.respond('title', {'value': 'ok'})
    assert session.post('frame@1', 'title') == {'value': 'ok'}
    assert len(received) == 2


def test_event_for_unknown_target(session, engine):

    engine.event('page@missing', 'close')

    engine.respond('title', {'value': 'ok'})
    assert session.post('frame@1', 'title') == {'value': 'ok'}


def test_transport_failure(session, engine):

    engine.responders['goto'] = lambda frame: driverlink.transport.TransportConnectionError('engine went away')

    with pytest.raises(driverlink.TransportError):
        session.post('frame@1', 'goto', {'url': 'about:blank'})

    with pytest.raises(driverlink.TransportError):
        session.post('frame@1', 'goto', {'url': 'about:blank'})

    assert session.closed
    assert isinstance(session.failure, driverlink.TransportError)


def test_send_failure(session, engine):

    engine.broken = True

    with pytest.raises(driverlink.TransportError):
        session.post('frame@1', 'title')


def test_failure_releases_threads(session, engine, eventually):

    listeners = session.listeners.thread
    engine.fail(driverlink.transport.TransportConnectionError('engine went away'))

    eventually(lambda: session.closed)
    eventually(lambda: listeners.is_alive() == False)

    def refused():
        try:
            session.run_handler(lambda: None)
        except driverlink.TransportError:
            return True
        return False

    eventually(refused)

    assert engine.opened == False


def test_stalled_dispatch_thread(engine, settings):

    stalled = threading.Event()
    release = threading.Event()

    def stall(frame):
        stalled.set()
        release.wait(5)

    engine.responders['title'] = stall

    with driverlink.Session(engine, settings.copy(timeout=200)) as session:
        session.post_no_reply('frame@1', 'title')
        assert stalled.wait(2)

        try:
            with pytest.raises(driverlink.Timeout):
                session.bind('', 'close', lambda event: None)
        finally:
            release.set()

        # The abandoned bind never runs once the dispatch thread recovers.

        assert session.unbind('', 'close') == 0


def test_closed_session(engine, settings):

    with driverlink.Session(engine, settings) as session:
        assert engine.opened

    assert session.closed

    with pytest.raises(driverlink.SessionClosed):
        session.post('frame@1', 'title')

    # Closing twice is harmless.

    session.close()


def test_sessions_are_independent(engine, settings):

    other = type(engine)()
    engine.respond('title', {'value': 'first'})
    other.broken = True

    with driverlink.Session(engine, settings) as first, driverlink.Session(other, settings) as second:
        with pytest.raises(driverlink.TransportError):
            second.post('frame@1', 'title')

        assert first.post('frame@1', 'title') == {'value': 'first'}


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
