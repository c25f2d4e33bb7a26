""" Proxy classes for the remote object types driverlink knows about. These
    are deliberately thin: each method is a single request to the engine,
    and the only state kept locally is what the engine reports in
    initializers, patches, and events.
"""

import base64

from loguru import logger

from .errors import NotFound
from .handlers import route as routing
from .handlers.matcher import URLMatcher
from .handlers.route import RouteChain, RouteHandler
from .owner import ChannelOwner
from .protocol import values
from .registry import register


def _serialize_headers(headers):
    return [{'name': name, 'value': str(value)} for name, value in headers.items()]


@register('Playwright')
class Engine(ChannelOwner):
    """ The engine's top-level object, returned by the opening handshake.
        It carries one :class:`BrowserType` per supported browser.
    """

    properties = ('chromium', 'firefox', 'webkit', 'selectors')

    def browser_type(self, name):
        found = self.get(name)

        if found is None:
            raise ValueError('unknown browser type: ' + repr(name))

        return found


# end of class Engine



@register('BrowserType')
class BrowserType(ChannelOwner):

    properties = ('name', 'executable_path')

    def launch(self, timeout=None, **options):
        result = self.post('launch', options, timeout=timeout)
        return result['browser']


# end of class BrowserType



@register('Browser')
class Browser(ChannelOwner):

    properties = ('name', 'version')

    def is_connected(self):
        """ Return True if the browser is still known to the session. The
            short lookup timeout makes this a liveness check rather than a
            wait.
        """

        try:
            self.session.find(self.guid, timeout=100)
        except NotFound:
            return False

        return True


    def contexts(self):
        return self.session.list(self, 'BrowserContext')


    def new_context(self, **options):
        result = self.post('new_context', options)
        return result['context']


    def new_page(self, **options):
        """ Create a page in a context of its own. The context exists only
            to hold the page; the two are linked so that closing the page
            also closes the context.
        """

        context = self.new_context(**options)
        page = context.new_page()

        self.session.patch(context, {'owner_page': page})
        self.session.patch(page, {'owned_context': context})

        return page


    def close(self):

        try:
            self.session.find(self.guid, timeout=10)
        except NotFound:
            return

        self.post('close')


# end of class Browser



@register('BrowserContext')
class BrowserContext(ChannelOwner):

    def new_page(self):
        result = self.post('new_page')
        return result['page']


    def pages(self):
        return self.session.list(self, 'Page')


    @property
    def browser(self):
        parent = self.parent
        if parent is not None and parent.type == 'Browser':
            return parent
        return None


    def close(self):

        try:
            self.session.find(self.guid, timeout=10)
        except NotFound:
            return

        self.post('close')


# end of class BrowserContext



class Locator:
    """ A client-side description of how to find elements on a page; no
        remote object backs it.
    """

    def __init__(self, page, selector):
        self.page = page
        self.selector = selector


    def __repr__(self):
        return "Locator(%s, %s)" % (repr(self.page), repr(self.selector))


    def __eq__(self, other):
        if not isinstance(other, Locator):
            return NotImplemented
        return self.page is other.page and self.selector == other.selector


    def __hash__(self):
        return hash((id(self.page), self.selector))


    def locator(self, selector):
        return Locator(self.page, self.selector + ' >> ' + selector)


# end of class Locator



@register('Page')
class Page(ChannelOwner):
    """ A browser tab. Its route handlers live in :attr:`routes`; its
        locator handlers live in the session-wide registry, keyed by this
        page's guid.
    """

    properties = ('main_frame', 'viewport_size', 'is_closed', 'opener')

    def init(self):

        self.routes = RouteChain()
        self.bindings = dict()

        self.on('close', self._on_close)
        self.on('binding_call', self._on_binding)
        self.on('route', self._on_route)
        self.on('viewport_size_changed', self._on_viewport_size)
        self.on('locator_handler_triggered', self._on_locator_handler)

        frame = self.main_frame
        if isinstance(frame, ChannelOwner):
            self.session.patch(frame, {'page': self})


    def _on_close(self, event):
        self.session.patch(self, {'is_closed': True})
        self.session.locator_handlers.cleanup(self.guid)


    def _on_viewport_size(self, event):
        self.session.patch(self, {'viewport_size': event.get('viewportSize')})


    def _on_route(self, event):
        self.session.run_handler(routing.dispatch, self.routes, event['route'], self._update_interception)


    def _on_binding(self, event):

        binding = event['binding']

        try:
            callback = self.bindings[binding.name]
        except KeyError:
            logger.warning("no binding named {} on {}", binding.name, self)
            return

        self.session.run_handler(binding.call, callback)


    def _on_locator_handler(self, event):
        self.session.locator_handlers.trigger(self.guid, event['uid'])


    def _update_interception(self):
        self.post('set_network_interception_patterns', {'patterns': self.routes.patterns()})


    def is_closed(self):
        return bool(self._state.get('is_closed'))


    @property
    def context(self):
        return self.parent


    @property
    def url(self):
        return self.main_frame.url


    def frames(self):
        return self.session.list(self, 'Frame')


    def goto(self, url, **options):
        return self.main_frame.goto(url, **options)


    def locator(self, selector):
        return Locator(self, selector)


    def route(self, pattern, handler, times=None):
        """ Intercept requests whose URL matches *pattern*. The newest
            handler matching a request is the only one that sees it.
        """

        matcher = URLMatcher(pattern)
        self.routes.add(RouteHandler(matcher, handler, times))
        self._update_interception()


    def unroute(self, pattern, handler=None):
        removed = self.routes.remove(pattern, handler)
        self._update_interception()
        return removed


    def add_locator_handler(self, locator, handler, times=None, no_wait_after=False):

        if isinstance(locator, str):
            locator = self.locator(locator)

        registry = self.session.locator_handlers
        return registry.register(self, locator.selector, handler, times, no_wait_after, locator)


    def remove_locator_handler(self, locator):

        if isinstance(locator, Locator):
            locator = locator.selector

        return self.session.locator_handlers.remove(self, locator)


    def expose_binding(self, name, callback):
        """ Make *callback* callable from the page as ``window[name]``. It is
            invoked with a source dictionary and the call's arguments.
        """

        self.bindings[name] = callback

        params = dict()
        params['name'] = name
        params['needs_handle'] = False
        self.post('expose_binding', params)


    def expect_event(self, event, predicate=None, timeout=None):
        return self.session.expect(self, event, predicate, timeout)


    def close(self, run_before_unload=False):
        """ Close the page; closing an already closed page does nothing. A
            context created solely for this page is closed with it.
        """

        try:
            latest = self.session.find(self.guid, timeout=10)
        except NotFound:
            return

        self.post('close', {'run_before_unload': run_before_unload})

        owned = latest.get('owned_context')
        if owned is not None:
            owned.close()


# end of class Page



@register('Frame')
class Frame(ChannelOwner):

    properties = ('url', 'name', 'load_states', 'parent_frame')

    def init(self):

        if self._state.get('load_states') is None:
            self._state['load_states'] = list()

        self.on('navigated', self._on_navigated)
        self.on('loadstate', self._on_loadstate)


    def _on_navigated(self, event):

        if event.get('error'):
            return

        self.session.patch(self, {'url': event.get('url'), 'name': event.get('name')})


    def _on_loadstate(self, event):

        states = list(self.load_states)
        added = event.get('add')
        removed = event.get('remove')

        if added is not None and added not in states:
            states.append(added)
        if removed is not None and removed in states:
            states.remove(removed)

        self.session.patch(self, {'load_states': states})


    def goto(self, url, timeout=None, **options):

        params = dict(options)
        params['url'] = url

        result = self.post('goto', params, timeout=timeout)

        if isinstance(result, dict):
            return result.get('response')

        return None


    def wait_for_navigation(self, timeout=None, predicate=None, trigger=None):
        return self.wait_for_event('navigated', timeout, predicate, trigger)


# end of class Frame



@register('Request')
class Request(ChannelOwner):

    properties = ('url', 'method', 'headers', 'resource_type', 'post_data', 'is_navigation_request')

    def header_value(self, name):

        name = name.lower()

        for header in self.headers or ():
            if header['name'].lower() == name:
                return header['value']

        return None


# end of class Request



@register('Response')
class Response(ChannelOwner):

    properties = ('url', 'status', 'status_text', 'headers', 'request')

    @property
    def ok(self):
        return self.status == 0 or 200 <= self.status <= 299


# end of class Response



@register('Route')
class Route(ChannelOwner):

    properties = ('request',)

    def abort(self, error_code=None):

        params = dict()
        if error_code is not None:
            params['error_code'] = error_code

        self.post('abort', params)


    def continue_(self, url=None, method=None, headers=None, post_data=None):

        params = dict()
        params['is_fallback'] = False
        params['request_url'] = self.request.url

        if url is not None:
            params['url'] = url
        if method is not None:
            params['method'] = method
        if headers is not None:
            params['headers'] = _serialize_headers(headers)
        if post_data is not None:
            if isinstance(post_data, str):
                post_data = post_data.encode('utf-8')
            params['post_data'] = base64.b64encode(post_data).decode('ascii')

        self.post('continue', params)


    def fulfill(self, status=200, body='', headers=None, content_type=None):

        if isinstance(body, str):
            length = len(body.encode('utf-8'))
            is_base64 = False
        else:
            length = len(body)
            body = base64.b64encode(body).decode('ascii')
            is_base64 = True

        merged = dict()
        if headers is not None:
            for name, value in headers.items():
                merged[name.lower()] = value
        if content_type is not None:
            merged['content-type'] = content_type
        merged['content-length'] = str(length)

        params = dict()
        params['status'] = status
        params['body'] = body
        params['is_base64'] = is_base64
        params['length'] = length
        params['request_url'] = self.request.url
        params['headers'] = _serialize_headers(merged)

        self.post('fulfill', params)


# end of class Route



@register('BindingCall')
class BindingCall(ChannelOwner):

    properties = ('name', 'args', 'frame')

    def call(self, callback):
        """ Invoke *callback* for this call and report the outcome to the
            engine. Runs on a handler worker.
        """

        frame = self.frame
        source = dict()
        source['frame'] = frame
        source['page'] = frame.get('page') if isinstance(frame, ChannelOwner) else None

        try:
            arguments = [values.parse(argument) for argument in self.args or ()]
            result = callback(source, *arguments)
        except Exception as error:
            failure = dict()
            failure['name'] = type(error).__name__
            failure['message'] = str(error)
            self.post('reject', {'error': {'error': failure}})
            return

        self.post('resolve', {'result': {'value': values.serialize(result), 'handles': []}})


# end of class BindingCall



@register('Dialog')
class Dialog(ChannelOwner):

    properties = ('message', 'type', 'default_value')

    @property
    def dialog_type(self):
        # The cached 'type' is shadowed by the wire type name.
        return self._state.get('type')


    @property
    def page(self):
        parent = self.parent
        if parent is not None and parent.type == 'Page':
            return parent
        return None


    def accept(self, prompt_text=None):

        params = dict()
        if prompt_text is not None:
            params['prompt_text'] = prompt_text

        self.post('accept', params)


    def dismiss(self):
        self.post('dismiss')


# end of class Dialog



@register('Artifact')
class Artifact(ChannelOwner):

    properties = ('absolute_path',)

    def path_after_finished(self):
        result = self.post('path_after_finished')
        return result.get('value')


    def save_as(self, path):
        self.post('save_as', {'path': str(path)})


    def failure(self):
        result = self.post('failure')
        return result.get('error')


    def cancel(self):
        self.post('cancel')


    def delete(self):
        self.post('delete')


# end of class Artifact


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
