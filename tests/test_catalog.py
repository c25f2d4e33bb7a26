import threading

import pytest

import driverlink
from driverlink.catalog import Catalog


class Thing(driverlink.ChannelOwner):
    properties = ('label', 'size_hint')


class Broken(driverlink.ChannelOwner):

    @property
    def label(self):
        return self.missing.label


class Fragile(driverlink.ChannelOwner):
    def init(self):
        raise RuntimeError('init hook failure')


def make_catalog():

    types = driverlink.registry.TypeRegistry()
    types.register('Thing', Thing)
    types.register('Fragile', Fragile)
    types.register('Broken', Broken)

    return Catalog(None, types)


def test_root_exists():

    catalog = make_catalog()

    assert catalog.get('') is catalog.root
    assert catalog.root.parent is None
    assert len(catalog) == 1


def test_create_and_lookup():

    catalog = make_catalog()
    thing = catalog.create('thing@1', 'Thing', '', {'label': 'first', 'sizeHint': 3})

    assert isinstance(thing, Thing)
    assert catalog.get('thing@1') is thing
    assert catalog.find('thing@1') is thing
    assert thing.label == 'first'
    assert thing.size_hint == 3
    assert thing.parent is catalog.root
    assert 'thing@1' in catalog


def test_property_errors_surface():

    catalog = make_catalog()
    broken = catalog.create('broken@1', 'Broken', '', {})

    with pytest.raises(AttributeError) as caught:
        broken.label

    assert 'missing' in str(caught.value)
    assert 'has no attribute \'label\'' not in str(caught.value)


def test_unknown_type():

    catalog = make_catalog()

    with pytest.raises(driverlink.UnknownType) as caught:
        catalog.create('widget@1', 'Widget', '', {})

    assert caught.value.type_name == 'Widget'
    assert 'widget@1' not in catalog


def test_guid_reuse_rejected():

    catalog = make_catalog()
    catalog.create('thing@1', 'Thing', '', {})

    with pytest.raises(driverlink.errors.ProtocolError):
        catalog.create('thing@1', 'Thing', '', {})

    catalog.dispose('thing@1')

    with pytest.raises(driverlink.errors.ProtocolError):
        catalog.create('thing@1', 'Thing', '', {})


def test_init_failure_still_registers():

    catalog = make_catalog()
    fragile = catalog.create('fragile@1', 'Fragile', '', {})

    assert catalog.get('fragile@1') is fragile


def test_list_in_creation_order():

    catalog = make_catalog()
    catalog.create('thing@b', 'Thing', '', {})
    catalog.create('thing@a', 'Thing', '', {})
    catalog.create('fragile@1', 'Fragile', '', {})
    catalog.create('thing@c', 'Thing', 'thing@a', {})

    listed = [proxy.guid for proxy in catalog.list('')]
    assert listed == ['thing@b', 'thing@a', 'fragile@1']

    listed = [proxy.guid for proxy in catalog.list('', 'Thing')]
    assert listed == ['thing@b', 'thing@a']

    listed = [proxy.guid for proxy in catalog.list('thing@a')]
    assert listed == ['thing@c']


def test_dispose_does_not_cascade():

    catalog = make_catalog()
    parent = catalog.create('thing@1', 'Thing', '', {})
    child = catalog.create('thing@2', 'Thing', 'thing@1', {})

    assert catalog.dispose('thing@1') is parent
    assert parent.is_disposed

    with pytest.raises(driverlink.NotFound) as caught:
        catalog.get('thing@1')
    assert caught.value.disposed == True

    # The child waits for a dispose of its own.

    assert catalog.get('thing@2') is child
    assert child.is_disposed == False
    assert child.parent is None

    assert catalog.dispose('thing@2') is child

    with pytest.raises(driverlink.NotFound) as caught:
        catalog.get('thing@2')
    assert caught.value.disposed == True

    # A disposed guid fails immediately, even with a timeout.

    with pytest.raises(driverlink.NotFound):
        catalog.find('thing@1', timeout=5000)

    assert catalog.dispose('thing@1') is None


def test_find_waits_for_creation():

    catalog = make_catalog()

    creator = threading.Timer(0.05, catalog.create, ('thing@late', 'Thing', '', {}))
    creator.start()

    found = catalog.find('thing@late', timeout=2000)
    assert found.guid == 'thing@late'

    creator.join()


def test_find_gives_up():

    catalog = make_catalog()

    with pytest.raises(driverlink.NotFound) as caught:
        catalog.find('thing@never', timeout=50)

    assert caught.value.disposed == False

    with pytest.raises(LookupError):
        catalog.find('thing@never')


def test_adopt():

    catalog = make_catalog()
    catalog.create('thing@1', 'Thing', '', {})
    catalog.create('thing@2', 'Thing', '', {})
    moved = catalog.create('thing@3', 'Thing', 'thing@1', {})

    catalog.adopt('thing@3', 'thing@2')

    assert moved.parent_guid == 'thing@2'
    assert catalog.list('thing@1') == list()

    with pytest.raises(driverlink.NotFound):
        catalog.adopt('thing@3', 'thing@missing')


def test_patch():

    catalog = make_catalog()
    thing = catalog.create('thing@1', 'Thing', '', {'label': 'before'})

    patched = catalog.patch('thing@1', {'label': 'after', 'isClosed': True})

    assert patched is thing
    assert thing.label == 'after'
    assert thing.is_closed == True

    with pytest.raises(driverlink.NotFound):
        catalog.patch('thing@missing', {'label': 'x'})


def test_resolve_references():

    catalog = make_catalog()
    thing = catalog.create('thing@1', 'Thing', '', {})

    resolved = catalog.resolve({'thing': {'guid': 'thing@1'}, 'list': [{'guid': 'thing@1'}], 'other': {'guid': 'thing@2'}, 'value': 4})

    assert resolved['thing'] is thing
    assert resolved['list'][0] is thing
    assert resolved['other'] == {'guid': 'thing@2'}
    assert resolved['value'] == 4

    # Initializers are resolved at creation time.

    child = catalog.create('thing@2', 'Thing', '', {'label': {'guid': 'thing@1'}})
    assert child.label is thing


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
