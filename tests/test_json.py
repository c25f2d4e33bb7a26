import json
import driverlink


def test_json_encode_and_decode():
    encode_and_decode(json.dumps, json.loads, dump_is_bytes=False)


def test_driverlink_encode_and_decode():
    encode_and_decode(driverlink.json.dumps, driverlink.json.loads)


def encode_and_decode(dumps, loads, dump_is_bytes=True):

    frame = dict()
    frame['id'] = 12
    frame['guid'] = 'page@3f1e'
    frame['method'] = 'goto'
    frame['params'] = {'url': 'https://example.com/', 'timeout': 30000, 'referer': None}
    frame['metadata'] = {'apiName': 'page.goto', 'internal': False}
    frame['headers'] = {1: 'one', 'two': 2}

    encoded = dumps(frame)

    if dump_is_bytes:
        assert isinstance(encoded, bytes)
    else:
        assert isinstance(encoded, str)

    decoded = loads(encoded)
    assert isinstance(decoded, dict)

    # Integer keys come back as strings; everything else survives intact.

    assert decoded != frame

    del decoded['headers']['1']
    decoded['headers'][1] = 'one'
    assert decoded == frame


def test_decode_error_is_value_error():

    try:
        driverlink.json.loads(b'{"id": ')
    except driverlink.json.JSONDecodeError as error:
        assert isinstance(error, ValueError)
    else:
        raise RuntimeError('expected a decode error for truncated input')


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
