import json
import pytest

import coyote


def test_dumps_is_utf8_bytes():

    encoded = coyote.json.dumps('Yum!')
    assert isinstance(encoded, bytes)
    assert encoded == b'"Yum!"'

    encoded = coyote.json.dumps({'name': 'café'})
    assert json.loads(encoded.decode('utf-8')) == {'name': 'café'}


def test_encode_and_decode():

    input_dictionary = dict()
    input_dictionary['list'] = [1, 2, 3, 'a', 'b', None, 'c', 'z']
    input_dictionary['dict'] = {1: 'one', 'two': 2}
    input_dictionary['none'] = None
    input_dictionary['true'] = True
    input_dictionary['false'] = False

    encoded = coyote.json.dumps(input_dictionary)
    decoded = coyote.json.loads(encoded)
    assert isinstance(decoded, dict)

    # JSON will not use bare integers as dictionary keys, they get translated
    # to strings upon encoding. The decoding step has no way to know that the
    # original input was an integer.

    assert decoded != input_dictionary

    del decoded['dict']['1']
    decoded['dict'][1] = 'one'
    assert decoded == input_dictionary


def test_loads_accepts_str():
    assert coyote.json.loads('[1, 2]') == [1, 2]


def test_invalid_chunk():

    with pytest.raises(coyote.DecodeError) as caught:
        coyote.json.loads(b'{not json')

    assert caught.value.chunk == b'{not json'
    assert isinstance(caught.value, ValueError)


def test_unencodable_value():

    value = {'eggs': {1, 2}}

    with pytest.raises(coyote.EncodeError) as caught:
        coyote.json.dumps(value)

    assert caught.value.value is value
    assert isinstance(caught.value, TypeError)


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
