''' Wrapper module around :mod:`orjson` providing the equivalent of
    :func:`json.loads` and :func:`json.dumps`. Everything on the wire is
    UTF-8 encoded JSON, so :func:`dumps` returns bytes.
'''

import orjson

from .errors import DecodeError, EncodeError


# Non-string dictionary keys are legal in Python but not in JSON; they get
# translated to strings upon encoding, the same as the standard library does.

_options = orjson.OPT_NON_STR_KEYS


def dumps(value):
    """ Return the UTF-8 encoded JSON representation of *value* as bytes.
        Raises :class:`coyote.errors.EncodeError` if *value* has no JSON
        representation.
    """

    try:
        return orjson.dumps(value, option=_options)
    except orjson.JSONEncodeError as error:
        raise EncodeError('cannot encode as JSON: ' + str(error), value) from error


def loads(encoded):
    """ Decode a single JSON value from *encoded*, which may be bytes or str.
        Raises :class:`coyote.errors.DecodeError` if the input is not valid
        JSON.
    """

    try:
        return orjson.loads(encoded)
    except orjson.JSONDecodeError as error:
        raise DecodeError('invalid JSON chunk: ' + str(error), encoded) from error


# vim: set expandtab tabstop=8 softtabstop=4 shiftwidth=4 autoindent:
