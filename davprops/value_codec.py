# (c) 2009-2024 Martin Wendt and contributors; see WsgiDAV https://github.com/mar10/wsgidav
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""
Encode property values for the database and decode them back.

Every stored value is a ``(payload, kind)`` pair. The payload is always text,
the kind tells how to read it:

``ValueKind.STRING``
    Scalars (str, bytes, int, float, bool), stored as their string form.
``ValueKind.XML_FRAGMENT``
    :class:`ComplexXml` values, stored as serialized XML.
``ValueKind.SERIALIZED_OBJECT``
    Anything else, stored as base64 encoded pickle.

Note that scalars come back as strings, e.g. ``42`` is read as ``"42"``.
"""

import base64
import binascii
import enum
import pickle

from davprops import util, xml_tools
from davprops.prop_error import DecodeError

__docformat__ = "reStructuredText"


class ValueKind(enum.IntEnum):
    """Discriminator stored in the ``valuetype`` column."""

    STRING = 1
    XML_FRAGMENT = 2
    SERIALIZED_OBJECT = 3


# ========================================================================
# ComplexXml
# ========================================================================


class ComplexXml:
    """A property value that is an XML fragment (for example a list of elements).

    The fragment is kept in its serialized form, so it can be written back
    unchanged.
    """

    def __init__(self, xml):
        self.xml = util.to_str(xml)

    def __repr__(self):
        return f"ComplexXml({self.xml!r})"

    def __eq__(self, other):
        if not isinstance(other, ComplexXml):
            return NotImplemented
        return self.xml == other.xml

    def __hash__(self):
        return hash(self.xml)

    def as_element(self):
        """Parse the fragment (must have exactly one root element)."""
        return xml_tools.string_to_xml(self.xml)

    def check_well_formed(self):
        """Raise an exception if the fragment is not well-formed XML."""
        xml_tools.etree.XML(f"<fragment>{self.xml}</fragment>")


# ========================================================================
# Encoding
# ========================================================================

_SCALAR_TYPES = (str, bytes, bool, int, float)


def encode_value(value):
    """Return a ``(payload, ValueKind)`` tuple for `value`."""
    if value is None:
        raise ValueError("None cannot be stored (it means 'remove property')")
    if isinstance(value, _SCALAR_TYPES):
        return util.to_str(value), ValueKind.STRING
    elif isinstance(value, ComplexXml):
        return value.xml, ValueKind.XML_FRAGMENT
    data = pickle.dumps(value, protocol=pickle.HIGHEST_PROTOCOL)
    return util.to_str(base64.b64encode(data), "ascii"), ValueKind.SERIALIZED_OBJECT


# ========================================================================
# Decoding
# ========================================================================


def _decode_string(payload):
    if payload is None:
        return ""
    return util.to_str(payload)


def _decode_xml(payload):
    if payload is None:
        raise DecodeError("Missing XML fragment")
    value = ComplexXml(payload)
    try:
        value.check_well_formed()
    except Exception as e:
        raise DecodeError("Stored XML fragment is not well-formed", src_exception=e)
    return value


def _decode_object(payload):
    if payload is None:
        raise DecodeError("Missing serialized object")
    try:
        data = base64.b64decode(util.to_bytes(payload), validate=True)
    except (binascii.Error, ValueError) as e:
        raise DecodeError("Stored object is not valid base64", src_exception=e)
    try:
        return pickle.loads(data)
    except Exception as e:
        raise DecodeError("Stored object cannot be unpickled", src_exception=e)


_DECODERS = {
    ValueKind.STRING: _decode_string,
    ValueKind.XML_FRAGMENT: _decode_xml,
    ValueKind.SERIALIZED_OBJECT: _decode_object,
}
assert set(_DECODERS) == set(ValueKind)


def decode_value(payload, kind):
    """Return the value that was stored as ``(payload, kind)``.

    Raises:
        DecodeError: the kind is unknown or the payload is malformed.
    """
    try:
        kind = ValueKind(kind)
    except ValueError as e:
        raise DecodeError(f"Unknown value kind {kind!r}", src_exception=e)
    return _DECODERS[kind](payload)
