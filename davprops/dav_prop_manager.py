# (c) 2009-2024 Martin Wendt and contributors; see WsgiDAV https://github.com/mar10/wsgidav
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""
Implements a WsgiDAV compatible property manager, that stores dead properties
per user in a :class:`~davprops.custom_properties.PropertyBackendFactory`.

Usage: add this lines to the WsgiDAV configuration::

    from davprops.custom_properties import PropertyBackendFactory
    from davprops.dav_prop_manager import DavPropertyManager

    factory = PropertyBackendFactory({"property_storage": {"url": "sqlite:///props.db"}})
    config["property_manager"] = DavPropertyManager(factory)

The acting user is read from ``environ["wsgidav.auth.user_name"]``. One
backend (and so one request cache) is created per request and kept in
``environ["davprops.backend"]``.

Property values cross the interface as XML strings of the property element.
Elements that only contain text are stored as strings, all others as XML
fragments of their content. Elements that carry attributes (e.g. ``xml:lang``)
are stored as a fragment of the whole element, so the attributes survive.
"""

from davprops import util, xml_tools
from davprops.value_codec import ComplexXml

__docformat__ = "reStructuredText"

_logger = util.get_module_logger(__name__)

ENVIRON_BACKEND_KEY = "davprops.backend"
ENVIRON_USER_KEY = "wsgidav.auth.user_name"


def _to_path(norm_url):
    """Return the tree path for a WsgiDAV ref-url ('/a/b/' -> 'a/b')."""
    return norm_url.strip("/")


def _is_whole_element(value, name):
    """Return True if `value` holds the property element itself, not its content."""
    try:
        el = xml_tools.etree.XML(value.xml)
    except Exception:
        # Mixed content or several children: not a single element
        return False
    return el.tag == name


def _element_to_value(element):
    if element.attrib:
        return ComplexXml(xml_tools.xml_to_str(element))
    if len(element) == 0:
        return element.text or ""
    value = ComplexXml(xml_tools.element_content_as_string(element))
    if _is_whole_element(value, element.tag):
        # Content would read back as the element itself
        return ComplexXml(xml_tools.xml_to_str(element))
    return value


def _value_to_xml(name, value):
    if isinstance(value, ComplexXml) and _is_whole_element(value, name):
        return value.xml
    el = xml_tools.make_prop_el(name)
    if isinstance(value, ComplexXml):
        xml_tools.set_element_content(el, value.xml)
    else:
        el.text = util.to_str(value)
    return xml_tools.xml_to_str(el)


# ========================================================================
# DavPropertyManager
# ========================================================================
class DavPropertyManager:
    """Property manager that delegates to per-user property backends."""

    def __init__(self, factory, *, anonymous_user="anonymous"):
        self.factory = factory
        self.anonymous_user = anonymous_user

    def __repr__(self):
        return f"DavPropertyManager({self.factory!r})"

    def _get_backend(self, environ):
        if environ is None:
            return self.factory.for_user(self.anonymous_user)
        backend = environ.get(ENVIRON_BACKEND_KEY)
        if backend is None:
            user_name = environ.get(ENVIRON_USER_KEY) or self.anonymous_user
            backend = self.factory.for_user(user_name)
            environ[ENVIRON_BACKEND_KEY] = backend
        return backend

    def get_properties(self, norm_url, environ=None):
        _logger.debug(f"get_properties({norm_url})")
        backend = self._get_backend(environ)
        return backend.resolver.property_names(_to_path(norm_url))

    def get_property(self, norm_url, name, environ=None):
        _logger.debug(f"get_property({norm_url}, {name})")
        backend = self._get_backend(environ)
        props = backend.prop_find(_to_path(norm_url), [name])
        if name not in props:
            return None
        return _value_to_xml(name, props[name])

    def write_property(
        self, norm_url, name, property_value, dry_run=False, environ=None
    ):
        assert norm_url and norm_url.startswith("/")
        assert name
        assert property_value is not None

        _logger.debug(
            f"write_property({norm_url}, {name}, dry_run={dry_run}):\n\t{property_value}"
        )
        if dry_run:
            return

        element = xml_tools.string_to_xml(property_value)
        backend = self._get_backend(environ)
        backend.prop_patch(_to_path(norm_url), {name: _element_to_value(element)})

    def remove_property(self, norm_url, name, dry_run=False, environ=None):
        """
        Specifying the removal of a property that does not exist is NOT an error.
        """
        _logger.debug(f"remove_property({norm_url}, {name}, dry_run={dry_run})")
        if dry_run:
            return
        backend = self._get_backend(environ)
        backend.prop_patch(_to_path(norm_url), {name: None})

    def remove_properties(self, norm_url, environ=None):
        _logger.debug(f"remove_properties({norm_url})")
        self._get_backend(environ).delete(_to_path(norm_url))

    def copy_properties(self, src_url, dest_url, environ=None):
        _logger.debug(f"copy_properties({src_url}, {dest_url})")
        self._get_backend(environ).copy(_to_path(src_url), _to_path(dest_url))

    def move_properties(self, src_url, dest_url, with_children, environ=None):
        _logger.debug(f"move_properties({src_url}, {dest_url}, {with_children})")
        self._get_backend(environ).move(
            _to_path(src_url), _to_path(dest_url), with_children=with_children
        )
