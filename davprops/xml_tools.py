# (c) 2009-2024 Martin Wendt and contributors; see WsgiDAV https://github.com/mar10/wsgidav
# Original PyFileServer (c) 2005 Ho Chun Wei.
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""
Small wrapper for different etree packages.
"""
import logging
from xml.sax.saxutils import escape

from davprops import util

__docformat__ = "reStructuredText"

_logger = logging.getLogger("davprops")

# Import XML support
use_lxml = False
try:
    # lxml with safe defaults
    from defusedxml.lxml import _etree as etree

    use_lxml = True
except ImportError:
    # Try xml module with safe defaults
    from xml.etree.ElementTree import Element, tostring

    from defusedxml import ElementTree as etree

    # defusedxml doesn't define these non-parsing related objects
    etree.Element = Element
    etree.tostring = tostring


# ========================================================================
# XML
# ========================================================================


def string_to_xml(text):
    """Convert XML string into etree.Element."""
    try:
        return etree.XML(text)
    except Exception:
        if use_lxml:
            _logger.error("Error parsing XML string.")
        else:
            _logger.error(
                "Error parsing XML string. "
                "If unicode is involved, then installing lxml _may_ solve this issue."
            )
        _logger.error(f"XML source: {text}")
        raise


def xml_to_str(element):
    """Serialize an etree.Element without XML declaration."""
    return util.to_str(etree.tostring(element, encoding="unicode"))


def make_prop_el(name, text=None):
    """Return a property element named `name` (Clark notation) with text content."""
    el = etree.Element(name)
    if text is not None:
        el.text = text
    return el


def element_content_as_string(element):
    """Serialize the content (text and child elements) of etree.Element.

    Note: element may contain more than one child or only text (i.e. no child
          at all). Therefore the resulting string may raise an exception, when
          passed back to etree.XML().
    """
    if len(element) == 0:
        return element.text or ""  # Make sure, None is returned as ''
    parts = [escape(element.text)] if element.text else []
    for childnode in element:
        # Note: serialization includes the child's tail
        parts.append(xml_to_str(childnode))
    return "".join(parts)


def set_element_content(element, content):
    """Replace text and children of `element` by the XML fragment `content`."""
    wrapper = string_to_xml(f"<fragment>{content}</fragment>")
    element.text = wrapper.text
    for childnode in list(wrapper):
        element.append(childnode)
    return element
