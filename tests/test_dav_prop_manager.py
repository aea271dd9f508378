# (c) 2009-2024 Martin Wendt and contributors; see WsgiDAV https://github.com/mar10/wsgidav
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""Unit test for dav_prop_manager.py"""

import unittest

from davprops import xml_tools
from davprops.dav_prop_manager import (
    ENVIRON_BACKEND_KEY,
    ENVIRON_USER_KEY,
    DavPropertyManager,
)
from davprops.value_codec import ComplexXml
from tests.util import AVAILABILITY, COLOR, NS, count_rows, make_factory

LIST = f"{{{NS}}}list"
XML_LANG = "{http://www.w3.org/XML/1998/namespace}lang"

# ========================================================================
# BasicTest
# ========================================================================


class BasicTest(unittest.TestCase):
    """Test dav_prop_manager.DavPropertyManager()."""

    url = "/files/joe/doc.txt"

    def setUp(self):
        self.factory = make_factory()
        self.pm = DavPropertyManager(self.factory)

    def tearDown(self):
        self.factory.close()
        self.pm = None

    def _environ(self, user="joe"):
        return {ENVIRON_USER_KEY: user}

    def testPreconditions(self):
        """Environment must be set."""
        self.assertTrue(
            __debug__, "__debug__ must be True, otherwise asserts are ignored"
        )

    def testValidation(self):
        """Property manager should raise errors on bad args."""
        pm = self.pm
        self.assertRaises(
            AssertionError, pm.write_property, None, COLOR, "hurz", False
        )
        self.assertRaises(
            AssertionError, pm.write_property, self.url, None, "hurz", False
        )
        self.assertRaises(
            AssertionError, pm.write_property, self.url, COLOR, None, False
        )
        assert count_rows(self.factory) == 0, "No properties should have been created"

    def testReadWrite(self):
        pm = self.pm
        env = self._environ()
        pm.write_property(
            self.url, COLOR, f'<color xmlns="{NS}">red</color>', environ=env
        )
        assert pm.get_properties(self.url, environ=env) == [COLOR]

        el = xml_tools.string_to_xml(pm.get_property(self.url, COLOR, environ=env))
        assert el.tag == COLOR
        assert el.text == "red"

        # Stored as plain string
        backend = env[ENVIRON_BACKEND_KEY]
        assert backend.owner == "joe"
        assert backend.store.lookup_owner("files/joe/doc.txt") == {COLOR: "red"}

        # Other users don't see it
        assert pm.get_property(self.url, COLOR, environ=self._environ("bob")) is None
        assert pm.get_properties(self.url) == []

        pm.remove_property(self.url, COLOR, environ=env)
        assert pm.get_property(self.url, COLOR, environ=env) is None
        # Removing again is not an error
        pm.remove_property(self.url, COLOR, environ=env)

    def testComplexValues(self):
        pm = self.pm
        env = self._environ()
        pm.write_property(
            self.url,
            LIST,
            f'<list xmlns="{NS}">head<item>a</item><item>b</item></list>',
            environ=env,
        )
        value = env[ENVIRON_BACKEND_KEY].store.lookup_owner("files/joe/doc.txt")[LIST]
        assert isinstance(value, ComplexXml)

        el = xml_tools.string_to_xml(pm.get_property(self.url, LIST, environ=env))
        assert el.tag == LIST
        assert el.text == "head"
        assert [child.tag for child in el] == [f"{{{NS}}}item", f"{{{NS}}}item"]
        assert [child.text for child in el] == ["a", "b"]

    def testAttributes(self):
        """Attributes of the property element (e.g. xml:lang) are kept."""
        pm = self.pm
        env = self._environ()
        pm.write_property(
            self.url,
            COLOR,
            f'<color xmlns="{NS}" xml:lang="en">red</color>',
            environ=env,
        )
        store = env[ENVIRON_BACKEND_KEY].store
        assert isinstance(store.lookup_owner("files/joe/doc.txt")[COLOR], ComplexXml)

        el = xml_tools.string_to_xml(pm.get_property(self.url, COLOR, environ=env))
        assert el.tag == COLOR
        assert el.get(XML_LANG) == "en"
        assert el.text == "red"

        pm.write_property(
            self.url,
            LIST,
            f'<list xmlns="{NS}" xml:lang="de"><item>a</item></list>',
            environ=env,
        )
        el = xml_tools.string_to_xml(pm.get_property(self.url, LIST, environ=env))
        assert el.get(XML_LANG) == "de"
        assert [child.text for child in el] == ["a"]

    def testNestedSameName(self):
        """A single child with the property's own name is not unwrapped."""
        pm = self.pm
        env = self._environ()
        pm.write_property(
            self.url,
            LIST,
            f'<list xmlns="{NS}"><list kind="inner">x</list></list>',
            environ=env,
        )
        el = xml_tools.string_to_xml(pm.get_property(self.url, LIST, environ=env))
        assert el.tag == LIST
        assert el.get("kind") is None
        assert len(el) == 1
        assert el[0].tag == LIST
        assert el[0].get("kind") == "inner"
        assert el[0].text == "x"

    def testPublishedNames(self):
        """Published properties of other users are listed and readable."""
        pm = self.pm
        url = "/calendars/joe/personal/"
        xml = (
            '<calendar-availability xmlns="urn:ietf:params:xml:ns:caldav">'
            "busy</calendar-availability>"
        )
        pm.write_property(url, AVAILABILITY, xml, environ=self._environ())
        pm.write_property(
            url, COLOR, f'<color xmlns="{NS}">red</color>', environ=self._environ()
        )

        env = self._environ("bob")
        assert pm.get_properties(url, environ=env) == [AVAILABILITY]
        el = xml_tools.string_to_xml(pm.get_property(url, AVAILABILITY, environ=env))
        assert el.text == "busy"
        assert pm.get_property(url, COLOR, environ=env) is None

        names = pm.get_properties(url, environ=self._environ())
        assert sorted(names) == sorted([AVAILABILITY, COLOR])

    def testDryRun(self):
        pm = self.pm
        env = self._environ()
        pm.write_property(
            self.url, COLOR, f'<color xmlns="{NS}">red</color>', True, environ=env
        )
        assert count_rows(self.factory) == 0
        pm.remove_property(self.url, COLOR, dry_run=True, environ=env)

    def testCopyMoveDelete(self):
        pm = self.pm
        env = self._environ()
        xml = f'<color xmlns="{NS}">red</color>'
        pm.write_property("/files/a/", COLOR, xml, environ=env)
        pm.write_property("/files/a/x.txt", COLOR, xml, environ=env)

        pm.copy_properties("/files/a/", "/files/b/", environ=env)
        assert pm.get_properties("/files/b", environ=env) == [COLOR]

        pm.move_properties("/files/a/", "/files/c/", True, environ=env)
        assert pm.get_properties("/files/a/", environ=env) == []
        assert pm.get_properties("/files/c/", environ=env) == [COLOR]
        assert pm.get_properties("/files/c/x.txt", environ=env) == [COLOR]

        pm.remove_properties("/files/c/", environ=env)
        assert pm.get_properties("/files/c/", environ=env) == []
        assert count_rows(self.factory) == 2

    def testAnonymous(self):
        pm = self.pm
        env = {}
        pm.write_property(self.url, COLOR, f'<color xmlns="{NS}">x</color>', environ=env)
        assert env[ENVIRON_BACKEND_KEY].owner == "anonymous"
        assert count_rows(self.factory, userid="anonymous") == 1


if __name__ == "__main__":
    unittest.main()
