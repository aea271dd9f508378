# (c) 2009-2024 Martin Wendt and contributors; see WsgiDAV https://github.com/mar10/wsgidav
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""Unit tests for davprops.path_normalizer"""

import unittest
from hashlib import sha1

from davprops.path_normalizer import MAX_PATH_LENGTH, normalize_path


class BasicTest(unittest.TestCase):
    def testPreconditions(self):
        """Environment must be set."""
        self.assertTrue(
            __debug__, "__debug__ must be True, otherwise asserts are ignored"
        )

    def testShortPaths(self):
        assert normalize_path("") == ""
        assert normalize_path("files/joe/doc.txt") == "files/joe/doc.txt"
        path = "a" * MAX_PATH_LENGTH
        assert normalize_path(path) == path

    def testLongPaths(self):
        path = "a" * (MAX_PATH_LENGTH + 1)
        key = normalize_path(path)
        assert key == sha1(path.encode("utf8")).hexdigest()
        assert len(key) == 40
        # Same input, same key
        assert normalize_path(path) == key

        # Differ only after the bound
        prefix = "files/joe/" + "x" * MAX_PATH_LENGTH
        key1 = normalize_path(prefix + "/one.txt")
        key2 = normalize_path(prefix + "/two.txt")
        assert key1 != key2
        assert normalize_path(prefix + "/one.txt") == key1

    def testUnicode(self):
        # The bound counts characters, not bytes
        path = "ä" * MAX_PATH_LENGTH
        assert normalize_path(path) == path
        assert normalize_path(path + "ä") == sha1((path + "ä").encode()).hexdigest()

    def testCustomBound(self):
        assert normalize_path("abc", 3) == "abc"
        assert normalize_path("abcd", 3) == sha1(b"abcd").hexdigest()

    def testValidation(self):
        self.assertRaises(AssertionError, normalize_path, None)
        self.assertRaises(AssertionError, normalize_path, b"files")


if __name__ == "__main__":
    unittest.main()
