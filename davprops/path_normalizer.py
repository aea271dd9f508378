# (c) 2009-2024 Martin Wendt and contributors; see WsgiDAV https://github.com/mar10/wsgidav
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""
Map resource paths to storage keys.

The ``propertypath`` column has a bounded width, so paths longer than
:data:`MAX_PATH_LENGTH` are replaced by their SHA-1 hex digest (40 chars).
Two different over-length paths could collide in theory; we accept that.
"""

from hashlib import sha1

from davprops import util

__docformat__ = "reStructuredText"

#: Paths longer than this are stored as hash
MAX_PATH_LENGTH = 250


def normalize_path(path: str, max_length: int = MAX_PATH_LENGTH) -> str:
    """Return the storage key for `path`.

    Paths of up to `max_length` characters are returned unchanged, longer ones
    are hashed.
    """
    assert util.is_str(path), f"Expected str path: {path!r}"
    if len(path) > max_length:
        return sha1(util.to_bytes(path)).hexdigest()
    return path
