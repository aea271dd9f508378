# (c) 2009-2024 Martin Wendt and contributors; see WsgiDAV https://github.com/mar10/wsgidav
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""
Implements the error classes that are used to signal property storage errors.
"""

__docformat__ = "reStructuredText"


# ========================================================================
# PropertyStoreError
# ========================================================================


class PropertyStoreError(Exception):
    """General error class that is used to signal property storage errors."""

    def __init__(self, context_info=None, src_exception=None):
        super().__init__(context_info)
        self.context_info = context_info
        self.src_exception = src_exception

    def __repr__(self):
        return f"{self.__class__.__name__}({self.get_user_info()})"

    def __str__(self):
        return self.__repr__()

    def get_user_info(self):
        """Return readable string."""
        s = "{}".format(self.context_info or "Property storage error")
        if self.src_exception:
            s += "\n    Source exception: '{}'".format(self.src_exception)
        return s


class DecodeError(PropertyStoreError):
    """A stored value does not match its declared value kind."""


class StorageError(PropertyStoreError):
    """The underlying database engine failed."""


def as_storage_error(e, context_info=None):
    """Convert any non-StorageError exception to StorageError."""
    if isinstance(e, StorageError):
        return e
    elif isinstance(e, Exception):
        return StorageError(context_info, src_exception=e)
    else:
        return StorageError("{}".format(e))
