# (c) 2009-2024 Martin Wendt and contributors; see WsgiDAV https://github.com/mar10/wsgidav
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""
Combine published properties of other users with the acting user's own.
"""

from davprops import util

__docformat__ = "reStructuredText"

_logger = util.get_module_logger(__name__)


class VisibilityResolver:
    """Merge published and owned property values for one store.

    First the published properties (set by any user) are collected, then the
    ones set by the store's owner. If both define a name, the owner's value
    wins.
    """

    def __init__(self, store):
        self.store = store

    def __repr__(self):
        return f"VisibilityResolver({self.store!r})"

    def resolve(self, path, names):
        """Return {name: value} for the requested `names` at `path`."""
        names = list(names)
        res = {}
        res.update(self.store.lookup_published(path, names))
        res.update(self.store.lookup_owner(path, names))
        _logger.debug(f"resolve({path!r}): {sorted(res)}")
        return res

    def property_names(self, path):
        """Return the names of the owner's properties at `path`, followed by
        the published ones of other users."""
        return util.unique_list(
            self.store.get_property_names(path) + self.store.get_published_names(path)
        )
