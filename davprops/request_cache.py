# (c) 2009-2024 Martin Wendt and contributors; see WsgiDAV https://github.com/mar10/wsgidav
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""
Per-request memo of the current user's properties, keyed by resource path.

One cache lives as long as one :class:`~davprops.property_store.PropertyStore`,
i.e. one request. Writers must call :meth:`RequestCache.invalidate` for every
path they touch; entries are dropped, never patched.
"""

from davprops import util

__docformat__ = "reStructuredText"

_logger = util.get_module_logger(__name__)


class _Entry:
    __slots__ = ("props", "names")

    def __init__(self, props, names):
        self.props = props
        #: Names the query was restricted to, None for 'all properties'
        self.names = names


class RequestCache:
    """Map path -> {name: value} for properties fetched during this request."""

    def __init__(self):
        self._entries = {}
        self.hits = 0
        self.misses = 0

    def __repr__(self):
        return f"RequestCache({len(self._entries)} paths)"

    def __len__(self):
        return len(self._entries)

    def __contains__(self, path):
        return path in self._entries

    def get(self, path, names=None):
        """Return a copy of the cached properties for `path`, or None.

        `names` restricts the result to these property names (empty: all).
        An entry that was fetched for a subset of names only serves requests
        for names within that subset.
        """
        entry = self._entries.get(path)
        if entry is None:
            self.misses += 1
            return None
        if names:
            if entry.names is not None and not entry.names.issuperset(names):
                self.misses += 1
                return None
            self.hits += 1
            return {k: v for k, v in entry.props.items() if k in names}
        if entry.names is not None:
            self.misses += 1
            return None
        self.hits += 1
        return dict(entry.props)

    def put(self, path, props, names=None):
        """Store the result of a query for `path` (restricted to `names`)."""
        self._entries[path] = _Entry(dict(props), frozenset(names) if names else None)

    def invalidate(self, path):
        """Forget everything cached for `path`."""
        if self._entries.pop(path, None) is not None:
            _logger.debug(f"invalidate({path!r})")

    def invalidate_tree(self, path):
        """Forget `path` and all cached descendants of `path`."""
        prefix = path.rstrip("/") + "/"
        for key in list(self._entries.keys()):
            if key == path or key.startswith(prefix):
                self.invalidate(key)

    def clear(self):
        self._entries.clear()
