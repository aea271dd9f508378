# (c) 2009-2024 Martin Wendt and contributors; see WsgiDAV https://github.com/mar10/wsgidav
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""
Decide which requested property names are looked up in the database.

Many properties are computed by the resource tree (size, etag, quota, ...).
Requests for them must never reach the property table, so they are removed
from the requested names.

Some collections store descriptive properties per user even though the
resource tree computes properties with the same names elsewhere. These are
re-added by :class:`CollectionRule` entries.
"""

import re

from davprops import util

__docformat__ = "reStructuredText"

_logger = util.get_module_logger(__name__)

#: Properties that are computed elsewhere and never read from storage
IGNORED_PROPERTIES = frozenset(
    (
        "{DAV:}getcontentlength",
        "{DAV:}getcontenttype",
        "{DAV:}getetag",
        "{DAV:}quota-used-bytes",
        "{DAV:}quota-available-bytes",
        "{http://owncloud.org/ns}permissions",
        "{http://owncloud.org/ns}downloadURL",
        "{http://owncloud.org/ns}dDC",
        "{http://owncloud.org/ns}size",
        "{http://nextcloud.org/ns}is-encrypted",
        # Rich workspace (text app)
        "{http://nextcloud.org/ns}rich-workspace",
        "{http://nextcloud.org/ns}rich-workspace-file",
        # Group folders
        "{http://nextcloud.org/ns}acl-enabled",
        "{http://nextcloud.org/ns}acl-can-manage",
        "{http://nextcloud.org/ns}acl-list",
        "{http://nextcloud.org/ns}inherited-acl-list",
        "{http://nextcloud.org/ns}group-folder-id",
        # File locking
        "{http://nextcloud.org/ns}lock",
        "{http://nextcloud.org/ns}lock-owner-type",
        "{http://nextcloud.org/ns}lock-owner",
        "{http://nextcloud.org/ns}lock-owner-displayname",
        "{http://nextcloud.org/ns}lock-owner-editor",
        "{http://nextcloud.org/ns}lock-time",
        "{http://nextcloud.org/ns}lock-timeout",
        "{http://nextcloud.org/ns}lock-token",
    )
)

#: Descriptive properties a user may store on a (shared) calendar
CALENDAR_SHARE_PROPERTIES = (
    "{DAV:}displayname",
    "{urn:ietf:params:xml:ns:caldav}calendar-description",
    "{urn:ietf:params:xml:ns:caldav}calendar-timezone",
    "{http://apple.com/ns/ical/}calendar-order",
    "{http://apple.com/ns/ical/}calendar-color",
    "{urn:ietf:params:xml:ns:caldav}schedule-calendar-transp",
)


class CollectionRule:
    """Re-include `names` for paths that match `pattern`.

    Args:
        pattern (str | re.Pattern): matched against the whole path
        names (iterable): property names to re-include, if requested
    """

    def __init__(self, pattern, names):
        if isinstance(pattern, str):
            pattern = re.compile(pattern)
        self.pattern = pattern
        self.names = tuple(names)

    def __repr__(self):
        return f"CollectionRule({self.pattern.pattern!r}, {len(self.names)} names)"

    def matches(self, path):
        return self.pattern.fullmatch(path) is not None


#: 'calendars/<user>/<calendar>[/]' is a calendar, not a calendar home or an event
DEFAULT_COLLECTION_RULES = (
    CollectionRule(r"calendars/[^/]+/[^/]+/?", CALENDAR_SHARE_PROPERTIES),
)


class PropertyFilter:
    """Strip computed property names from lookup requests."""

    def __init__(self, ignored=IGNORED_PROPERTIES, rules=DEFAULT_COLLECTION_RULES):
        self.ignored = frozenset(ignored)
        self.rules = tuple(rules)

    def __repr__(self):
        return f"PropertyFilter({len(self.ignored)} ignored, {self.rules})"

    def filter_requested(self, path, requested, all_requested=None):
        """Return the list of property names that must be looked up.

        Args:
            path (str): resource path
            requested (iterable): names that are still unresolved
            all_requested (iterable): all names the client asked for
                (defaults to `requested`)
        Returns:
            list of names (may be empty: then no lookup is necessary)
        """
        requested = list(requested)
        if all_requested is None:
            all_requested = requested
        res = [name for name in requested if name not in self.ignored]

        all_requested = set(all_requested)
        for rule in self.rules:
            if rule.matches(path):
                res.extend(name for name in rule.names if name in all_requested)

        res = util.unique_list(res)
        _logger.debug(f"filter_requested({path!r}): {res}")
        return res
