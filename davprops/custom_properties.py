# (c) 2009-2024 Martin Wendt and contributors; see WsgiDAV https://github.com/mar10/wsgidav
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""
Custom (dead) property backend for a WebDAV resource tree.

On init:

    :class:`PropertyBackendFactory` uses the configuration dictionary to
    create the database engine and the properties table.

For every request:

    ``factory.for_user(user_id)`` returns a :class:`CustomPropertiesBackend`
    that is bound to the authenticated user and owns a fresh request cache.

    The protocol layer then calls

        ``prop_find(path, requested, all_requested)``
            on PROPFIND, with the property names it could not resolve itself.
        ``prop_patch(path, changes)``
            on PROPPATCH, with a dict {name: value or None}.
        ``delete(path)``
            after a resource was deleted.
        ``move(source, destination)``
            after a resource was moved.

Example::

    factory = PropertyBackendFactory({"property_storage": {"url": "sqlite:///props.db"}})
    backend = factory.for_user("joe")
    backend.prop_patch("files/joe/doc.txt", {"{http://example.com/}color": "red"})
    backend.prop_find("files/joe/doc.txt", ["{http://example.com/}color"])
"""

import copy

from davprops import util
from davprops.default_conf import DEFAULT_CONFIG
from davprops.prop_filter import PropertyFilter
from davprops.property_store import PropertyStore
from davprops.storage import create_property_engine, init_schema, make_properties_table
from davprops.visibility import VisibilityResolver

__docformat__ = "reStructuredText"

_logger = util.get_module_logger(__name__)


def _check_config(config):
    errors = []

    msg = util.describe_unknown_keys(
        [k for k in config if not k.startswith("_")], DEFAULT_CONFIG
    )
    if msg:
        errors.append(msg)

    for section in ("logging", "property_storage"):
        msg = util.describe_unknown_keys(
            util.get_section(config, section), DEFAULT_CONFIG[section], section
        )
        if msg:
            errors.append(msg)

    max_path_length = config.get("max_path_length")
    if not isinstance(max_path_length, int) or max_path_length < 1:
        errors.append(f"Invalid option 'max_path_length': {max_path_length!r}.")

    if errors:
        raise ValueError("Invalid configuration:\n  - " + "\n  - ".join(errors))

    return True


# ========================================================================
# CustomPropertiesBackend
# ========================================================================
class CustomPropertiesBackend:
    """Property backend for one request, bound to one user."""

    def __init__(self, store, prop_filter=None):
        self.store = store
        self.prop_filter = prop_filter or PropertyFilter()
        self.resolver = VisibilityResolver(store)

    def __repr__(self):
        return f"CustomPropertiesBackend({self.store.owner!r})"

    @property
    def owner(self):
        return self.store.owner

    def prop_find(self, path, requested, all_requested=None):
        """Return {name: value} for properties stored at `path`.

        Args:
            path (str): resource path
            requested (iterable): names the resource tree could not resolve
            all_requested (iterable): all names the client asked for
        """
        names = self.prop_filter.filter_requested(path, requested, all_requested)
        if not names:
            return {}
        return self.resolver.resolve(path, names)

    def prop_patch(self, path, changes):
        """Apply {name: value or None} to `path`, return True on success."""
        return self.store.apply_changes(path, changes)

    def delete(self, path):
        """Called after the resource at `path` was deleted."""
        self.store.delete_path(path)

    def move(self, source, destination, with_children=False):
        """Called after the resource at `source` was moved to `destination`."""
        self.store.move_path(source, destination, with_children=with_children)

    def copy(self, source, destination):
        """Called after the resource at `source` was copied to `destination`."""
        self.store.copy_path(source, destination)


# ========================================================================
# PropertyBackendFactory
# ========================================================================
class PropertyBackendFactory:
    """Create per-request property backends that share one database engine.

    Args:
        config (dict): options, merged over ``DEFAULT_CONFIG``
        engine (sqlalchemy.engine.Engine): use this engine instead of
            creating one from ``config["property_storage"]["url"]``
    """

    def __init__(self, config=None, *, engine=None, prop_filter=None):
        self.config = copy.deepcopy(DEFAULT_CONFIG)
        util.deep_update(self.config, config or {})
        _check_config(self.config)

        if self.config["logging"].get("enable"):
            util.init_logging(self.config)

        storage_opts = self.config["property_storage"]
        self.engine = (
            engine if engine is not None else create_property_engine(self.config)
        )
        self.table = make_properties_table(storage_opts["table_name"])
        self.max_path_length = self.config["max_path_length"]
        self.prop_filter = prop_filter or PropertyFilter()
        if storage_opts.get("create_schema"):
            init_schema(self.engine, self.table)

    def __repr__(self):
        return f"PropertyBackendFactory({self.engine.url!r}, {self.table.name!r})"

    def create_store(self, user_id):
        return PropertyStore(
            self.engine,
            user_id,
            table=self.table,
            max_path_length=self.max_path_length,
        )

    def for_user(self, user_id):
        """Return a new backend bound to `user_id`."""
        _logger.debug(f"for_user({user_id!r})")
        return CustomPropertiesBackend(
            self.create_store(user_id), prop_filter=self.prop_filter
        )

    def close(self):
        self.engine.dispose()
