# (c) 2009-2024 Martin Wendt and contributors; see WsgiDAV https://github.com/mar10/wsgidav
# Original PyFileServer (c) 2005 Ho Chun Wei.
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""
Implements a property store, that keeps dead properties of one user in a
relational database (any engine supported by SQLAlchemy).

Properties are rows of one table (see :mod:`davprops.storage`)::

    (userid, propertypath, propertyname) -> (propertyvalue, valuetype)

A :class:`PropertyStore` is bound to one user and should live for one request
only: results of owner lookups are memoized per path in a
:class:`~davprops.request_cache.RequestCache` and dropped whenever the path
is written.

Properties on the published list (see :data:`PUBLISHED_READ_ONLY_PROPERTIES`)
are readable by every user, but only their owner can change them.
"""

from contextlib import contextmanager

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError

from davprops import util
from davprops.path_normalizer import MAX_PATH_LENGTH, normalize_path
from davprops.prop_error import DecodeError, as_storage_error
from davprops.request_cache import RequestCache
from davprops.storage import make_properties_table
from davprops.value_codec import decode_value, encode_value

__docformat__ = "reStructuredText"

_logger = util.get_module_logger(__name__)

#: Properties set by one user, readable by all others
PUBLISHED_READ_ONLY_PROPERTIES = frozenset(
    ("{urn:ietf:params:xml:ns:caldav}calendar-availability",)
)


# ========================================================================
# PropertyStore
# ========================================================================
class PropertyStore:
    """Dead properties of one user.

    Args:
        engine (sqlalchemy.engine.Engine): database with the properties table
        owner (str): user id of the acting user
        table (sqlalchemy.Table): default: ``make_properties_table()``
        max_path_length (int): longer paths are stored as hash
        published (iterable): names readable by all users
    """

    def __init__(
        self,
        engine,
        owner,
        *,
        table=None,
        max_path_length=MAX_PATH_LENGTH,
        published=PUBLISHED_READ_ONLY_PROPERTIES,
    ):
        assert owner and util.is_str(owner), f"Invalid owner: {owner!r}"
        self.engine = engine
        self.owner = owner
        self.table = table if table is not None else make_properties_table()
        self.max_path_length = max_path_length
        self.published = frozenset(published)
        self.cache = RequestCache()
        # path -> names of rows that could not be decoded
        self._undecodable = {}

    def __repr__(self):
        return f"PropertyStore({self.owner!r}, {self.table.name!r})"

    def _format_path(self, path):
        return normalize_path(path, self.max_path_length)

    def _invalidate(self, path):
        self.cache.invalidate(path)
        self._undecodable.pop(path, None)

    def _invalidate_tree(self, path):
        self.cache.invalidate_tree(path)
        prefix = path.rstrip("/") + "/"
        for key in list(self._undecodable):
            if key == path or key.startswith(prefix):
                del self._undecodable[key]

    def _query(self, stmt):
        try:
            with self.engine.connect() as conn:
                return conn.execute(stmt).fetchall()
        except SQLAlchemyError as e:
            raise as_storage_error(e, "Property query failed")

    @contextmanager
    def _transaction(self):
        """Run statements in one transaction; roll back on any error."""
        try:
            conn = self.engine.connect()
        except SQLAlchemyError as e:
            raise as_storage_error(e, "Could not connect to property storage")
        try:
            trans = conn.begin()
            try:
                yield conn
                trans.commit()
            except Exception as e:
                _logger.error(f"Rolling back property transaction: {e!r}")
                trans.rollback()
                if isinstance(e, SQLAlchemyError):
                    raise as_storage_error(e, "Property transaction failed")
                raise
        except SQLAlchemyError as e:
            # begin() or rollback() failed
            raise as_storage_error(e, "Property transaction failed")
        finally:
            conn.close()

    def _decode_rows(self, path, rows, broken=None):
        """Yield (name, value) for all rows that can be decoded.

        Rows that cannot be decoded are logged and skipped, their names are
        added to `broken`.
        """
        for name, payload, kind in rows:
            try:
                value = decode_value(payload, kind)
            except DecodeError as e:
                _logger.warning(
                    f"Skipping property {name!r} at {path!r}: {e.get_user_info()}"
                )
                if broken is not None:
                    broken.add(name)
                continue
            yield name, value

    def _where_owner_path(self, stmt, key):
        t = self.table
        return stmt.where(t.c.userid == self.owner, t.c.propertypath == key)

    # --- Lookup -------------------------------------------------------------

    def lookup_published(self, path, names):
        """Return {name: value} of published properties at `path` (any owner).

        Only `names` that are on the published list are considered. When
        different owners published the same name, the oldest record wins.
        """
        allowed = util.unique_list(n for n in names if n in self.published)
        if not allowed:
            return {}
        _logger.debug(f"lookup_published({path!r}, {allowed})")
        t = self.table
        stmt = (
            select(t.c.propertyname, t.c.propertyvalue, t.c.valuetype)
            .where(t.c.propertypath == self._format_path(path))
            .where(t.c.propertyname.in_(allowed))
            .order_by(t.c.id)
        )
        props = {}
        for name, value in self._decode_rows(path, self._query(stmt)):
            props.setdefault(name, value)
        return props

    def lookup_owner(self, path, names=None):
        """Return {name: value} of the owner's properties at `path`.

        `names` restricts the result (empty or None: all properties).
        Results are cached until `path` is written.
        """
        names = util.unique_list(names or ())
        props = self.cache.get(path, names)
        if props is not None:
            return props

        _logger.debug(f"lookup_owner({path!r}, {names})")
        t = self.table
        stmt = self._where_owner_path(
            select(t.c.propertyname, t.c.propertyvalue, t.c.valuetype),
            self._format_path(path),
        )
        if names:
            # TODO: split into chunks for databases that limit the number of
            # bound parameters (Oracle: 1000)
            stmt = stmt.where(t.c.propertyname.in_(names))

        broken = set()
        props = dict(self._decode_rows(path, self._query(stmt), broken))
        if names:
            # Names outside of this query keep their previous state
            broken.update(n for n in self._undecodable.get(path, ()) if n not in names)
        self._undecodable[path] = broken
        self.cache.put(path, props, names)
        return props

    def get_property_names(self, path):
        """Return a list of names of the owner's properties at `path`."""
        return list(self.lookup_owner(path))

    def get_published_names(self, path):
        """Return a list of published property names at `path` (any owner)."""
        if not self.published:
            return []
        t = self.table
        stmt = (
            select(t.c.propertyname)
            .where(t.c.propertypath == self._format_path(path))
            .where(t.c.propertyname.in_(sorted(self.published)))
            .distinct()
            .order_by(t.c.propertyname)
        )
        return [name for (name,) in self._query(stmt)]

    # --- Update -------------------------------------------------------------

    def apply_changes(self, path, changes):
        """Write or remove properties at `path` in one transaction.

        Args:
            path (str): resource path
            changes (dict): {name: value}, where value None means 'remove'
        Returns:
            True (errors are raised as StorageError after rollback)
        """
        _logger.debug(f"apply_changes({path!r}, {list(changes)})")
        existing = set(self.lookup_owner(path, [])).union(
            self._undecodable.get(path, ())
        )
        key = self._format_path(path)
        t = self.table

        with self._transaction() as conn:
            for name, value in changes.items():
                assert name and util.is_str(name), f"Invalid property name {name!r}"
                if value is None:
                    if name in existing:
                        conn.execute(
                            self._where_owner_path(t.delete(), key).where(
                                t.c.propertyname == name
                            )
                        )
                    continue

                payload, kind = encode_value(value)
                updated = 0
                if name in existing:
                    updated = conn.execute(
                        self._where_owner_path(t.update(), key)
                        .where(t.c.propertyname == name)
                        .values(propertyvalue=payload, valuetype=int(kind))
                    ).rowcount
                if not updated:
                    # Unknown, or removed by another request since our lookup
                    conn.execute(
                        t.insert().values(
                            userid=self.owner,
                            propertypath=key,
                            propertyname=name,
                            propertyvalue=payload,
                            valuetype=int(kind),
                        )
                    )

        self._invalidate(path)
        return True

    def delete_path(self, path):
        """Remove all of the owner's properties at `path`."""
        _logger.debug(f"delete_path({path!r})")
        with self._transaction() as conn:
            conn.execute(
                self._where_owner_path(self.table.delete(), self._format_path(path))
            )
        self._invalidate(path)

    def move_path(self, source, destination, with_children=False):
        """Re-assign the owner's properties from `source` to `destination`.

        Rows are updated in place. If `with_children` is true, properties of
        descendants (``source/...``) are moved as well, except for descendant
        paths that were too long and are stored as hash.
        """
        _logger.debug(f"move_path({source!r}, {destination!r}, {with_children})")
        t = self.table
        with self._transaction() as conn:
            conn.execute(
                self._where_owner_path(t.update(), self._format_path(source)).values(
                    propertypath=self._format_path(destination)
                )
            )
            if with_children:
                src_prefix = source.rstrip("/") + "/"
                dest_prefix = destination.rstrip("/") + "/"
                stmt = (
                    select(t.c.propertypath)
                    .distinct()
                    .where(t.c.userid == self.owner)
                    .where(t.c.propertypath.startswith(src_prefix, autoescape=True))
                )
                for (child_key,) in conn.execute(stmt).fetchall():
                    new_path = dest_prefix + child_key[len(src_prefix) :]
                    conn.execute(
                        self._where_owner_path(t.update(), child_key).values(
                            propertypath=self._format_path(new_path)
                        )
                    )

        for path in (source, destination):
            if with_children:
                self._invalidate_tree(path)
            else:
                self._invalidate(path)

    def copy_path(self, source, destination):
        """Copy the owner's properties from `source` to `destination`.

        Properties that already exist at `destination` are overwritten.
        """
        _logger.debug(f"copy_path({source!r}, {destination!r})")
        t = self.table
        rows = self._query(
            self._where_owner_path(
                select(t.c.propertyname, t.c.propertyvalue, t.c.valuetype),
                self._format_path(source),
            )
        )
        if not rows:
            return
        dest_key = self._format_path(destination)
        names = [row[0] for row in rows]
        with self._transaction() as conn:
            conn.execute(
                self._where_owner_path(t.delete(), dest_key).where(
                    t.c.propertyname.in_(names)
                )
            )
            conn.execute(
                t.insert(),
                [
                    {
                        "userid": self.owner,
                        "propertypath": dest_key,
                        "propertyname": name,
                        "propertyvalue": payload,
                        "valuetype": kind,
                    }
                    for name, payload, kind in rows
                ],
            )
        self._invalidate(destination)
