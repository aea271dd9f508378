# (c) 2009-2024 Martin Wendt and contributors; see WsgiDAV https://github.com/mar10/wsgidav
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""
Database schema and engine setup for the properties table.

The table is built like::

    id | userid | propertypath      | propertyname          | propertyvalue | valuetype
    ---+--------+-------------------+-----------------------+---------------+----------
     1 | joe    | files/joe/doc.txt | {http://ex.com/}color | red           | 1

``(userid, propertypath, propertyname)`` is unique.
"""

from sqlalchemy import (
    Column,
    Index,
    Integer,
    MetaData,
    SmallInteger,
    String,
    Table,
    Text,
    UniqueConstraint,
    create_engine,
)
from sqlalchemy.exc import SQLAlchemyError

from davprops import util
from davprops.prop_error import as_storage_error

__docformat__ = "reStructuredText"

_logger = util.get_module_logger(__name__)

DEFAULT_TABLE_NAME = "properties"

#: Width of the ``propertypath`` column (see path_normalizer)
PATH_COLUMN_LENGTH = 255


def make_properties_table(table_name=DEFAULT_TABLE_NAME, metadata=None):
    """Return a SQLAlchemy Table definition for the properties table."""
    if metadata is None:
        metadata = MetaData()
    return Table(
        table_name,
        metadata,
        Column("id", Integer, primary_key=True, autoincrement=True),
        Column("userid", String(64), nullable=False),
        Column("propertypath", String(PATH_COLUMN_LENGTH), nullable=False),
        Column("propertyname", String(255), nullable=False),
        Column("propertyvalue", Text, nullable=True),
        Column("valuetype", SmallInteger, nullable=False, default=1),
        UniqueConstraint(
            "userid", "propertypath", "propertyname", name=f"{table_name}_uniq"
        ),
        Index(f"{table_name}_path_index", "userid", "propertypath"),
    )


def create_property_engine(config):
    """Create a SQLAlchemy engine from the ``property_storage`` options."""
    opts = util.get_section(config, "property_storage")
    url = opts.get("url") or "sqlite://"
    echo = bool(opts.get("echo")) or config.get("verbose", 3) >= 5
    kwargs = {}
    if url in ("sqlite://", "sqlite:///:memory:"):
        # All connections must share the same in-memory database
        from sqlalchemy.pool import StaticPool

        kwargs["poolclass"] = StaticPool
        kwargs["connect_args"] = {"check_same_thread": False}
    _logger.info(f"Using property storage {url!r}")
    return create_engine(url, echo=echo, **kwargs)


def init_schema(engine, table):
    """Create the properties table, if it does not exist."""
    _logger.debug(f"init_schema({table.name})")
    try:
        table.metadata.create_all(engine, tables=[table])
    except SQLAlchemyError as e:
        raise as_storage_error(e, f"Could not create table {table.name!r}")
