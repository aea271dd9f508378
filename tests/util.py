# (c) 2009-2024 Martin Wendt and contributors; see WsgiDAV https://github.com/mar10/wsgidav
# Licensed under the MIT license:
# http://www.opensource.org/licenses/mit-license.php
"""
    Test helpers.

Example:
    factory = make_factory()
    with StatementCounter(factory.engine) as counter:
        ... test methods
    assert counter.count == 0
"""

import logging

from sqlalchemy import event, func, select

from davprops.custom_properties import PropertyBackendFactory
from davprops.util import BASE_LOGGER_NAME

NS = "http://example.com/ns"
COLOR = f"{{{NS}}}color"
SIZE = f"{{{NS}}}size"
NOTE = f"{{{NS}}}note"
AVAILABILITY = "{urn:ietf:params:xml:ns:caldav}calendar-availability"
DISPLAYNAME = "{DAV:}displayname"
GETETAG = "{DAV:}getetag"


def reset_base_logger():
    """Restore the silent library logger after init_logging() was called."""
    logger = logging.getLogger(BASE_LOGGER_NAME)
    for hdlr in logger.handlers[:]:
        logger.removeHandler(hdlr)
    logger.addHandler(logging.NullHandler())
    logger.propagate = False
    logger.setLevel(logging.INFO)


def make_factory(config=None):
    """Return a factory that uses a private in-memory SQLite database."""
    return PropertyBackendFactory(config)


def count_rows(factory, **where):
    """Return the number of rows in the properties table matching `where`."""
    t = factory.table
    stmt = select(func.count()).select_from(t)
    for col, val in where.items():
        stmt = stmt.where(t.c[col] == val)
    with factory.engine.connect() as conn:
        return conn.execute(stmt).scalar()


def insert_raw(factory, userid, path, name, payload, kind=1):
    """Write a row directly, bypassing the codec."""
    with factory.engine.begin() as conn:
        conn.execute(
            factory.table.insert().values(
                userid=userid,
                propertypath=path,
                propertyname=name,
                propertyvalue=payload,
                valuetype=kind,
            )
        )


# ========================================================================
# StatementCounter
# ========================================================================


class StatementCounter:
    """Context manager that counts SQL statements sent to an engine."""

    def __init__(self, engine):
        self.engine = engine
        self.count = 0

    def _on_execute(self, conn, cursor, statement, parameters, context, executemany):
        self.count += 1

    def __enter__(self):
        event.listen(self.engine, "before_cursor_execute", self._on_execute)
        return self

    def __exit__(self, exc_type, exc_value, traceback):
        event.remove(self.engine, "before_cursor_execute", self._on_execute)
