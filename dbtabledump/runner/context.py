"""
Source database context: connection string assembly and the read-only
snapshot transaction every export session runs in.
"""

import os
from collections.abc import Iterator
from contextlib import contextmanager
from logging import getLogger

import psycopg
from psycopg import postgres
from psycopg.conninfo import make_conninfo
from psycopg.types.multirange import MultirangeInfo
from psycopg.types.range import RangeInfo
from psycopg.types.string import TextLoader

from ..exceptions import ConfigError, SourceConnectionError
from .types import ArgType

logger = getLogger(__name__)

# keyword -> environment variable, for assembling a DSN from parts
CONNINFO_ENV = {
    "host": "DB_HOST",
    "port": "DB_PORT",
    "dbname": "DB_NAME",
    "user": "DB_USER",
    "password": "DB_PASS",
}


def build_dburl(dburl: str | None = None, **parts) -> str:
    """
    Work out the connection string.

    An explicit URL wins, then DB_URL / DBURL from the environment, then a
    libpq conninfo assembled from `parts` falling back to the DB_HOST,
    DB_PORT, DB_NAME, DB_USER and DB_PASS variables.
    """
    dburl = dburl or os.environ.get("DB_URL") or os.environ.get("DBURL")
    if dburl:
        return dburl
    kwargs = {}
    for key, envvar in CONNINFO_ENV.items():
        value = parts.get(key) or os.environ.get(envvar)
        if value:
            kwargs[key] = value
    if not kwargs:
        raise ConfigError("no database given: pass --dburl or set DB_URL (or DB_HOST, DB_NAME, ...)")
    try:
        return make_conninfo(**kwargs)
    except psycopg.ProgrammingError as ouch:
        raise ConfigError(f"invalid connection parameters: {ouch}") from ouch


TEXT_FORM_TYPES = ("json", "jsonb", "interval")


def register_text_loaders(context):
    """
    Load json, interval, range and array values as the server's own text.

    psycopg would otherwise build dicts, lists, timedeltas and Range objects
    whose str() is not valid input for the same column type.
    """
    adapters = context.adapters
    for name in TEXT_FORM_TYPES:
        adapters.register_loader(name, TextLoader)
    for info in postgres.types:
        if info.array_oid:
            adapters.register_loader(info.array_oid, TextLoader)
        if isinstance(info, (RangeInfo, MultirangeInfo)):
            adapters.register_loader(info.oid, TextLoader)


@contextmanager
def get_connection(args: ArgType) -> Iterator[psycopg.Connection]:
    """
    Open the source database inside one read-only REPEATABLE READ transaction.

    Every query of the session sees the same snapshot. The transaction is
    rolled back and the connection closed on every exit path; an export never
    writes to its source.
    """
    try:
        conn = psycopg.connect(build_dburl(args.dburl), autocommit=False)
    except psycopg.Error as ouch:
        raise SourceConnectionError(f"could not connect to the source database: {ouch}") from ouch
    try:
        conn.read_only = True
        conn.isolation_level = psycopg.IsolationLevel.REPEATABLE_READ
        register_text_loaders(conn)
        with conn.cursor() as cursor:
            # pin the snapshot before the first table is read
            cursor.execute("select 1")
        logger.debug("snapshot transaction opened")
        yield conn
    finally:
        try:
            conn.rollback()
        finally:
            conn.close()
