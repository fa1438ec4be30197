"""SQL functions with per-dialect rendering."""

from sqlalchemy import DateTime
from sqlalchemy.ext.compiler import compiles
from sqlalchemy.sql.functions import FunctionElement


class utcnow(FunctionElement):
    """Database clock, comparable with stored ``DateTime(timezone=True)`` values."""

    type = DateTime(timezone=True)
    inherit_cache = True


@compiles(utcnow)
def _utcnow_default(element, compiler, **kw):
    return "now()"


@compiles(utcnow, "sqlite")
def _utcnow_sqlite(element, compiler, **kw):
    # SQLite keeps timestamps as 'YYYY-MM-DD HH:MM:SS.ffffff' text; CURRENT_TIMESTAMP
    # drops the fraction, so tokens expiring within the current second would sort after it.
    return "STRFTIME('%Y-%m-%d %H:%M:%f000', 'now')"
