"""sqlchain execution layer: pools and the row-mapping executor.

``sqlchain.execute.psycopg`` is not imported here; it needs the ``postgres``
extra.
"""
from sqlchain.execute.executor import Executor
from sqlchain.execute.pool import Pool, SQLitePool

__all__ = ["Executor", "Pool", "SQLitePool"]
