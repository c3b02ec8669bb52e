"""Pool de conexiones PostgreSQL compartido por el ETL.

Las conexiones se piden al pool justo antes de una transacción y se devuelven
siempre al salir, tanto por commit como por rollback.
"""
import logging
from contextlib import contextmanager
from typing import Optional

from psycopg2.extensions import parse_dsn
from psycopg2.pool import ThreadedConnectionPool

from ventas_etl.core.config import settings
from ventas_etl.core.exceptions import SyncConfigurationError

_pool: Optional[ThreadedConnectionPool] = None


def create_pool(dsn: str = None, minconn: int = None, maxconn: int = None) -> ThreadedConnectionPool:
    dsn = dsn or settings.DATABASE_URL
    if not dsn:
        raise SyncConfigurationError("DATABASE_URL must be set to use the ventas pipeline")
    # un sslmode explícito en el DSN manda sobre el derivado de ENVIRONMENT
    extra = {} if "sslmode" in parse_dsn(dsn) else {"sslmode": settings.db_sslmode}
    return ThreadedConnectionPool(
        minconn or settings.DB_POOL_MIN,
        maxconn or settings.DB_POOL_MAX,
        dsn=dsn,
        **extra,
    )


def get_pool() -> ThreadedConnectionPool:
    global _pool
    if _pool is None:
        _pool = create_pool()
        logging.info(f"🔌 Pool PostgreSQL creado (sslmode={settings.db_sslmode})")
    return _pool


def close_pool():
    global _pool
    if _pool is not None:
        _pool.closeall()
        _pool = None


@contextmanager
def transaction(pool):
    """Entrega una conexión en transacción: commit al salir, rollback y re-raise ante error."""
    conn = pool.getconn()
    try:
        yield conn
        conn.commit()
    except Exception:
        conn.rollback()
        raise
    finally:
        pool.putconn(conn)
