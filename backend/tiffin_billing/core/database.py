import logging
from collections.abc import Generator, Iterator
from contextlib import contextmanager
from typing import Any

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, declarative_base, sessionmaker

from tiffin_billing.core.config import settings
from tiffin_billing.core.errors import PersistenceError

logger = logging.getLogger(__name__)


def enable_sqlite_immediate_transactions(target: Engine) -> Engine:
    """Make every SQLite transaction start with ``BEGIN IMMEDIATE``.

    pysqlite defers ``BEGIN`` until the first write, so balances read at the top of
    a transaction would not be protected by the write lock. Taking over the
    transaction start serializes writers the way ``SELECT ... FOR UPDATE`` does on
    server databases.
    """

    @event.listens_for(target, "connect")
    def _disable_pysqlite_transactions(dbapi_connection: Any, connection_record: Any) -> None:
        dbapi_connection.isolation_level = None

    @event.listens_for(target, "begin")
    def _begin_immediate(conn: Any) -> None:
        conn.exec_driver_sql("BEGIN IMMEDIATE")

    return target


def build_engine(dsn: str, *, immediate_transactions: bool = False) -> Engine:
    is_sqlite = dsn.startswith("sqlite")
    built = create_engine(
        dsn,
        connect_args=({"check_same_thread": False} if is_sqlite else {}),
    )
    if is_sqlite and immediate_transactions:
        enable_sqlite_immediate_transactions(built)
    return built


engine = build_engine(
    settings.APP_DATABASE_DSN,
    immediate_transactions=settings.SQLITE_IMMEDIATE_TRANSACTIONS,
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
Base: Any = declarative_base()


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


@contextmanager
def atomic(db: Session) -> Iterator[Session]:
    """Run a block as one all-or-nothing unit of work.

    Commits when the block finishes, rolls back on any exception. Store failures
    are re-raised as ``PersistenceError`` so callers see one error taxonomy.
    """
    try:
        yield db
        db.commit()
    except SQLAlchemyError as exc:
        db.rollback()
        logger.exception("Transaction rolled back after store failure")
        raise PersistenceError(str(exc)) from exc
    except Exception:
        db.rollback()
        raise
