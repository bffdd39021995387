from contextlib import contextmanager
from sqlalchemy import create_engine, event, inspect, text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from typing import Any, Dict, Iterator, List, Optional
import logging
import redis

from .config import settings
from .exceptions import InternalError

logger = logging.getLogger(__name__)

Base = declarative_base()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def as_dict(instance) -> Dict[str, Any]:
    """Return a mapped instance's column values as a plain record."""
    return {
        attr.key: getattr(instance, attr.key)
        for attr in inspect(instance).mapper.column_attrs
    }


class Database:
    """Pooled connection to the relational store.

    Single statements go through ``execute``; anything that must be atomic
    runs inside ``transaction``.
    """

    def __init__(self, url: str, **engine_options):
        if url.startswith("sqlite"):
            engine_options.setdefault("connect_args", {"check_same_thread": False})
        else:
            # PostgreSQL connection pool settings
            engine_options.setdefault("pool_size", 5)
            engine_options.setdefault("max_overflow", 10)
            engine_options.setdefault("pool_timeout", 30)
            engine_options.setdefault("pool_recycle", 1800)

        self.engine = create_engine(url, **engine_options)
        if self.engine.dialect.name == "sqlite":
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)

        self.SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=self.engine,
        )

    def execute(self, statement, params: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        """Run one parameterized statement in its own auto-committed unit."""
        if isinstance(statement, str):
            statement = text(statement)

        try:
            with self.engine.begin() as connection:
                if params:
                    result = connection.execute(statement, params)
                else:
                    result = connection.execute(statement)
                if not result.returns_rows:
                    return []
                return [dict(row) for row in result.mappings()]
        except SQLAlchemyError as exc:
            logger.exception("Statement failed")
            raise InternalError("Database error") from exc

    @contextmanager
    def transaction(self) -> Iterator[Session]:
        """Yield an exclusive session; commit on success, roll back otherwise."""
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except SQLAlchemyError as exc:
            self._rollback(session)
            logger.exception("Transaction failed")
            raise InternalError("Database error") from exc
        except Exception:
            self._rollback(session)
            raise
        finally:
            session.close()

    def _rollback(self, session: Session) -> None:
        try:
            session.rollback()
        except SQLAlchemyError:
            # Leave the in-flight exception in place
            logger.exception("Rollback failed")

    def create_all(self) -> None:
        Base.metadata.create_all(bind=self.engine)

    def drop_all(self) -> None:
        Base.metadata.drop_all(bind=self.engine)

    def dispose(self) -> None:
        self.engine.dispose()


# Database initialization
def init_db(url: Optional[str] = None) -> Database:
    """Create the database handle and its tables."""
    # Table models register themselves on Base when imported
    from ..models import appointment, assignment, patient, user  # noqa: F401

    database = Database(url or settings.get_database_url)
    database.create_all()
    return database


_redis_client = None


# Redis dependency
def get_redis():
    """Get Redis client."""
    global _redis_client
    if _redis_client is None:
        _redis_client = redis.from_url(settings.REDIS_URL, decode_responses=True)
    return _redis_client
