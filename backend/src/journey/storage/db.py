"""Database connection and session management."""

from contextlib import contextmanager
from typing import Generator

from sqlalchemy import create_engine
from sqlalchemy.orm import Session, sessionmaker

from journey.logging_config import get_logger
from journey.settings import settings
from journey.storage.models import Base

logger = get_logger(__name__)


class Database:
    """Database connection manager."""

    def __init__(self, database_url: str | None = None):
        """Initialize database connection.

        Args:
            database_url: Database URL (defaults to settings)
        """
        self.database_url = database_url or settings.database_url

        connect_args = {}
        if self.database_url.startswith("sqlite"):
            # Sessions are handed between request threads
            connect_args["check_same_thread"] = False

        self.engine = create_engine(
            self.database_url,
            connect_args=connect_args,
            pool_pre_ping=True,
        )
        self.SessionLocal = sessionmaker(
            autocommit=False,
            autoflush=False,
            expire_on_commit=False,
            bind=self.engine,
        )
        logger.info("database_initialized", url=self.engine.url.render_as_string(hide_password=True))

    def create_tables(self) -> None:
        """Create all tables in the database and seed the queue counter."""
        # Register every model on the metadata
        import journey.models  # noqa: F401
        from journey.waitlist.store import seed_queue_counter

        Base.metadata.create_all(bind=self.engine)
        with self.session() as session:
            seed_queue_counter(session)
        logger.info("tables_created")

    def drop_tables(self) -> None:
        """Drop all tables from the database."""
        import journey.models  # noqa: F401

        Base.metadata.drop_all(bind=self.engine)
        logger.warning("tables_dropped")

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """Provide a transactional scope for database operations.

        Yields:
            Database session
        """
        session = self.SessionLocal()
        try:
            yield session
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()


# Global database instance
db = Database()


def get_database() -> Database:
    """FastAPI dependency returning the shared database."""
    return db
