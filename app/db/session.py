"""
Database session management

The process entry point builds one Database handle and stores it on
``app.state.db``; request handlers get sessions from it through ``get_db``.
"""
import logging
import re
import time
from typing import Any, Dict, Generator, Optional

from fastapi import HTTPException, Request, status
from sqlalchemy import create_engine, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from app.models.base import Base

logger = logging.getLogger(__name__)


class DatabaseConnectionError(Exception):
    """Raised when the configured database cannot be reached"""


def mask_url(url: str) -> str:
    """Hide credentials in a connection URL before logging it"""
    return re.sub(r"//[^@/]*@", "//***:***@", url)


class Database:
    """
    Connect-once handle around a SQLAlchemy engine and its session factory
    """

    def __init__(
        self,
        url: str,
        engine_options: Optional[Dict[str, Any]] = None,
        connect_retries: int = 1,
        retry_delay: float = 1.0,
    ):
        self.url = url
        self.engine_options = engine_options or {}
        self.connect_retries = max(1, connect_retries)
        self.retry_delay = retry_delay
        self._engine: Optional[Engine] = None
        self._session_factory: Optional[sessionmaker] = None

    @property
    def is_connected(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise DatabaseConnectionError("Database is not connected")
        return self._engine

    def connect(self, retries: Optional[int] = None, create_tables: bool = False) -> Engine:
        """
        Return the established engine, creating and verifying it on first use

        With ``create_tables`` missing tables are created right after the
        engine is established; a failure there counts as a failed attempt.
        """
        if self._engine is not None:
            return self._engine

        retries = retries or self.connect_retries
        logger.info(f"Connecting to database at {mask_url(self.url)}")
        last_error: Optional[Exception] = None
        for attempt in range(1, retries + 1):
            engine = create_engine(self.url, **self.engine_options)
            try:
                with engine.connect() as conn:
                    conn.execute(text("SELECT 1"))
            except SQLAlchemyError as e:
                engine.dispose()
                last_error = e
                logger.warning(f"Database connection attempt {attempt}/{retries} failed: {e}")
                if attempt < retries:
                    time.sleep(self.retry_delay)
                continue

            self._engine = engine
            self._session_factory = sessionmaker(
                autocommit=False,
                autoflush=False,
                bind=engine
            )
            if create_tables:
                try:
                    self.create_all()
                except SQLAlchemyError as e:
                    self.dispose()
                    last_error = e
                    logger.warning(f"Creating tables failed on attempt {attempt}/{retries}: {e}")
                    if attempt < retries:
                        time.sleep(self.retry_delay)
                    continue

            logger.info(f"Database connected: {engine.url.host or engine.url.database}")
            return engine

        raise DatabaseConnectionError(str(last_error))

    def create_all(self) -> None:
        """Create missing tables for every mapped model"""
        import app.models  # noqa: F401  registers the mappers

        Base.metadata.create_all(bind=self.engine)

    def ping(self) -> bool:
        """Round-trip ``SELECT 1``; False when not connected or the server is gone"""
        if self._engine is None:
            return False
        try:
            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1"))
        except SQLAlchemyError as e:
            logger.warning(f"Database ping failed: {e}")
            return False
        return True

    def session(self) -> Session:
        if self._session_factory is None:
            raise DatabaseConnectionError("Database is not connected")
        return self._session_factory()

    def dispose(self) -> None:
        if self._engine is not None:
            self._engine.dispose()
            self._engine = None
            self._session_factory = None


def get_db(request: Request) -> Generator[Session, None, None]:
    """
    Dependency function to get database session

    Usage in FastAPI routes:
        @router.get("/")
        async def my_route(db: Session = Depends(get_db)):
            ...

    Answers 503 while the database is unreachable. A reconnect creates
    missing tables when the app was built with ``DATABASE_AUTO_CREATE``.
    """
    database: Database = request.app.state.db
    if not database.is_connected:
        try:
            database.connect(retries=1, create_tables=getattr(request.app.state, "auto_create_tables", False))
        except DatabaseConnectionError as e:
            logger.error(f"Database unavailable: {e}")
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                detail="Database is not connected. Please try again later."
            )

    db = database.session()
    try:
        yield db
    finally:
        db.close()
