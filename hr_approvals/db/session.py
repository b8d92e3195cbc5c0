"""Database session management."""
from typing import Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from hr_approvals.config.logging import get_logger
from hr_approvals.config.settings import Settings, settings
from hr_approvals.models import Base

logger = get_logger(__name__)


def build_engine(config: Optional[Settings] = None, **overrides) -> Engine:
    """
    Create an engine for the configured database.

    SQLite gets foreign key enforcement switched on; other backends get
    the configured connection pool.
    """
    config = config or settings
    url = config.get_database_url()
    options = {"echo": config.DB_ECHO, "pool_pre_ping": True}

    if config.is_sqlite():
        options["connect_args"] = {"check_same_thread": False}
    else:
        options["pool_size"] = config.DB_POOL_SIZE
        options["max_overflow"] = config.DB_POOL_OVERFLOW

    options.update(overrides)
    engine = create_engine(url, **options)

    if engine.dialect.name == "sqlite":
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)

    return engine


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record) -> None:
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


engine = build_engine()

# Create SessionLocal class
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db() -> Generator[Session, None, None]:
    """
    Yield a database session and close it afterwards.

    Usage:
        for db in get_db():
            service = ApprovalWorkflowService(db)
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db(bind: Optional[Engine] = None) -> None:
    """Create all tables known to the model registry."""
    bind = bind or engine
    Base.metadata.create_all(bind=bind)
    logger.info("Database tables created", extra={"tables": sorted(Base.metadata.tables)})
