import time
from contextlib import contextmanager
from sqlalchemy import create_engine, event, text
from sqlalchemy.orm import declarative_base, sessionmaker, Session
from sqlalchemy.pool import QueuePool, StaticPool
from app.core.config import settings
from app.core.logging import db_logger
from app.core.monitoring import record_database_operation, database_connections


def _build_engine(database_url: str):
    if database_url.startswith("sqlite"):
        options = {"connect_args": {"check_same_thread": False}}
        if database_url == "sqlite://" or ":memory:" in database_url:
            # An in-memory database lives in a single connection
            options["poolclass"] = StaticPool
        return create_engine(database_url, **options)
    return create_engine(
        database_url,
        poolclass=QueuePool,
        pool_size=settings.database_pool_size,
        max_overflow=settings.database_max_overflow,
        pool_timeout=settings.database_pool_timeout,
        pool_pre_ping=True,
        pool_recycle=3600,
        echo=False,
    )


engine = _build_engine(settings.database_url)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()


@event.listens_for(engine, "connect")
def on_connect(dbapi_connection, connection_record):
    """Event handler for new database connections"""
    database_connections.inc()
    if engine.dialect.name == "sqlite":
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()
    db_logger.debug("New database connection established")


@event.listens_for(engine, "invalidate")
def on_invalidate(dbapi_connection, connection_record, exception):
    """Event handler for connection invalidation"""
    database_connections.dec()
    db_logger.warning("Database connection invalidated", error=str(exception) if exception else None)


def get_db():
    """Dependency to get database session with monitoring"""
    start_time = time.time()
    db = SessionLocal()
    try:
        yield db
    except Exception as e:
        db_logger.error("Database session error", error=str(e))
        db.rollback()
        raise
    finally:
        duration = time.time() - start_time
        record_database_operation("session", duration)
        db.close()


@contextmanager
def atomic(db: Session, operation_name: str = "batch"):
    """Run a block of writes as one all-or-nothing commit on ``db``.

    Everything flushed inside the block is committed once on success. Any
    exception rolls the whole block back and is re-raised to the caller.
    """
    start_time = time.time()
    try:
        yield db
        db.commit()
    except Exception as e:
        db.rollback()
        db_logger.error(
            "Database operation failed",
            operation=operation_name,
            error=str(e)
        )
        raise
    finally:
        record_database_operation(operation_name, time.time() - start_time)


def create_tables():
    """Create all database tables"""
    import app.models  # noqa: F401  registers every mapper on Base.metadata

    try:
        Base.metadata.create_all(bind=engine)
        db_logger.info("Database tables created successfully")
    except Exception as e:
        db_logger.error("Failed to create database tables", error=str(e))
        raise


def check_database_health() -> bool:
    """Check database connectivity and health"""
    try:
        start_time = time.time()
        db = SessionLocal()
        try:
            db.execute(text("SELECT 1"))
        finally:
            db.close()

        duration = time.time() - start_time
        record_database_operation("health_check", duration)

        db_logger.debug("Database health check passed", duration=duration)
        return True

    except Exception as e:
        db_logger.error("Database health check failed", error=str(e))
        return False


def get_db_stats():
    """Get database connection pool statistics"""
    pool = engine.pool
    if not isinstance(pool, QueuePool):
        return {"pool": type(pool).__name__}
    return {
        "pool_size": pool.size(),
        "checked_in": pool.checkedin(),
        "checked_out": pool.checkedout(),
        "overflow": pool.overflow(),
    }
