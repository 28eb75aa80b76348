"""
Database session management
"""
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from boardops.core.settings import settings
from boardops.logging_config import get_logger

logger = get_logger(__name__)

connection_string = settings.database_url

# Never log credentials, only the backend and target
logger.info(f"Database connection: {connection_string.split('@')[-1]}")

engine_kwargs = {
    "echo": settings.DB_ECHO,
    "pool_pre_ping": True,
}
if settings.is_sqlite:
    # Sessions are handed across FastAPI's threadpool
    engine_kwargs["connect_args"] = {"check_same_thread": False}
else:
    engine_kwargs["pool_recycle"] = 3600

engine = create_engine(connection_string, **engine_kwargs)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def get_db():
    """
    Dependency for getting database session

    Usage in FastAPI endpoints:
        @router.get("/items")
        def get_items(db: Session = Depends(get_db)):
            ...
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()


def init_db() -> None:
    """Create all tables (idempotent)."""
    from boardops.db.base import Base
    import boardops.models  # noqa: F401

    Base.metadata.create_all(bind=engine)
    logger.info("Database tables ready")
