from typing import Generator

from sqlalchemy import create_engine, text
from sqlalchemy.orm import Session, sessionmaker

from movieapi.core.config import settings

engine = create_engine(
    settings.database_url,
    pool_pre_ping=True,   # checks stale connections
    echo=settings.DB_ECHO,
    connect_args={"check_same_thread": False} if settings.database_url.startswith("sqlite") else {},
)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def database_version(db: Session) -> str:
    """
    Report the server version string, e.g. for the /health/db check.
    """
    dialect = db.get_bind().dialect.name
    if dialect == "sqlite":
        return "SQLite " + str(db.execute(text("SELECT sqlite_version()")).scalar())
    return str(db.execute(text("SELECT version()")).scalar())


def get_db() -> Generator[Session, None, None]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
