from typing import Any, Dict, Iterator
from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import StaticPool
from database.base import Base
from core.config import settings

def is_in_memory_sqlite(url: str) -> bool:
    return url in ("sqlite://", "sqlite:///") or ":memory:" in url or "mode=memory" in url

def engine_options(url: str, echo: bool = False) -> Dict[str, Any]:
    options: Dict[str, Any] = {"echo": echo}
    if url.startswith("sqlite"):
        options["connect_args"] = {"check_same_thread": False}
        # Only an in-memory database has to live on one shared connection;
        # a file database gets a pooled connection per session
        if is_in_memory_sqlite(url):
            options["poolclass"] = StaticPool
    return options

def build_engine(url: str, echo: bool = False) -> Engine:
    new_engine = create_engine(url, **engine_options(url, echo))

    if url.startswith("sqlite"):
        @event.listens_for(new_engine, "connect")
        def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()

    return new_engine

engine = build_engine(settings.DATABASE_URL, echo=settings.SQL_ECHO)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

def create_tables(bind: Engine = None):
    # Import models so they register on the metadata
    from models import category, user, session  # noqa: F401
    Base.metadata.create_all(bind=bind or engine)

def drop_tables(bind: Engine = None):
    """Drop every table, even while parent/child category rows exist."""
    from models import category, user, session  # noqa: F401
    bind = bind or engine
    with bind.connect() as conn:
        sqlite = conn.dialect.name == "sqlite"
        if sqlite:
            # SQLite empties a table before dropping it, which trips RESTRICT
            conn.exec_driver_sql("PRAGMA foreign_keys=OFF")
        try:
            Base.metadata.drop_all(bind=conn)
            conn.commit()
        finally:
            if sqlite:
                conn.exec_driver_sql("PRAGMA foreign_keys=ON")

# Dependency to get database session
def get_db() -> Iterator[Session]:
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
