from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, scoped_session, declarative_base

from backoffice.core.config import settings

def make_engine(url: str = None) -> Engine:
    url = url or settings.DB_URL
    # Use connect_args for SQLite to allow multithreading in simple dev setups
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}
    return create_engine(url, echo=False, future=True, connect_args=connect_args)

def make_session_factory(bind: Engine) -> sessionmaker:
    return sessionmaker(bind=bind, autoflush=False, autocommit=False, expire_on_commit=False)

# Default to sqlite file in data/, override via env DB_URL
engine = make_engine()
SessionLocal = scoped_session(make_session_factory(engine))
Base = declarative_base()

def init_db(bind: Engine = None):
    # Import models here so they are registered on Base
    import backoffice.db.models as _models  # noqa: F401
    Base.metadata.create_all(bind=bind or engine)
