from typing import Dict, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import Engine

from reviewcrawl import config
from reviewcrawl.db.models import Base

DEFAULT_DATABASE_URL = "sqlite:///reviewcrawl.db"

# Simple cache to avoid creating multiple Engine objects for the same URL in one process.
_ENGINES: Dict[str, Engine] = {}


def make_engine(database_url: Optional[str] = None) -> Engine:
    """Create or return a cached SQLAlchemy Engine for `database_url`.

    Falls back to the DATABASE_URL environment variable, then to a local
    SQLite file so the service can run without a database server.
    """
    database_url = database_url or config.get_optional_str_env("DATABASE_URL") or DEFAULT_DATABASE_URL
    engine = _ENGINES.get(database_url)
    if engine is None:
        kwargs = {}
        if database_url.startswith("sqlite"):
            # the crawl worker, scheduler and API threads share the engine
            kwargs["connect_args"] = {"check_same_thread": False}
        engine = create_engine(database_url, **kwargs)
        _ENGINES[database_url] = engine
    return engine


def init_orm(engine: Engine) -> Engine:
    """Create all tables that do not exist yet."""
    Base.metadata.create_all(engine)
    return engine
