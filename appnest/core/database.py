# appnest/core/database.py
from databases import Database
from sqlalchemy import create_engine
from sqlalchemy.engine import make_url

from appnest.core.config import get_settings
from appnest.models.db import Base

DATABASE_URL = get_settings().DATABASE_URL
database = Database(DATABASE_URL)


def create_tables(url: str = DATABASE_URL) -> None:
    """Create tables if they don't exist (synchronous driver)."""
    async_url = make_url(url)
    backend = async_url.get_backend_name()
    connect_args = {"check_same_thread": False} if backend == "sqlite" else {}
    engine = create_engine(async_url.set(drivername=backend), connect_args=connect_args)
    Base.metadata.create_all(engine)
    engine.dispose()
