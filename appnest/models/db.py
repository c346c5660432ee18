from sqlalchemy import Column, DateTime, String, Text
from sqlalchemy.orm import declarative_base
from sqlalchemy.sql import func

Base = declarative_base()


class StoreDB(Base):
    """Key/value store for shared persisted state, e.g. the installed app list."""
    __tablename__ = "store"

    key = Column(String, primary_key=True)
    value = Column(Text, nullable=False, default="[]")  # JSON document
    created_at = Column(DateTime(timezone=True), server_default=func.now())
