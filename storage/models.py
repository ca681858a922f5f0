"""
SQLAlchemy models for locally persisted operator preferences.
"""
from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import declarative_base

Base = declarative_base()


class Preference(Base):
    """One string value per (scope, key). Survives process restarts."""
    __tablename__ = "preferences"

    id = Column(Integer, primary_key=True, autoincrement=True)
    scope = Column(String(100), nullable=False, default="default")
    key = Column(String(100), nullable=False)
    value = Column(Text)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("scope", "key", name="uq_preferences_scope_key"),
    )

    def __repr__(self):
        return f"<Preference {self.scope}:{self.key}>"
