"""Declarative base shared by the scoring tables."""

from typing import Any

from sqlalchemy import Column, Integer, DateTime, func
from sqlalchemy.orm import declarative_base


class Base:
    """Surrogate key and audit timestamps for every table."""

    id = Column(Integer, primary_key=True, index=True, autoincrement=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    def assign(self, **values: Any) -> None:
        """Set mapped columns in bulk; unknown names are a programming error."""
        columns = self.__table__.columns
        for name, value in values.items():
            if name not in columns:
                raise AttributeError(f"{type(self).__name__} has no column {name!r}")
            setattr(self, name, value)


Base = declarative_base(cls=Base)
