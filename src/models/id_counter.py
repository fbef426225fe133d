"""Counter rows backing sequential human-readable identifiers."""

from sqlalchemy import Column, Integer, String
from .base import Base


class IdCounterModel(Base):
    """Last issued value for one identifier sequence (e.g. 'STU')."""

    __tablename__ = "id_counters"

    name = Column(String, primary_key=True)
    value = Column(Integer, nullable=False, default=0)
