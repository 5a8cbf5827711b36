"""
Visitor model.

A visitor row is a presence snapshot: one row per currently-authenticated
connection, created when the name is claimed and deleted when that
connection closes. It is not a historical log.
"""

from sqlalchemy import Column, Integer, String

from .base import Base


class Visitor(Base):
    """Presence snapshot of one authenticated connection."""

    __tablename__ = "visitors"

    # Surrogate key; rows are matched by (username, ip)
    id = Column(Integer, primary_key=True, autoincrement=True)
    count = Column(Integer, nullable=False)
    username = Column(String, nullable=False, index=True)
    ip = Column(String, nullable=False)
    time = Column(String(19), nullable=False)

    def __repr__(self) -> str:
        return f"<Visitor(username='{self.username}', ip='{self.ip}', count={self.count}, time='{self.time}')>"

    def to_dict(self) -> dict:
        return {"count": self.count, "username": self.username, "ip": self.ip, "time": self.time}
