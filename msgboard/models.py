from datetime import datetime, timezone

from sqlalchemy.orm import declarative_base
from sqlalchemy import Column, DateTime, Integer, Text
from sqlalchemy.types import TypeDecorator

Base = declarative_base()


class UTCDateTime(TypeDecorator):
    """Stores naive UTC, hands back timezone-aware UTC."""

    impl = DateTime
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc).replace(tzinfo=None)
        return value

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return value.replace(tzinfo=timezone.utc)


class Message(Base):
    __tablename__ = "messages"
    # never hand out a deleted row's id again
    __table_args__ = {"sqlite_autoincrement": True}

    id = Column(Integer, primary_key=True, autoincrement=True)
    text = Column(Text, nullable=False)
    created_at = Column(UTCDateTime, nullable=False, index=True)

    def __repr__(self) -> str:
        return f"Message(id={self.id!r}, created_at={self.created_at!r})"


def utc_now() -> datetime:
    return datetime.now(timezone.utc)
