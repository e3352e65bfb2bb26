import logging
import threading
from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, List, Optional

from sqlalchemy import create_engine, text as sql_text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker, Session

from .config import Settings
from .errors import StorageFault
from .models import Base, Message, utc_now


logger = logging.getLogger("msgboard.storage")


def _engine_kwargs(url: str, timeout: float) -> dict:
    if url.startswith("sqlite"):
        # busy timeout bounds waits on the SQLite file lock
        return {"connect_args": {"check_same_thread": False, "timeout": timeout}}
    return {"pool_timeout": timeout, "pool_pre_ping": True}


def make_engine(settings: Settings) -> Engine:
    return create_engine(
        settings.DATABASE_URL,
        **_engine_kwargs(settings.DATABASE_URL, settings.DB_TIMEOUT_SECONDS),
    )


class MessageStore:
    def __init__(self, engine: Engine) -> None:
        self.engine = engine
        self._session_factory = sessionmaker(
            bind=engine, autoflush=False, autocommit=False, expire_on_commit=False
        )
        # writes share one lock; reads do not
        self._write_lock = threading.Lock()

    def init_db(self) -> None:
        try:
            Base.metadata.create_all(bind=self.engine)
        except SQLAlchemyError as exc:
            raise StorageFault("could not create schema") from exc

    def dispose(self) -> None:
        self.engine.dispose()

    @contextmanager
    def _session(self) -> Iterator[Session]:
        db = self._session_factory()
        try:
            yield db
        except SQLAlchemyError as exc:
            db.rollback()
            logger.error("storage operation failed: %s", exc)
            raise StorageFault("storage unavailable") from exc
        finally:
            db.close()

    def ping(self) -> None:
        with self._session() as db:
            db.execute(sql_text("SELECT 1"))

    def insert(self, text: str, created_at: Optional[datetime] = None) -> Message:
        msg = Message(text=text, created_at=created_at or utc_now())
        with self._write_lock, self._session() as db:
            db.add(msg)
            db.commit()
            db.refresh(msg)
        return msg

    def list_all(self) -> List[Message]:
        with self._session() as db:
            return (
                db.query(Message)
                .order_by(Message.created_at.desc(), Message.id.desc())
                .all()
            )

    def update_text(self, message_id: int, text: str) -> Optional[Message]:
        """
        Returns the updated message, or None if message_id does not exist.
        created_at is left untouched.
        """
        with self._write_lock, self._session() as db:
            msg = db.get(Message, message_id)
            if msg is None:
                return None
            msg.text = text
            db.commit()
            db.refresh(msg)
            return msg

    def delete_by_id(self, message_id: int) -> bool:
        """Returns False if message_id does not exist."""
        with self._write_lock, self._session() as db:
            deleted = (
                db.query(Message)
                .filter(Message.id == message_id)
                .delete(synchronize_session=False)
            )
            db.commit()
            return deleted > 0
