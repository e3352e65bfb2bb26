from datetime import datetime, timezone
from typing import Any, List, Optional

from .errors import NotFound, ValidationError
from .models import Message
from .storage import MessageStore


def parse_timestamp(raw: Any) -> Optional[datetime]:
    """Best-effort conversion of a client timestamp to aware UTC.

    Accepts ISO-8601 strings (``Z`` or offset suffix, naive means UTC) and
    numbers of epoch milliseconds as produced by ``Date.getTime()``.
    Anything else yields None so the store falls back to its own clock.
    """
    if raw is None or isinstance(raw, bool):
        return None

    if isinstance(raw, (int, float)):
        try:
            return datetime.fromtimestamp(raw / 1000.0, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    if isinstance(raw, str):
        value = raw.strip()
        if not value:
            return None
        try:
            parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
            if parsed.tzinfo is None:
                return parsed.replace(tzinfo=timezone.utc)
            # offsets near year 1 or 9999 overflow on conversion
            return parsed.astimezone(timezone.utc)
        except (ValueError, OverflowError):
            return None

    return None


class MessageService:
    def __init__(self, store: MessageStore, *, max_text_length: int = 4096) -> None:
        self.store = store
        self.max_text_length = max_text_length

    def _clean_text(self, raw_text: Any) -> str:
        if not isinstance(raw_text, str) or not raw_text.strip():
            raise ValidationError("Message text is required")
        text = raw_text.strip()
        if len(text) > self.max_text_length:
            raise ValidationError(
                f"Message text must be at most {self.max_text_length} characters"
            )
        return text

    def create(self, raw_text: Any, raw_timestamp: Any = None) -> Message:
        text = self._clean_text(raw_text)
        return self.store.insert(text, created_at=parse_timestamp(raw_timestamp))

    def list(self) -> List[Message]:
        return self.store.list_all()

    def update(self, message_id: int, raw_text: Any) -> Message:
        text = self._clean_text(raw_text)
        msg = self.store.update_text(message_id, text)
        if msg is None:
            raise NotFound()
        return msg

    def remove(self, message_id: int) -> None:
        if not self.store.delete_by_id(message_id):
            raise NotFound()
