"""
Message model.

This module contains:
- The Message domain record returned by the stores
- The SQLAlchemy ORM table used by the durable store
- The fixed emoji set and text bounds shared by both

For Pydantic request/response schemas, see schemas.py.
"""

from dataclasses import dataclass
from datetime import datetime

from sqlalchemy import Column, DateTime, Integer, String, Text
from sqlalchemy.orm import declarative_base, validates


Base = declarative_base()

MIN_TEXT_LENGTH = 3
MAX_TEXT_LENGTH = 1000
RECENT_LIMIT = 100

DEFAULT_EMOJI = "💭"
ALLOWED_EMOJIS = frozenset({"😊", "😢", "😤", "😰", "😔", "🤗", "😌", DEFAULT_EMOJI})


def normalize_emoji(emoji) -> str:
    """Return the emoji if it is in the allowed set, otherwise the default."""
    if isinstance(emoji, str) and emoji in ALLOWED_EMOJIS:
        return emoji
    return DEFAULT_EMOJI


@dataclass(frozen=True)
class Message:
    """
    An accepted message as held by a store.

    client_hash is kept for bookkeeping only and must never leave the
    server; use schemas.MessageResponse for anything client-facing.
    """
    id: str
    text: str
    emoji: str
    timestamp: datetime
    client_hash: str


class MessageRecord(Base):
    """
    SQLAlchemy model for stored messages.

    Table: messages
    Primary Key: id (autoincrement, also breaks timestamp ties)
    """
    __tablename__ = "messages"

    id = Column(Integer, primary_key=True, autoincrement=True)
    text = Column(Text, nullable=False)
    emoji = Column(String(16), nullable=False, default=DEFAULT_EMOJI)
    timestamp = Column(DateTime(timezone=True), nullable=False, index=True)
    client_hash = Column(String(64), nullable=True)

    @validates("text")
    def validate_text(self, key, value):
        if value is None or not MIN_TEXT_LENGTH <= len(value) <= MAX_TEXT_LENGTH:
            raise ValueError(
                f"text must be between {MIN_TEXT_LENGTH} and {MAX_TEXT_LENGTH} characters"
            )
        return value

    @validates("emoji")
    def validate_emoji(self, key, value):
        if value not in ALLOWED_EMOJIS:
            raise ValueError(f"emoji {value!r} is not allowed")
        return value

    def to_message(self) -> Message:
        return Message(
            id=str(self.id),
            text=self.text,
            emoji=self.emoji,
            timestamp=self.timestamp,
            client_hash=self.client_hash,
        )
