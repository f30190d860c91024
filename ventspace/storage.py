import logging
import threading
import uuid
from abc import ABC, abstractmethod
from typing import List, Optional

from sqlalchemy import create_engine, inspect, text
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker

from ventspace.errors import InvalidData, StorageFailure
from ventspace.models import Base, Message, MessageRecord, RECENT_LIMIT
from ventspace.schemas import MessageResponse
from ventspace.utils import utc_now

logger = logging.getLogger(__name__)


def _clamp_limit(limit: Optional[int]) -> int:
    if limit is None:
        return RECENT_LIMIT
    return max(1, min(limit, RECENT_LIMIT))


class MessageStore(ABC):
    """
    Message persistence used by the ingestion service and the list route.

    list_recent always returns sanitized projections, newest first, and
    never more than RECENT_LIMIT of them.
    """

    backend: str = ""

    @abstractmethod
    def insert(self, text: str, emoji: str, client_hash: str) -> Message:
        """Store an accepted message and return it with its id and timestamp."""

    @abstractmethod
    def list_recent(self, limit: Optional[int] = RECENT_LIMIT) -> List[MessageResponse]:
        """Return the most recent messages, newest first."""

    def close(self) -> None:
        """Release backend resources."""


# =============================================================================
# Durable Store (SQLAlchemy)
# =============================================================================

def create_db_engine(database_url: str) -> Engine:
    """
    Create a SQLAlchemy engine for the given URL.
    check_same_thread=False is required for SQLite to work with FastAPI's threadpool.
    """
    connect_args = {"check_same_thread": False} if database_url.startswith("sqlite") else {}
    return create_engine(database_url, connect_args=connect_args, echo=False)


def init_db(engine: Engine) -> None:
    """
    Initialize the database by creating all tables.
    Called once during application startup.
    """
    logger.debug(f"Initializing database with URL: {engine.url!r}")
    Base.metadata.create_all(bind=engine)
    logger.info("Database initialized successfully")


def check_db_health(engine: Engine) -> bool:
    """
    Check if the database is reachable and schema is applied.

    Returns:
        True if DB is healthy and the messages table exists, False otherwise.
    """
    logger.debug("Checking database health...")
    try:
        with engine.connect() as conn:
            conn.execute(text("SELECT 1"))
        if not inspect(engine).has_table(MessageRecord.__tablename__):
            logger.error("Database schema not applied: 'messages' table not found")
            return False
        logger.debug("Database health check passed")
        return True
    except SQLAlchemyError as e:
        logger.error(f"Database health check failed: {e}")
        return False


class SQLMessageStore(MessageStore):
    """Durable store backed by any SQLAlchemy-supported database."""

    backend = "sql"

    def __init__(self, engine: Engine):
        self.engine = engine
        self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)

    def insert(self, text: str, emoji: str, client_hash: str) -> Message:
        """
        Insert a message.

        Raises:
            InvalidData: text or emoji violate the message bounds
            StorageFailure: any database error
        """
        try:
            record = MessageRecord(
                text=text,
                emoji=emoji,
                timestamp=utc_now(),
                client_hash=client_hash,
            )
        except ValueError as e:
            logger.warning(f"Rejected invalid message data: {e}")
            raise InvalidData("Invalid message data") from e

        with self._session_factory() as db:
            try:
                db.add(record)
                db.commit()
                db.refresh(record)
                message = record.to_message()
            except SQLAlchemyError as e:
                db.rollback()
                logger.error(f"Failed to save message: {e}")
                raise StorageFailure("Failed to save message") from e

        logger.info(f"Message stored: id={message.id}, backend={self.backend}")
        return message

    def list_recent(self, limit: Optional[int] = RECENT_LIMIT) -> List[MessageResponse]:
        limit = _clamp_limit(limit)
        logger.debug(f"Querying recent messages: limit={limit}")

        with self._session_factory() as db:
            try:
                records = (
                    db.query(MessageRecord)
                    .order_by(MessageRecord.timestamp.desc(), MessageRecord.id.desc())
                    .limit(limit)
                    .all()
                )
                return [MessageResponse.from_message(r.to_message()) for r in records]
            except SQLAlchemyError as e:
                logger.error(f"Failed to fetch messages: {e}")
                raise StorageFailure("Failed to fetch messages") from e

    def close(self) -> None:
        self.engine.dispose()


# =============================================================================
# Fallback Store (in-memory)
# =============================================================================

class MemoryMessageStore(MessageStore):
    """
    Process-local store used when the database is unreachable at startup.

    Keeps only the most recent `capacity` messages; contents are lost on
    restart. Inputs are presumed validated upstream.
    """

    backend = "memory"

    def __init__(self, capacity: int = RECENT_LIMIT):
        self.capacity = capacity
        self._messages: List[Message] = []
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._messages)

    def insert(self, text: str, emoji: str, client_hash: str) -> Message:
        message = Message(
            id=uuid.uuid4().hex,
            text=text,
            emoji=emoji,
            timestamp=utc_now(),
            client_hash=client_hash,
        )
        with self._lock:
            self._messages.append(message)
            if len(self._messages) > self.capacity:
                del self._messages[:-self.capacity]

        logger.info(f"Message stored: id={message.id}, backend={self.backend}")
        return message

    def list_recent(self, limit: Optional[int] = RECENT_LIMIT) -> List[MessageResponse]:
        limit = _clamp_limit(limit)
        with self._lock:
            snapshot = list(reversed(self._messages))
        # Stable sort keeps later inserts first among equal timestamps
        snapshot.sort(key=lambda m: m.timestamp, reverse=True)
        return [MessageResponse.from_message(m) for m in snapshot[:limit]]


# =============================================================================
# Backend Selection
# =============================================================================

def create_message_store(database_url: str) -> MessageStore:
    """
    Pick the message store once at startup.

    Uses the durable store when the database can be reached and its schema
    created; otherwise logs a warning and falls back to the in-memory store.
    There is no later failback to the database.
    """
    try:
        engine = create_db_engine(database_url)
        init_db(engine)
    except (SQLAlchemyError, ImportError) as e:
        logger.warning(
            f"Database unavailable, using in-memory storage (data will be lost on restart): {e}"
        )
        return MemoryMessageStore()

    if not check_db_health(engine):
        engine.dispose()
        logger.warning("Database health check failed, using in-memory storage")
        return MemoryMessageStore()

    logger.info("Connected to database")
    return SQLMessageStore(engine)
