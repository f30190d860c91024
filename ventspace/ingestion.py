"""
Message ingestion pipeline.

rate limit -> moderation -> normalise -> store -> broadcast, stopping at
the first failure. Every failure is raised as a SubmissionError subclass.
"""

import logging
from typing import Optional

from ventspace.broadcast import Broadcaster
from ventspace.errors import ContentRejected, InvalidData, RateLimited
from ventspace.models import MAX_TEXT_LENGTH, normalize_emoji
from ventspace.moderation import classify
from ventspace.rate_limiter import RateLimiter
from ventspace.schemas import MessageResponse
from ventspace.storage import MessageStore
from ventspace.utils import hash_client_id

logger = logging.getLogger(__name__)

NEW_MESSAGE_EVENT = "newMessage"


class IngestionService:
    """Accepts submissions on behalf of the API using injected collaborators."""

    def __init__(self, rate_limiter: RateLimiter, store: MessageStore, broadcaster: Broadcaster):
        self.rate_limiter = rate_limiter
        self.store = store
        self.broadcaster = broadcaster

    def submit(self, client_id: str, text: Optional[str], emoji: Optional[str] = None) -> MessageResponse:
        """
        Submit a message.

        Args:
            client_id: Opaque submitter key, used for rate limiting
            text: Raw message text
            emoji: Reaction emoji; unknown or missing values use the default

        Returns:
            Sanitized projection of the stored message

        Raises:
            InvalidData: text missing or out of bounds
            RateLimited: client is still cooling down
            ContentRejected: moderation refused the text
            StorageFailure: the store could not save the message
        """
        if not isinstance(text, str):
            raise InvalidData("Message text is required")

        if not self.rate_limiter.check_and_record(client_id):
            retry_after = self.rate_limiter.retry_after(client_id)
            logger.info(f"Submission rate limited, retry_after={retry_after:.1f}s")
            raise RateLimited(retry_after)

        verdict = classify(text)
        if not verdict.accepted:
            logger.info(f"Submission rejected by moderation: category={verdict.category.value}")
            raise ContentRejected(verdict.reason, verdict.category.value)

        text = text.strip()
        if len(text) > MAX_TEXT_LENGTH:
            raise InvalidData(f"Message too long (maximum {MAX_TEXT_LENGTH} characters)")

        message = self.store.insert(text, normalize_emoji(emoji), hash_client_id(client_id))
        projection = MessageResponse.from_message(message)

        self.broadcaster.publish({"event": NEW_MESSAGE_EVENT, "data": projection.model_dump()})
        return projection
