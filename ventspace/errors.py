"""
Submission error taxonomy.

Every rejection at the ingestion boundary is a SubmissionError carrying a
machine-readable category and the HTTP status the API answers with.
"""

from typing import Optional


class SubmissionError(Exception):
    """Base class for errors reported synchronously to the submitter."""

    category: str = "server_error"
    status_code: int = 500

    def __init__(self, detail: str):
        super().__init__(detail)
        self.detail = detail


class RateLimited(SubmissionError):
    """The client posted again before its cooldown elapsed. Transient."""

    category = "rate_limited"
    status_code = 429

    def __init__(self, retry_after: float, detail: str = "Please wait before posting again."):
        super().__init__(detail)
        self.retry_after = retry_after


class ContentRejected(SubmissionError):
    """Moderation refused the text. Permanent for that exact text."""

    category = "content_rejected"
    status_code = 400

    def __init__(self, detail: str, reason_category: Optional[str] = None):
        super().__init__(detail)
        self.reason_category = reason_category


class InvalidData(SubmissionError):
    """Malformed request or data outside the message bounds."""

    category = "invalid_data"
    status_code = 400


class StorageFailure(SubmissionError):
    """Backend unreachable or write error. Not retried by the server."""

    category = "server_error"
    status_code = 500
