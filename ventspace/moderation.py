"""
Pattern-based content moderation.

Rules are evaluated in declared order against the raw text and the first
match decides the rejection category. Categories are listed most severe
first: self-harm, abusive language, discriminatory language, spam.
"""

import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import Optional

logger = logging.getLogger(__name__)

MIN_TEXT_LENGTH = 3
CAPS_MIN_LETTERS = 10
CAPS_MAX_RATIO = 0.7


class Category(str, Enum):
    """Why a message was rejected."""

    TOO_SHORT = "too_short"
    SELF_HARM_RESOURCE = "self_harm_resource"
    INAPPROPRIATE_LANGUAGE = "inappropriate_language"
    DISCRIMINATORY_LANGUAGE = "discriminatory_language"
    SPAM = "spam"
    EXCESSIVE_CAPITALS = "excessive_capitals"


REASONS = {
    Category.TOO_SHORT: "Message too short (minimum 3 characters).",
    Category.SELF_HARM_RESOURCE: (
        "Content related to self-harm detected. "
        "Please reach out to the 988 Suicide & Crisis Lifeline (call or text 988)."
    ),
    Category.INAPPROPRIATE_LANGUAGE: "Inappropriate language detected.",
    Category.DISCRIMINATORY_LANGUAGE: "Discriminatory language is not allowed.",
    Category.SPAM: "Spam or prohibited content detected.",
    Category.EXCESSIVE_CAPITALS: "Please avoid excessive capital letters.",
}


def _rule(category: Category, pattern: str) -> tuple:
    # ASCII word boundaries and classes, so an accented letter never hides a match
    return category, re.compile(pattern, re.IGNORECASE | re.ASCII)


# Order matters: first match wins.
RULES = (
    _rule(Category.SELF_HARM_RESOURCE,
          r"\b(kill|suicide|harm|hurt|cut|end)\s+(myself|yourself|themselves|my\s*self|your\s*self)\b"),
    _rule(Category.SELF_HARM_RESOURCE, r"\b(want|going|gonna)\s+to\s+(die|kill|end)\b"),
    _rule(Category.SELF_HARM_RESOURCE, r"\b(suicidal|self[\s-]harm)\b"),

    # Repeated letters catch stretched spellings ("fuuuck", "shiiit")
    _rule(Category.INAPPROPRIATE_LANGUAGE,
          r"\b(f+u+c+k+|sh+i+t+|b+i+t+c+h+|a+s+s+h+o+l+e+|c+u+n+t+|d+a+m+n+|h+e+l+l+)\b"),
    _rule(Category.INAPPROPRIATE_LANGUAGE, r"\b(stupid|idiot|dumb|moron|retard)\s+(you|people|everyone|person)\b"),
    _rule(Category.INAPPROPRIATE_LANGUAGE, r"\b(hate|despise|loathe)\s+(you|everyone|people|all)\b"),
    _rule(Category.INAPPROPRIATE_LANGUAGE, r"\b(kill|murder|hurt|attack|beat)\s+(you|them|someone|people)\b"),
    _rule(Category.INAPPROPRIATE_LANGUAGE, r"\b(death|violence)\s+(threat|wish)\b"),
    _rule(Category.INAPPROPRIATE_LANGUAGE, r"\b(shoot|stab|punch|hit)\s+(you|them|someone)\b"),

    _rule(Category.DISCRIMINATORY_LANGUAGE, r"\b(racist|sexist|homophobic|transphobic)\b"),
    _rule(Category.DISCRIMINATORY_LANGUAGE, r"\b(n+i+g+g+|f+a+g+g+|tr+a+n+n+y+)\b"),

    _rule(Category.SPAM, r"(.)\1{10,}"),
    _rule(Category.SPAM, r"\b(buy|click|visit|check)\s+(now|here|this)\b"),
    _rule(Category.SPAM, r"(https?://|www\.)"),
    _rule(Category.SPAM, r"\b[\w.-]+@[\w.-]+\.\w+\b"),
)

_LETTER = re.compile(r"[A-Za-z]")
_UPPER = re.compile(r"[A-Z]")


@dataclass(frozen=True)
class ModerationResult:
    accepted: bool
    reason: Optional[str] = None
    category: Optional[Category] = None


ACCEPTED = ModerationResult(accepted=True)


def _reject(category: Category) -> ModerationResult:
    return ModerationResult(accepted=False, reason=REASONS[category], category=category)


def classify(text: str) -> ModerationResult:
    """
    Classify submitted text.

    Args:
        text: Raw submitted text (untrimmed)

    Returns:
        ModerationResult; on rejection `reason` is the user-facing message
        and `category` identifies the rule group that fired.
    """
    if len(text.strip()) < MIN_TEXT_LENGTH:
        return _reject(Category.TOO_SHORT)

    for category, pattern in RULES:
        if pattern.search(text):
            logger.debug(f"Moderation rule matched: category={category.value}, pattern={pattern.pattern}")
            return _reject(category)

    letters = len(_LETTER.findall(text))
    if letters > CAPS_MIN_LETTERS:
        upper = len(_UPPER.findall(text))
        if upper / letters > CAPS_MAX_RATIO:
            return _reject(Category.EXCESSIVE_CAPITALS)

    return ACCEPTED
