import logging
from dataclasses import dataclass
from typing import Callable, Optional

from ..models import (
    ConversationMessage,
    Failure,
    GenerationOutcome,
    InvalidInput,
    RateLimited,
    RequestMode,
    Success,
    Unauthorized,
)
from .interpreter import extract_latex

logger = logging.getLogger(__name__)

RATE_LIMIT_ADVISORY = "Rate limit exceeded. Please try again in a moment."
UNAUTHORIZED_MESSAGE = "Unauthorized"
INVALID_INPUT_MESSAGE = "Message is required"
FAILURE_PREFIX = "Failed to get AI response: "


@dataclass(frozen=True)
class ApplyResult:
    message: ConversationMessage
    # Overwrites the document buffer when set.
    replacement: Optional[str] = None
    # Extracted source the user may accept explicitly (freeform mode only).
    offer: Optional[str] = None


def error_message(outcome: GenerationOutcome) -> str:
    """User-facing text for a non-successful outcome."""
    if isinstance(outcome, RateLimited):
        return RATE_LIMIT_ADVISORY
    if isinstance(outcome, Unauthorized):
        return UNAUTHORIZED_MESSAGE
    if isinstance(outcome, InvalidInput):
        return INVALID_INPUT_MESSAGE
    if isinstance(outcome, Failure):
        return FAILURE_PREFIX + outcome.detail
    raise TypeError(f"Not an error outcome: {outcome!r}")


def apply_outcome(
    outcome: GenerationOutcome,
    mode: RequestMode,
    extract: Callable[[str], Optional[str]] = extract_latex,
) -> ApplyResult:
    """Turn a generation outcome into the assistant message and buffer decision.

    Restructure requests overwrite the buffer with whatever source the reply
    carries; freeform requests only offer it.
    """
    if not isinstance(outcome, Success):
        return ApplyResult(message=ConversationMessage.assistant(error_message(outcome)))

    message = ConversationMessage.assistant(outcome.reply_text)
    extracted = extract(outcome.reply_text)
    if extracted is None:
        return ApplyResult(message=message)
    if RequestMode(mode) is RequestMode.RESTRUCTURE:
        logger.info("Auto-applying %d chars of extracted source", len(extracted))
        return ApplyResult(message=message, replacement=extracted)
    return ApplyResult(message=message, offer=extracted)
