import logging
import re
from typing import Optional

import openai
from openai import AsyncOpenAI

from ..config import Settings, load_settings
from ..models import Failure, GenerationOutcome, InvalidInput, RateLimited, Success, Unauthorized

logger = logging.getLogger(__name__)

# Matched against the error text of a failed exchange.
RATE_LIMIT_PATTERN = re.compile(
    r"quota|rate[ _-]?limit|too many requests|resource[ _]exhausted",
    re.IGNORECASE,
)


def classify_error(exc: BaseException) -> GenerationOutcome:
    if isinstance(exc, openai.RateLimitError) or RATE_LIMIT_PATTERN.search(str(exc)):
        return RateLimited()
    return Failure(detail=str(exc))


class GenerationClient:
    """Single request/response exchange with the chat completions service."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or load_settings()

    @property
    def model(self) -> str:
        return self.settings.openai_model

    async def generate(self, instruction_text: str, *, intent_text: str, authenticated: bool) -> GenerationOutcome:
        if not authenticated:
            return Unauthorized()
        if not intent_text or not intent_text.strip():
            return InvalidInput()
        if not self.settings.openai_api_key:
            return Failure(detail="OPENAI_API_KEY not configured")

        # Retries are left to the user; the SDK would otherwise retry 429s itself.
        logger.debug("Sending instruction (%d chars) to %s", len(instruction_text), self.model)
        try:
            async with AsyncOpenAI(
                api_key=self.settings.openai_api_key,
                timeout=self.settings.openai_timeout,
                max_retries=0,
            ) as client:
                resp = await client.chat.completions.create(
                    model=self.model,
                    messages=[{"role": "user", "content": instruction_text}],
                    temperature=self.settings.openai_temperature,
                    max_tokens=self.settings.openai_max_tokens,
                )
            reply = resp.choices[0].message.content or ""
        except Exception as exc:
            outcome = classify_error(exc)
            logger.warning("Generation failed (%s): %s", type(outcome).__name__, exc)
            return outcome

        logger.info("Generation succeeded: %d chars from %s", len(reply), self.model)
        return Success(reply_text=reply)
