"""Run one conversational formatting turn end to end.

intent + document + template -> instruction -> generation outcome ->
extraction -> buffer decision, with the session's in-flight gate held for
the whole turn.
"""

import logging
from dataclasses import dataclass
from typing import Dict, Optional, Type

from ..models import (
    ConversationMessage,
    Failure,
    GenerationOutcome,
    GenerationRequest,
    InvalidInput,
    RateLimited,
    RequestMode,
    Success,
    Unauthorized,
)
from .apply import ApplyResult, apply_outcome
from .generation import GenerationClient
from .prompting import compose_instruction, snapshot
from .session import EditingSession
from .templates import TemplateRegistry

logger = logging.getLogger(__name__)

STATUS_BY_OUTCOME: Dict[Type, int] = {
    Success: 200,
    InvalidInput: 400,
    Unauthorized: 401,
    RateLimited: 429,
    Failure: 500,
}

QUICK_ACTIONS: Dict[str, str] = {
    "equation": "Insert equation template",
    "table": "Create table structure",
    "figure": "Add figure environment",
    "bibliography": "Format bibliography",
}

FORMAT_DOCUMENT_INTENT = (
    "Format this document: fix the preamble, sectioning and environments so it is clean, "
    "consistent LaTeX, without changing its content."
)


def status_code_for(outcome: GenerationOutcome) -> int:
    return STATUS_BY_OUTCOME[type(outcome)]


def apply_template_intent(template_name: str) -> str:
    return f"Apply the {template_name} template to this document."


@dataclass(frozen=True)
class TurnResult:
    outcome: GenerationOutcome
    applied: ApplyResult
    document: str

    @property
    def status_code(self) -> int:
        return status_code_for(self.outcome)


async def generate_reply(
    request: GenerationRequest,
    *,
    mode: RequestMode,
    client: GenerationClient,
    registry: TemplateRegistry,
    authenticated: bool,
    prompts: Optional[dict] = None,
) -> GenerationOutcome:
    template = registry.lookup(request.template_id)
    if request.template_id and template is None:
        logger.warning("Ignoring unknown template id %r", request.template_id)
    instruction = compose_instruction(
        mode=mode,
        intent_text=request.intent_text,
        document_snapshot=request.document_snapshot,
        template=template,
        prompts=prompts,
    )
    return await client.generate(instruction, intent_text=request.intent_text, authenticated=authenticated)


async def run_turn(
    session: EditingSession,
    *,
    intent_text: str,
    mode: RequestMode,
    client: GenerationClient,
    registry: TemplateRegistry,
    authenticated: bool,
    template_id: Optional[str] = None,
    prompts: Optional[dict] = None,
) -> TurnResult:
    """Send one request for ``session`` and fold the outcome back in.

    Raises:
        AlreadyInFlight: another turn of this session is still running.
    """
    mode = RequestMode(mode)
    conversation = session.conversation
    with conversation.generating():
        conversation.append(ConversationMessage.user(intent_text))
        request = GenerationRequest(
            intent_text=intent_text,
            document_snapshot=snapshot(session.document),
            template_id=template_id,
        )
        outcome = await generate_reply(
            request,
            mode=mode,
            client=client,
            registry=registry,
            authenticated=authenticated,
            prompts=prompts,
        )
        applied = apply_outcome(outcome, mode)
        conversation.append(applied.message)
        if applied.replacement is not None:
            session.replace_document(applied.replacement)
            logger.info("Session %s: document replaced (%s)", session.session_id, mode.value)
        # Only the latest reply can be accepted; prose and errors withdraw older offers.
        session.pending_offer = applied.offer
    return TurnResult(outcome=outcome, applied=applied, document=session.document)


def accept_offer(session: EditingSession) -> str:
    """Overwrite the document with the pending offer, as an explicit user action.

    Raises:
        LookupError: there is no pending offer.
    """
    if session.pending_offer is None:
        raise LookupError("no pending offer")
    session.replace_document(session.pending_offer)
    logger.info("Session %s: offer accepted", session.session_id)
    return session.document
