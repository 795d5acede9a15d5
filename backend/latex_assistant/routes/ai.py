import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..auth import is_authenticated
from ..deps import get_generation_client, get_prompts, get_registry
from ..models import GenerationRequest, Success
from ..schemas import AIChatRequest
from ..services.apply import error_message
from ..services.generation import GenerationClient
from ..services.pipeline import generate_reply, status_code_for
from ..services.prompting import snapshot
from ..services.templates import TemplateRegistry

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/ai/chat")
async def ai_chat(
    req: AIChatRequest,
    authenticated: bool = Depends(is_authenticated),
    client: GenerationClient = Depends(get_generation_client),
    registry: TemplateRegistry = Depends(get_registry),
    prompts: dict = Depends(get_prompts),
):
    request = GenerationRequest(
        intent_text=req.message,
        document_snapshot=snapshot(req.latexContent),
        template_id=req.selectedTemplate,
    )
    outcome = await generate_reply(
        request,
        mode=req.mode,
        client=client,
        registry=registry,
        authenticated=authenticated,
        prompts=prompts,
    )
    if isinstance(outcome, Success):
        return {"response": outcome.reply_text, "model": client.model}

    status = status_code_for(outcome)
    logger.info("AI chat request rejected with %d", status)
    return JSONResponse(status_code=status, content={"error": error_message(outcome)})
