from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import JSONResponse

from ..auth import is_authenticated, require_auth
from ..deps import get_generation_client, get_prompts, get_registry
from ..errors import AlreadyInFlight
from ..models import RequestMode
from ..schemas import ApplyTemplateRequest, SessionChatRequest, SetDocumentRequest, StartSessionRequest
from ..services.generation import GenerationClient
from ..services.pipeline import (
    FORMAT_DOCUMENT_INTENT,
    QUICK_ACTIONS,
    TurnResult,
    accept_offer as svc_accept_offer,
    apply_template_intent,
    run_turn,
)
from ..services.session import (
    EditingSession,
    document_stats,
    end_session as svc_end_session,
    get_session,
    list_sessions as svc_list_sessions,
    set_document as svc_set_document,
    start_session as svc_start_session,
)
from ..services.templates import TemplateRegistry

router = APIRouter()


def _require_session(session_id: str) -> EditingSession:
    try:
        return get_session(session_id)
    except KeyError:
        raise HTTPException(status_code=404, detail="session not found")


def _turn_response(result: TurnResult) -> JSONResponse:
    applied = result.applied
    return JSONResponse(
        status_code=result.status_code,
        content={
            "message": {"role": applied.message.role, "content": applied.message.content},
            "replacement": applied.replacement,
            "offer": applied.offer,
            "latexContent": result.document,
        },
    )


async def _run(session: EditingSession, *, intent_text: str, mode: RequestMode, template_id, authenticated, client, registry, prompts):
    try:
        result = await run_turn(
            session,
            intent_text=intent_text,
            mode=mode,
            template_id=template_id,
            client=client,
            registry=registry,
            authenticated=authenticated,
            prompts=prompts,
        )
    except AlreadyInFlight as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return _turn_response(result)


@router.post("/session/start", dependencies=[Depends(require_auth)])
async def start_session(payload: StartSessionRequest):
    session = svc_start_session(name=payload.name, document=payload.latexContent, metadata=payload.metadata)
    return {"session_id": session.session_id, "latexContent": session.document}


@router.get("/session/list", dependencies=[Depends(require_auth)])
async def list_sessions():
    return {"sessions": svc_list_sessions()}


@router.get("/session/{session_id}/history", dependencies=[Depends(require_auth)])
async def get_history(session_id: str):
    session = _require_session(session_id)
    messages = [{"role": m.role, "content": m.content} for m in session.conversation.messages]
    return {
        "session_id": session_id,
        "messages": messages,
        "generating": session.conversation.generation_in_flight,
    }


@router.get("/session/{session_id}/document", dependencies=[Depends(require_auth)])
async def get_document(session_id: str):
    session = _require_session(session_id)
    return {
        "session_id": session_id,
        "name": session.name,
        "latexContent": session.document,
        "pendingOffer": session.pending_offer,
        "stats": document_stats(session.document),
    }


@router.post("/session/{session_id}/document", dependencies=[Depends(require_auth)])
async def set_document(session_id: str, payload: SetDocumentRequest):
    try:
        svc_set_document(session_id, payload.latexContent)
        return {"ok": True}
    except KeyError:
        raise HTTPException(status_code=404, detail="session not found")


@router.delete("/session/{session_id}", dependencies=[Depends(require_auth)])
async def end_session(session_id: str):
    try:
        svc_end_session(session_id)
        return {"ok": True}
    except KeyError:
        raise HTTPException(status_code=404, detail="session not found")


@router.post("/session/{session_id}/chat")
async def chat(
    session_id: str,
    payload: SessionChatRequest,
    authenticated: bool = Depends(is_authenticated),
    client: GenerationClient = Depends(get_generation_client),
    registry: TemplateRegistry = Depends(get_registry),
    prompts: dict = Depends(get_prompts),
):
    session = _require_session(session_id)
    return await _run(
        session,
        intent_text=payload.message,
        mode=payload.mode,
        template_id=payload.selectedTemplate,
        authenticated=authenticated,
        client=client,
        registry=registry,
        prompts=prompts,
    )


@router.post("/session/{session_id}/quick-action/{action}")
async def quick_action(
    session_id: str,
    action: str,
    authenticated: bool = Depends(is_authenticated),
    client: GenerationClient = Depends(get_generation_client),
    registry: TemplateRegistry = Depends(get_registry),
    prompts: dict = Depends(get_prompts),
):
    session = _require_session(session_id)
    intent = QUICK_ACTIONS.get(action)
    if intent is None:
        raise HTTPException(status_code=404, detail=f"unknown quick action: {action}")
    return await _run(
        session,
        intent_text=intent,
        mode=RequestMode.FREEFORM,
        template_id=None,
        authenticated=authenticated,
        client=client,
        registry=registry,
        prompts=prompts,
    )


@router.post("/session/{session_id}/format")
async def format_document(
    session_id: str,
    authenticated: bool = Depends(is_authenticated),
    client: GenerationClient = Depends(get_generation_client),
    registry: TemplateRegistry = Depends(get_registry),
    prompts: dict = Depends(get_prompts),
):
    session = _require_session(session_id)
    return await _run(
        session,
        intent_text=FORMAT_DOCUMENT_INTENT,
        mode=RequestMode.RESTRUCTURE,
        template_id=None,
        authenticated=authenticated,
        client=client,
        registry=registry,
        prompts=prompts,
    )


@router.post("/session/{session_id}/apply-template")
async def apply_template(
    session_id: str,
    payload: ApplyTemplateRequest,
    authenticated: bool = Depends(is_authenticated),
    client: GenerationClient = Depends(get_generation_client),
    registry: TemplateRegistry = Depends(get_registry),
    prompts: dict = Depends(get_prompts),
):
    session = _require_session(session_id)
    template = registry.lookup(payload.templateId)
    if template is None:
        raise HTTPException(status_code=404, detail="template not found")
    return await _run(
        session,
        intent_text=apply_template_intent(template.name),
        mode=RequestMode.RESTRUCTURE,
        template_id=template.id,
        authenticated=authenticated,
        client=client,
        registry=registry,
        prompts=prompts,
    )


@router.post("/session/{session_id}/offer/accept", dependencies=[Depends(require_auth)])
async def accept_offer(session_id: str):
    session = _require_session(session_id)
    try:
        document = svc_accept_offer(session)
    except LookupError as exc:
        raise HTTPException(status_code=409, detail=str(exc))
    return {"ok": True, "latexContent": document}
