from typing import Optional, Dict, Any
from pydantic import BaseModel, Field

from .models import RequestMode


class AIChatRequest(BaseModel):
    message: str = Field("", description="The user's request in plain language")
    latexContent: Optional[str] = Field(None, description="Current LaTeX document; only the first 2000 characters are sent")
    selectedTemplate: Optional[str] = Field(None, description="Template id from /api/templates")
    mode: RequestMode = Field(RequestMode.FREEFORM, description="freeform answers a question; restructure reformats the whole document")


class AIChatResponse(BaseModel):
    response: str
    model: str


class ErrorResponse(BaseModel):
    error: str


class StartSessionRequest(BaseModel):
    name: Optional[str] = Field(None, description="Document name used in the starter document title")
    latexContent: Optional[str] = Field(None, description="Initial document; defaults to a starter article")
    metadata: Optional[Dict[str, Any]] = None


class SetDocumentRequest(BaseModel):
    latexContent: str = Field(..., description="The full LaTeX document as edited by the user")


class SessionChatRequest(BaseModel):
    message: str = ""
    mode: RequestMode = RequestMode.FREEFORM
    selectedTemplate: Optional[str] = None


class ApplyTemplateRequest(BaseModel):
    templateId: str
