"""Domain records shared by the formatting pipeline services."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple, Union


class RequestMode(str, Enum):
    """How the reply of a request is merged back into the document."""

    FREEFORM = "freeform"
    RESTRUCTURE = "restructure"


@dataclass(frozen=True)
class TemplateStructure:
    columns: int
    max_pages: int
    abstract_required: bool
    keywords_required: bool


@dataclass(frozen=True)
class Template:
    """Structural and formatting constraints of one publication venue."""

    id: str
    name: str
    document_class: str
    required_packages: Tuple[str, ...]
    structure: TemplateStructure
    formatting_rules: Tuple[str, ...]
    sample_code: str


@dataclass(frozen=True)
class ConversationMessage:
    role: str  # "user" or "assistant"
    content: str

    @classmethod
    def user(cls, content: str) -> "ConversationMessage":
        return cls(role="user", content=content)

    @classmethod
    def assistant(cls, content: str) -> "ConversationMessage":
        return cls(role="assistant", content=content)


@dataclass(frozen=True)
class GenerationRequest:
    intent_text: str
    document_snapshot: str
    template_id: Optional[str] = None


# ---------------------------------------------------------------------------
# Generation outcomes
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Success:
    reply_text: str


@dataclass(frozen=True)
class RateLimited:
    pass


@dataclass(frozen=True)
class Unauthorized:
    pass


@dataclass(frozen=True)
class InvalidInput:
    pass


@dataclass(frozen=True)
class Failure:
    detail: str


GenerationOutcome = Union[Success, RateLimited, Unauthorized, InvalidInput, Failure]
