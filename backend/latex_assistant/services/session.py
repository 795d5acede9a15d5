import contextlib
import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Dict, Any, Iterator, List, Optional

from langchain_core.chat_history import InMemoryChatMessageHistory
from langchain_core.messages import AIMessage, HumanMessage

from ..errors import AlreadyInFlight
from ..models import ConversationMessage

logger = logging.getLogger(__name__)


class GenerationState(str, Enum):
    IDLE = "idle"
    GENERATING = "generating"


class ConversationState:
    """Append-only message log plus the single in-flight request gate."""

    def __init__(self):
        self._history = InMemoryChatMessageHistory()
        self.state = GenerationState.IDLE

    @property
    def messages(self) -> List[ConversationMessage]:
        return [
            ConversationMessage(role="user" if m.type == "human" else "assistant", content=str(m.content))
            for m in self._history.messages
        ]

    @property
    def generation_in_flight(self) -> bool:
        return self.state is GenerationState.GENERATING

    def append(self, message: ConversationMessage) -> None:
        if message.role == "user":
            self._history.add_messages([HumanMessage(content=message.content)])
        elif message.role == "assistant":
            self._history.add_messages([AIMessage(content=message.content)])
        else:
            raise ValueError(f"Unsupported message role: {message.role!r}")

    def begin_request(self) -> None:
        if self.state is GenerationState.GENERATING:
            raise AlreadyInFlight()
        self.state = GenerationState.GENERATING

    def end_request(self) -> None:
        self.state = GenerationState.IDLE

    @contextlib.contextmanager
    def generating(self) -> Iterator["ConversationState"]:
        self.begin_request()
        try:
            yield self
        finally:
            self.end_request()


def default_document(name: str = "Untitled Document") -> str:
    return (
        "\\documentclass{article}\n"
        "\\usepackage[utf8]{inputenc}\n\n"
        f"\\title{{{name}}}\n"
        "\\author{}\n"
        "\\date{}\n\n"
        "\\begin{document}\n\n"
        "\\maketitle\n\n"
        "\\section{Introduction}\n\n"
        "Start writing your content here...\n\n"
        "\\end{document}"
    )


@dataclass
class EditingSession:
    session_id: str
    name: str
    document: str
    conversation: ConversationState = field(default_factory=ConversationState)
    pending_offer: Optional[str] = None
    created_at: str = field(default_factory=lambda: datetime.now(timezone.utc).isoformat())
    metadata: Dict[str, Any] = field(default_factory=dict)

    def replace_document(self, text: str) -> None:
        self.document = text
        self.pending_offer = None


SESSIONS: Dict[str, EditingSession] = {}


def start_session(*, name: Optional[str] = None, document: Optional[str] = None, metadata: Optional[Dict[str, Any]] = None) -> EditingSession:
    session_id = str(uuid.uuid4())
    name = name or "Untitled Document"
    session = EditingSession(
        session_id=session_id,
        name=name,
        document=document if document is not None else default_document(name),
        metadata=dict(metadata or {}),
    )
    SESSIONS[session_id] = session
    logger.info("Started session %s (%s)", session_id, name)
    return session


def get_session(session_id: str) -> EditingSession:
    session = SESSIONS.get(session_id)
    if session is None:
        raise KeyError("session not found")
    return session


def end_session(session_id: str) -> None:
    if SESSIONS.pop(session_id, None) is None:
        raise KeyError("session not found")
    logger.info("Ended session %s", session_id)


def list_sessions() -> List[Dict[str, Any]]:
    return [
        {
            "session_id": s.session_id,
            "name": s.name,
            "created_at": s.created_at,
            "message_count": len(s.conversation.messages),
            "generating": s.conversation.generation_in_flight,
            "metadata": dict(s.metadata),
        }
        for s in SESSIONS.values()
    ]


def set_document(session_id: str, text: str) -> None:
    """Direct user edit of the document buffer."""
    get_session(session_id).document = text


def document_stats(text: str) -> Dict[str, int]:
    return {
        "lines": len(text.split("\n")),
        "characters": len(text),
        "words": len(text.split()),
    }
