"""Drafting-session models"""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class SessionStep(str, Enum):
    """Where the user is in the drafting flow"""
    TYPE_SELECTION = "type_selection"
    FORM_FILLING = "form_filling"
    DOCUMENT_VIEW = "document_view"


class ViewMode(str, Enum):
    """How the document is shown in DOCUMENT_VIEW"""
    PREVIEW = "preview"
    CHAT = "chat"


class MessageRole(str, Enum):
    """Role of a chat message sender"""
    USER = "user"
    ASSISTANT = "assistant"
    SYSTEM = "system"


class ChatMessage(BaseModel):
    """A single message in the revision chat"""
    id: str
    role: MessageRole
    content: str
    timestamp: datetime = Field(default_factory=datetime.now)
