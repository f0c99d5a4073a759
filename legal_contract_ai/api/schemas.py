"""Request/response schemas for the drafting API"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, Field

from legal_contract_ai import __version__
from legal_contract_ai.models.contract import ReviewResult
from legal_contract_ai.models.session import ChatMessage, SessionStep, ViewMode


class TemplateSummary(BaseModel):
    """A contract template in the templates list"""
    id: str
    name: str
    description: str = ""
    icon: str = "file"
    field_count: int = 0


class TemplatesResponse(BaseModel):
    """Response for listing contract templates"""
    templates: list[TemplateSummary] = []


class SelectTypeRequest(BaseModel):
    contract_type: str = Field(..., min_length=1)


class FormUpdateRequest(BaseModel):
    """Partial form update: field id -> value"""
    form_data: dict[str, str]


class ViewModeRequest(BaseModel):
    mode: ViewMode


class ReviseRequest(BaseModel):
    """Free-text revision instructions from the chat box"""
    instructions: str = Field(..., min_length=1, max_length=5000)


class EditDocumentRequest(BaseModel):
    content: str


class SessionState(BaseModel):
    """Snapshot of a drafting session"""
    session_id: str
    step: SessionStep
    view_mode: ViewMode
    contract_type: Optional[str] = None
    form_data: dict[str, str] = {}
    missing_fields: list[str] = []
    document: Optional[str] = None
    review: Optional[ReviewResult] = None
    messages: list[ChatMessage] = []
    busy: bool = False
    last_error: Optional[str] = None


class CredentialRequest(BaseModel):
    api_key: str = Field(..., min_length=1)


class CredentialStatus(BaseModel):
    is_set: bool
    source: Optional[str] = None  # "stored" | "environment"


class HealthResponse(BaseModel):
    """Health check response"""
    status: str
    timestamp: datetime = Field(default_factory=datetime.now)
    version: str = __version__
    active_sessions: int = 0
