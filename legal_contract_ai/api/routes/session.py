"""Drafting session API routes: templates, form, document actions, export"""

import logging

from fastapi import APIRouter, HTTPException, Query
from fastapi.responses import Response

from legal_contract_ai.api.schemas import (
    EditDocumentRequest,
    FormUpdateRequest,
    HealthResponse,
    ReviseRequest,
    SelectTypeRequest,
    SessionState,
    TemplatesResponse,
    TemplateSummary,
    ViewModeRequest,
)
from legal_contract_ai.api.session_store import SessionEntry, SessionStore
from legal_contract_ai.models.contract import ReviewResult
from legal_contract_ai.models.template import ContractTemplate
from legal_contract_ai.services.exporter import (
    MEDIA_TYPES,
    ExportFormat,
    default_filename,
    export_document,
)
from legal_contract_ai.services.session import DraftingSession
from legal_contract_ai.services.template_store import get_template_store
from legal_contract_ai.utils.errors import (
    IncompleteFormError,
    InvalidTransitionError,
    MissingCredentialError,
    RequestError,
    RequestTimeoutError,
    SessionBusyError,
    TemplateNotFoundError,
)

logger = logging.getLogger(__name__)

router = APIRouter()

# Shared session store, replaced from app.py via init_store()
store: SessionStore = SessionStore()


def init_store(shared_store: SessionStore):
    """Set the shared session store (called from app.py)."""
    global store
    store = shared_store


def _http_error(e: Exception) -> HTTPException:
    """Map domain errors to HTTP status codes."""
    if isinstance(e, TemplateNotFoundError):
        return HTTPException(status_code=404, detail=str(e))
    if isinstance(e, MissingCredentialError):
        return HTTPException(status_code=400, detail=str(e))
    if isinstance(e, RequestTimeoutError):
        return HTTPException(status_code=504, detail=str(e))
    if isinstance(e, RequestError):
        return HTTPException(status_code=502, detail=str(e))
    if isinstance(e, (SessionBusyError, InvalidTransitionError)):
        return HTTPException(status_code=409, detail=str(e))
    if isinstance(e, IncompleteFormError):
        return HTTPException(status_code=422, detail=str(e))
    if isinstance(e, ValueError):
        return HTTPException(status_code=400, detail=str(e))
    return HTTPException(status_code=500, detail=str(e))


async def _get_entry(session_id: str) -> SessionEntry:
    entry = await store.get(session_id)
    if entry is None:
        raise HTTPException(status_code=404, detail="Session not found or expired")
    return entry


def _state(session: DraftingSession) -> SessionState:
    return SessionState(
        session_id=session.id,
        step=session.step,
        view_mode=session.view_mode,
        contract_type=session.contract_type,
        form_data=session.form_data,
        missing_fields=session.missing_fields(),
        document=session.document,
        review=session.review_result,
        messages=session.messages,
        busy=session.busy,
        last_error=session.last_error,
    )


# =========================================================
# Templates
# =========================================================

@router.get("/api/templates", response_model=TemplatesResponse)
async def list_templates():
    """List the built-in contract templates."""
    templates = [
        TemplateSummary(
            id=t.id,
            name=t.name,
            description=t.description,
            icon=t.icon,
            field_count=len(t.fields),
        )
        for t in get_template_store().list_templates()
    ]
    return TemplatesResponse(templates=templates)


@router.get("/api/templates/{contract_type}", response_model=ContractTemplate)
async def get_template(contract_type: str):
    """Full template: form fields and the sample document."""
    try:
        return get_template_store().require_template(contract_type)
    except TemplateNotFoundError as e:
        raise _http_error(e)


# =========================================================
# Sessions
# =========================================================

@router.post("/api/sessions", response_model=SessionState, status_code=201)
async def create_session():
    entry = await store.create()
    logger.info(f"Session {entry.session_id} created")
    return _state(entry.session)


@router.get("/api/sessions/{session_id}", response_model=SessionState)
async def get_session(session_id: str):
    entry = await _get_entry(session_id)
    return _state(entry.session)


@router.delete("/api/sessions/{session_id}")
async def delete_session(session_id: str):
    deleted = await store.delete(session_id)
    if not deleted:
        raise HTTPException(status_code=404, detail="Session not found or expired")
    return {"message": "Session deleted", "session_id": session_id}


@router.post("/api/sessions/{session_id}/type", response_model=SessionState)
async def select_type(session_id: str, request: SelectTypeRequest):
    """Pick the contract type and move to the form."""
    entry = await _get_entry(session_id)
    try:
        entry.session.select_type(request.contract_type)
    except (ValueError, InvalidTransitionError, SessionBusyError) as e:
        raise _http_error(e)
    return _state(entry.session)


@router.put("/api/sessions/{session_id}/form", response_model=SessionState)
async def update_form(session_id: str, request: FormUpdateRequest):
    entry = await _get_entry(session_id)
    try:
        entry.session.update_form(request.form_data)
    except (ValueError, InvalidTransitionError, SessionBusyError) as e:
        raise _http_error(e)
    return _state(entry.session)


@router.post("/api/sessions/{session_id}/submit", response_model=SessionState)
async def submit_form(session_id: str):
    """Generate the contract from the filled form."""
    entry = await _get_entry(session_id)
    try:
        await entry.session.submit_form()
    except (RequestError, IncompleteFormError, InvalidTransitionError, SessionBusyError) as e:
        raise _http_error(e)
    return _state(entry.session)


@router.post("/api/sessions/{session_id}/back", response_model=SessionState)
async def go_back(session_id: str):
    entry = await _get_entry(session_id)
    try:
        entry.session.go_back()
    except (InvalidTransitionError, SessionBusyError) as e:
        raise _http_error(e)
    return _state(entry.session)


@router.post("/api/sessions/{session_id}/reset", response_model=SessionState)
async def reset_session(session_id: str):
    entry = await _get_entry(session_id)
    try:
        entry.session.reset()
    except SessionBusyError as e:
        raise _http_error(e)
    return _state(entry.session)


@router.put("/api/sessions/{session_id}/view", response_model=SessionState)
async def set_view_mode(session_id: str, request: ViewModeRequest):
    entry = await _get_entry(session_id)
    try:
        entry.session.set_view_mode(request.mode)
    except (InvalidTransitionError, SessionBusyError) as e:
        raise _http_error(e)
    return _state(entry.session)


@router.put("/api/sessions/{session_id}/document", response_model=SessionState)
async def edit_document(session_id: str, request: EditDocumentRequest):
    """Replace the document with user-edited text."""
    entry = await _get_entry(session_id)
    try:
        entry.session.edit_document(request.content)
    except (InvalidTransitionError, SessionBusyError) as e:
        raise _http_error(e)
    return _state(entry.session)


@router.post("/api/sessions/{session_id}/review", response_model=ReviewResult)
async def review_document(session_id: str):
    """AI review of the current document."""
    entry = await _get_entry(session_id)
    try:
        return await entry.session.review()
    except (RequestError, InvalidTransitionError, SessionBusyError) as e:
        raise _http_error(e)


@router.post("/api/sessions/{session_id}/revise", response_model=SessionState)
async def revise_document(session_id: str, request: ReviseRequest):
    """Chat-driven revision."""
    entry = await _get_entry(session_id)
    try:
        await entry.session.revise(request.instructions)
    except (RequestError, ValueError, InvalidTransitionError, SessionBusyError) as e:
        raise _http_error(e)
    return _state(entry.session)


@router.post("/api/sessions/{session_id}/regenerate", response_model=SessionState)
async def regenerate_document(session_id: str):
    entry = await _get_entry(session_id)
    try:
        await entry.session.regenerate()
    except (RequestError, InvalidTransitionError, SessionBusyError) as e:
        raise _http_error(e)
    return _state(entry.session)


@router.get("/api/sessions/{session_id}/export")
async def export_session_document(
    session_id: str,
    fmt: ExportFormat = Query(ExportFormat.TEXT, alias="format"),
):
    """Download the current document as txt, html or pdf."""
    entry = await _get_entry(session_id)
    session = entry.session
    if not session.document:
        raise HTTPException(status_code=409, detail="No document to export")

    title = session.template.name if session.template else "Contract"
    filename = default_filename(fmt)
    return Response(
        content=export_document(session.document, fmt, title),
        media_type=MEDIA_TYPES[fmt],
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/health", response_model=HealthResponse)
async def health():
    """Health check endpoint"""
    return HealthResponse(status="ok", active_sessions=store.active_count)
