"""API key routes: status, set, clear and connectivity check"""

from fastapi import APIRouter, HTTPException

from legal_contract_ai.api.schemas import CredentialRequest, CredentialStatus
from legal_contract_ai.models.contract import ApiKeyCheck
from legal_contract_ai.services.ai_service import AIService
from legal_contract_ai.services.credentials import get_credential_store

router = APIRouter()


def _status() -> CredentialStatus:
    credentials = get_credential_store()
    return CredentialStatus(is_set=credentials.is_set, source=credentials.source)


@router.get("/api/credential", response_model=CredentialStatus)
async def credential_status():
    """Whether an API key is available. The key itself is never returned."""
    return _status()


@router.put("/api/credential", response_model=CredentialStatus)
async def set_credential(request: CredentialRequest):
    try:
        get_credential_store().set(request.api_key)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _status()


@router.delete("/api/credential", response_model=CredentialStatus)
async def clear_credential():
    get_credential_store().clear()
    return _status()


@router.post("/api/credential/check", response_model=ApiKeyCheck)
async def check_credential():
    """Probe the AI engine with the active key."""
    ai = AIService(api_key_provider=get_credential_store().get)
    return await ai.check_api_key()
