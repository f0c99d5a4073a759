"""Backend function: POST /functions/v1/generate-contract"""

import logging
import time
from typing import Optional

from fastapi import APIRouter, Request
from fastapi.responses import JSONResponse

from legal_contract_ai.db.supabase import get_backend
from legal_contract_ai.models.contract import GenerateContractRequest, GenerateContractResponse
from legal_contract_ai.services.prompts import PromptKind, build_prompt, system_role
from legal_contract_ai.utils.config import Settings, get_settings
from legal_contract_ai.utils.errors import HttpError, MissingCredentialError
from legal_contract_ai.utils.llm import BACKEND_FUNCTION_PATH, LLMClient, RequestOptions

logger = logging.getLogger(__name__)

router = APIRouter()

MISSING_KEY_MESSAGE = "API key not found. Make sure you've set your API key in the application."


def _bearer_token(request: Request) -> Optional[str]:
    header = request.headers.get("authorization") or ""
    if header.startswith("Bearer "):
        return header[len("Bearer "):].strip() or None
    return None


def _resolve_api_key(request: Request, user_id: Optional[str], settings: Settings) -> Optional[str]:
    """Bearer header, then the user's stored key, then the configured key."""
    api_key = _bearer_token(request)
    if api_key:
        return api_key

    backend = get_backend(settings)
    if backend is not None and user_id:
        try:
            api_key = backend.get_api_key(user_id)
        except Exception as e:
            logger.warning(f"API key lookup failed for user {user_id}: {e}")
        if api_key:
            return api_key

    if settings.llm_provider == "anthropic":
        return settings.anthropic_api_key
    return settings.openai_api_key


def _save_contract(body: GenerateContractRequest, content: str, settings: Settings) -> str:
    """Persist to the contracts table when Supabase is configured."""
    backend = get_backend(settings)
    if backend is not None:
        try:
            contract_id = backend.save_contract(
                body.user_id, body.contract_type, content, body.form_data
            )
            if contract_id:
                return str(contract_id)
        except Exception as e:
            logger.warning(f"Could not save generated contract: {e}")
    return f"local-{int(time.time() * 1000)}"


@router.post(BACKEND_FUNCTION_PATH, response_model=GenerateContractResponse)
async def generate_contract(body: GenerateContractRequest, request: Request):
    """Draft a contract server-side with the caller's credential."""
    settings = get_settings()
    logger.info(
        f"Received contract generation request: type={body.contract_type}, "
        f"user={body.user_id}, fields={list(body.form_data)}"
    )

    api_key = _resolve_api_key(request, body.user_id, settings)
    if not api_key:
        logger.error("No API key available")
        return JSONResponse(status_code=400, content={"error": MISSING_KEY_MESSAGE})

    client = LLMClient(settings, api_key_provider=lambda: api_key)
    prompt = build_prompt(
        PromptKind.GENERATE,
        body.contract_type,
        body.form_data,
        body.template_sample or "",
        max_length=settings.max_template_length,
    )

    try:
        content = await client.call(
            prompt,
            system_role(PromptKind.GENERATE),
            RequestOptions(
                temperature=settings.generate_temperature,
                max_tokens=settings.llm_max_tokens,
                timeout=settings.generate_timeout,
            ),
        )
    except (MissingCredentialError, HttpError) as e:
        logger.error(f"LLM API error: {e}")
        return JSONResponse(status_code=400, content={"error": str(e)})
    except Exception as e:
        logger.exception("Error generating contract")
        return JSONResponse(
            status_code=500,
            content={"error": "Failed to generate contract. Please try again.", "details": str(e)},
        )

    contract_id = _save_contract(body, content, settings)
    logger.info(f"Contract generated successfully: {contract_id}")
    return GenerateContractResponse(content=content, contract_id=contract_id)
