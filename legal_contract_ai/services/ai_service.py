"""AI service: generation, review and revision over the LLM client"""

import json
import logging
import re
from typing import Callable, Iterator, Mapping, Optional

from pydantic import ValidationError

from legal_contract_ai.models.contract import ApiKeyCheck, ReviewResult
from legal_contract_ai.services.prompts import PromptKind, build_prompt, system_role
from legal_contract_ai.utils.config import Settings, get_settings
from legal_contract_ai.utils.errors import (
    HttpError,
    MissingCredentialError,
    NoContentReturnedError,
    RequestError,
)
from legal_contract_ai.utils.llm import LLMClient, RequestOptions

logger = logging.getLogger(__name__)

DEGRADED_SUGGESTION = "AI response format error, please try again"
DEGRADED_RISK = "Unable to analyze risks due to response format error"

# First "{" through last "}"
_JSON_OBJECT = re.compile(r"(\{[\s\S]*\})")


def degraded_review() -> ReviewResult:
    """Review result used when the model's answer cannot be parsed."""
    return ReviewResult(
        suggestions=[DEGRADED_SUGGESTION],
        risks=[DEGRADED_RISK],
        completeness=0,
    )


def _json_candidates(text: str) -> Iterator[str]:
    stripped = text.strip()
    yield stripped

    if "```json" in stripped:
        yield stripped.split("```json")[1].split("```")[0].strip()
    elif "```" in stripped:
        parts = stripped.split("```")
        if len(parts) >= 3:
            yield parts[1].strip()

    match = _JSON_OBJECT.search(stripped)
    if match:
        yield match.group(1)


def parse_review_response(text: Optional[str]) -> ReviewResult:
    """Extract the review JSON object from a model answer.

    Never raises: an answer without a usable JSON object degrades to a
    zero-completeness result so the session stays usable.
    """
    for candidate in _json_candidates(text or ""):
        try:
            data = json.loads(candidate)
        except json.JSONDecodeError:
            continue
        if not isinstance(data, dict):
            continue
        try:
            return ReviewResult.model_validate(data)
        except ValidationError as e:
            logger.warning(f"Review JSON did not match the expected shape: {e}")
            break

    logger.warning(f"Failed to parse review JSON. Raw: {(text or '')[:500]}")
    return degraded_review()


class AIService:
    """Drafting use cases: generate, review, revise, key check"""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[LLMClient] = None,
        api_key_provider: Optional[Callable[[], Optional[str]]] = None,
    ):
        self.settings = settings or get_settings()
        self.client = client or LLMClient(self.settings, api_key_provider)

    async def generate_contract(
        self,
        contract_type: str,
        form_data: Mapping[str, str],
        template: str,
    ) -> str:
        """Draft a full contract from form data and a template sample.

        With ``use_backend_function`` the request is delegated to the
        generate-contract function, which performs substitution itself.
        """
        logger.info(f"Generating {contract_type} contract ({len(form_data)} fields)")

        if self.settings.use_backend_function:
            data = await self.client.call_backend_function(
                contract_type,
                dict(form_data),
                template or "",
                self.settings.user_id,
                timeout=self.settings.generate_timeout,
            )
            logger.info(f"Backend generated contract {data.get('contractId')}")
            return data["content"]

        prompt = build_prompt(
            PromptKind.GENERATE,
            contract_type,
            form_data,
            template or "",
            max_length=self.settings.max_template_length,
        )
        return await self.client.call(
            prompt,
            system_role(PromptKind.GENERATE),
            RequestOptions(
                temperature=self.settings.generate_temperature,
                max_tokens=self.settings.llm_max_tokens,
                timeout=self.settings.generate_timeout,
            ),
        )

    async def review_contract(self, contract_text: str) -> ReviewResult:
        """Ask the model for suggestions, risks and a completeness score."""
        logger.info("Reviewing contract")
        prompt = build_prompt(
            PromptKind.REVIEW,
            "",
            None,
            contract_text,
            max_length=self.settings.max_document_length,
        )
        raw = await self.client.call(
            prompt,
            system_role(PromptKind.REVIEW),
            RequestOptions(
                temperature=self.settings.review_temperature,
                max_tokens=self.settings.llm_max_tokens,
                timeout=self.settings.review_timeout,
            ),
        )
        return parse_review_response(raw)

    async def revise_contract(
        self,
        contract_text: str,
        instructions: str,
        contract_type: str,
    ) -> str:
        """Apply free-text instructions and return the full revised contract."""
        logger.info(f"Revising {contract_type} contract")
        prompt = build_prompt(
            PromptKind.REVISE,
            contract_type,
            None,
            contract_text,
            extra=instructions,
            max_length=self.settings.max_document_length,
        )
        return await self.client.call(
            prompt,
            system_role(PromptKind.REVISE),
            RequestOptions(
                temperature=self.settings.generate_temperature,
                max_tokens=self.settings.llm_max_tokens,
                timeout=self.settings.revise_timeout,
            ),
        )

    async def check_api_key(self) -> ApiKeyCheck:
        """Probe the configured key with a minimal completion."""
        try:
            await self.client.call(
                "Reply with OK.",
                "You are a connectivity check.",
                RequestOptions(temperature=0, max_tokens=5, timeout=self.settings.review_timeout),
            )
        except NoContentReturnedError:
            pass
        except MissingCredentialError as e:
            return ApiKeyCheck(valid=False, message=str(e))
        except HttpError as e:
            if e.status in (401, 403):
                return ApiKeyCheck(valid=False, message=f"API key rejected: {e.message}")
            return ApiKeyCheck(valid=False, message=f"Error checking API key: {e.message}")
        except RequestError as e:
            return ApiKeyCheck(valid=False, message=f"Error checking API key: {e}")
        return ApiKeyCheck(valid=True, message="API key is valid. Connection to the AI engine is successful.")
