"""Pytest configuration and fixtures"""

import asyncio
from typing import Optional

import pytest

from legal_contract_ai.services import credentials as credentials_module
from legal_contract_ai.services.ai_service import AIService
from legal_contract_ai.utils.config import Settings
from legal_contract_ai.utils.llm import RequestOptions


@pytest.fixture(autouse=True)
def test_env(tmp_path, monkeypatch):
    """Isolate settings from the host: temp credential file, no Supabase"""
    monkeypatch.setenv("OPENAI_API_KEY", "test-key")
    monkeypatch.setenv("LLM_PROVIDER", "openai")
    monkeypatch.setenv("LLM_BASE_URL", "https://llm.test/v1")
    monkeypatch.setenv("CREDENTIAL_PATH", str(tmp_path / "credentials.json"))
    monkeypatch.setenv("USE_BACKEND_FUNCTION", "false")
    monkeypatch.setenv("MIRROR_CREDENTIAL", "false")
    for name in ("ANTHROPIC_API_KEY", "SUPABASE_URL", "SUPABASE_KEY", "SUPABASE_SERVICE_KEY", "USER_ID"):
        monkeypatch.delenv(name, raising=False)

    # Fresh credential store per test
    monkeypatch.setattr(credentials_module, "_store", None)

    yield


class FakeLLMClient:
    """Stands in for LLMClient; records calls and replays queued answers.

    A queued Exception is raised instead of returned. When ``gate`` is set the
    call waits on it, which keeps a session busy until the test releases it.
    """

    def __init__(self, responses=None):
        self.responses = list(responses or [])
        self.calls: list[tuple[str, str, Optional[RequestOptions]]] = []
        self.backend_calls: list[dict] = []
        self.gate: Optional[asyncio.Event] = None

    def _next(self, default: str):
        result = self.responses.pop(0) if self.responses else default
        if isinstance(result, Exception):
            raise result
        return result

    async def call(self, prompt, system_role, options=None):
        self.calls.append((prompt, system_role, options))
        if self.gate is not None:
            await self.gate.wait()
        return self._next("GENERATED CONTRACT")

    async def call_backend_function(self, contract_type, form_data, template_sample, user_id, timeout):
        self.backend_calls.append({
            "contract_type": contract_type,
            "form_data": form_data,
            "template_sample": template_sample,
            "user_id": user_id,
            "timeout": timeout,
        })
        return {"content": self._next("BACKEND CONTRACT"), "contractId": "local-1"}


@pytest.fixture
def fake_client():
    return FakeLLMClient()


@pytest.fixture
def settings():
    return Settings()


@pytest.fixture
def ai_service(settings, fake_client):
    return AIService(settings=settings, client=fake_client)


NDA_FORM = {
    "disclosingParty": "PT Maju Jaya",
    "disclosingPartyRole": "Company",
    "disclosingPartyAddress": "Jl. Sudirman No. 1, Jakarta",
    "disclosingPartyRepresentative": "Budi Santoso",
    "receivingParty": "CV Sejahtera",
    "receivingPartyRole": "CV",
    "receivingPartyAddress": "Jl. Asia Afrika No. 8, Bandung",
    "receivingPartyRepresentative": "Siti Rahma",
    "purpose": "Evaluation of a joint venture",
    "effectiveDate": "2026-10-01",
    "term": "2",
}


@pytest.fixture
def nda_form():
    return dict(NDA_FORM)
