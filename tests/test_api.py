"""Tests for the HTTP API"""

import json

import pytest
from fastapi.testclient import TestClient

from legal_contract_ai import __version__
from legal_contract_ai.api.app import create_app
from legal_contract_ai.api.routes import session as session_routes
from legal_contract_ai.api.session_store import SessionStore
from legal_contract_ai.services.ai_service import AIService
from legal_contract_ai.services.session import DraftingSession
from legal_contract_ai.services.template_store import TemplateStore
from legal_contract_ai.utils.errors import HttpError, MissingCredentialError, RequestTimeoutError
from legal_contract_ai.utils.llm import LLMClient


@pytest.fixture
def api(settings, fake_client):
    app = create_app()
    templates = TemplateStore()
    session_routes.init_store(SessionStore(
        session_factory=lambda sid: DraftingSession(
            AIService(settings=settings, client=fake_client), templates, sid
        ),
    ))
    with TestClient(app) as client:
        yield client


@pytest.fixture
def upstream(monkeypatch):
    """Replaces the outbound HTTP call of every LLMClient."""
    requests = []
    reply = {"status": 200, "reason": "OK", "body": json.dumps(
        {"choices": [{"message": {"content": "DRAFTED BY FUNCTION"}}]}
    )}

    async def fake_post_json(self, url, payload, headers):
        requests.append({"url": url, "payload": payload, "headers": headers})
        return reply["status"], reply["reason"], reply["body"]

    monkeypatch.setattr(LLMClient, "_post_json", fake_post_json)
    return requests, reply


def start_document(api, nda_form) -> str:
    session_id = api.post("/api/sessions").json()["session_id"]
    assert api.post(f"/api/sessions/{session_id}/type", json={"contract_type": "nda"}).status_code == 200
    assert api.put(f"/api/sessions/{session_id}/form", json={"form_data": nda_form}).status_code == 200
    response = api.post(f"/api/sessions/{session_id}/submit")
    assert response.status_code == 200
    return session_id


class TestTemplates:
    def test_list(self, api):
        data = api.get("/api/templates").json()
        assert [t["id"] for t in data["templates"]] == ["commercial", "partnership", "employment", "nda", "vendor"]
        assert all(t["field_count"] > 0 for t in data["templates"])

    def test_detail(self, api):
        data = api.get("/api/templates/employment").json()
        assert data["name"] == "Employment Contract"
        assert any(f["id"] == "employeeNIK" for f in data["fields"])

    def test_unknown(self, api):
        assert api.get("/api/templates/lease").status_code == 404


class TestSessionFlow:
    def test_create(self, api):
        response = api.post("/api/sessions")
        assert response.status_code == 201
        data = response.json()
        assert data["step"] == "type_selection"
        assert data["busy"] is False

    def test_full_flow(self, api, nda_form, fake_client):
        session_id = start_document(api, nda_form)

        state = api.get(f"/api/sessions/{session_id}").json()
        assert state["step"] == "document_view"
        assert state["view_mode"] == "preview"
        assert state["document"] == "GENERATED CONTRACT"
        assert state["missing_fields"] == []

        fake_client.responses.append(json.dumps({
            "suggestions": ["Add dispute resolution"], "risks": [], "completeness": 80,
            "revisedContent": "REVIEWED CONTRACT",
        }))
        review = api.post(f"/api/sessions/{session_id}/review").json()
        assert review["completeness"] == 80
        assert review["revisedContent"] == "REVIEWED CONTRACT"

        assert api.put(f"/api/sessions/{session_id}/view", json={"mode": "chat"}).json()["view_mode"] == "chat"

        fake_client.responses.append("REVISED CONTRACT")
        state = api.post(
            f"/api/sessions/{session_id}/revise", json={"instructions": "Use BANI arbitration"}
        ).json()
        assert state["document"] == "REVISED CONTRACT"
        assert [m["role"] for m in state["messages"]] == ["assistant", "user", "assistant"]

        state = api.put(f"/api/sessions/{session_id}/document", json={"content": "FINAL"}).json()
        assert state["document"] == "FINAL"

        export = api.get(f"/api/sessions/{session_id}/export", params={"format": "html"})
        assert export.status_code == 200
        assert export.headers["content-type"].startswith("text/html")
        assert 'filename="contract-' in export.headers["content-disposition"]
        assert "FINAL" in export.text

        assert api.delete(f"/api/sessions/{session_id}").status_code == 200
        assert api.get(f"/api/sessions/{session_id}").status_code == 404

    def test_back_and_reset(self, api, nda_form):
        session_id = start_document(api, nda_form)
        state = api.post(f"/api/sessions/{session_id}/back").json()
        assert state["step"] == "form_filling"
        assert state["form_data"] == nda_form

        state = api.post(f"/api/sessions/{session_id}/reset").json()
        assert state["step"] == "type_selection"
        assert api.post(f"/api/sessions/{session_id}/back").status_code == 409

    def test_regenerate(self, api, nda_form, fake_client):
        session_id = start_document(api, nda_form)
        fake_client.responses.append("FROM SCRATCH")
        state = api.post(f"/api/sessions/{session_id}/regenerate").json()
        assert state["document"] == "FROM SCRATCH"
        assert state["messages"][-2]["role"] == "system"

    def test_pdf_export(self, api, nda_form):
        session_id = start_document(api, nda_form)
        export = api.get(f"/api/sessions/{session_id}/export", params={"format": "pdf"})
        assert export.headers["content-type"] == "application/pdf"
        assert export.content.startswith(b"%PDF")


class TestErrorMapping:
    def test_unknown_session(self, api):
        assert api.get("/api/sessions/missing").status_code == 404
        assert api.post("/api/sessions/missing/submit").status_code == 404

    def test_unknown_type(self, api):
        session_id = api.post("/api/sessions").json()["session_id"]
        response = api.post(f"/api/sessions/{session_id}/type", json={"contract_type": "lease"})
        assert response.status_code == 404

    def test_unknown_field(self, api):
        session_id = api.post("/api/sessions").json()["session_id"]
        api.post(f"/api/sessions/{session_id}/type", json={"contract_type": "nda"})
        response = api.put(
            f"/api/sessions/{session_id}/form",
            json={"form_data": {"purpose": "Joint venture", "salary": "1"}},
        )
        assert response.status_code == 400
        assert api.get(f"/api/sessions/{session_id}").json()["form_data"] == {}

    def test_incomplete_form(self, api):
        session_id = api.post("/api/sessions").json()["session_id"]
        api.post(f"/api/sessions/{session_id}/type", json={"contract_type": "nda"})
        response = api.post(f"/api/sessions/{session_id}/submit")
        assert response.status_code == 422
        assert "Missing required fields" in response.json()["detail"]

    def test_invalid_transition(self, api):
        session_id = api.post("/api/sessions").json()["session_id"]
        assert api.post(f"/api/sessions/{session_id}/review").status_code == 409
        assert api.put(f"/api/sessions/{session_id}/view", json={"mode": "chat"}).status_code == 409
        assert api.get(f"/api/sessions/{session_id}/export").status_code == 409

    @pytest.mark.parametrize("error,status", [
        (MissingCredentialError(), 400),
        (RequestTimeoutError(120), 504),
        (HttpError(401, "Incorrect API key provided"), 502),
    ])
    def test_request_errors(self, api, nda_form, fake_client, error, status):
        session_id = api.post("/api/sessions").json()["session_id"]
        api.post(f"/api/sessions/{session_id}/type", json={"contract_type": "nda"})
        api.put(f"/api/sessions/{session_id}/form", json={"form_data": nda_form})
        fake_client.responses.append(error)

        response = api.post(f"/api/sessions/{session_id}/submit")

        assert response.status_code == status
        assert response.json()["detail"] == str(error)
        state = api.get(f"/api/sessions/{session_id}").json()
        assert state["step"] == "form_filling"
        assert state["last_error"] == str(error)


class TestCredential:
    def test_lifecycle(self, api):
        assert api.get("/api/credential").json() == {"is_set": True, "source": "environment"}
        assert api.put("/api/credential", json={"api_key": "sk-user"}).json()["source"] == "stored"
        assert api.get("/api/credential").json()["source"] == "stored"
        assert api.delete("/api/credential").json()["source"] == "environment"

    def test_empty_key_rejected(self, api):
        assert api.put("/api/credential", json={"api_key": ""}).status_code == 422
        assert api.put("/api/credential", json={"api_key": "   "}).status_code == 400

    def test_check(self, api, upstream):
        requests, _ = upstream
        result = api.post("/api/credential/check").json()
        assert result["valid"] is True
        assert requests[0]["headers"]["Authorization"] == "Bearer test-key"

    def test_check_rejected(self, api, upstream):
        _, reply = upstream
        reply.update(status=401, reason="Unauthorized", body=json.dumps({"error": {"message": "bad key"}}))
        result = api.post("/api/credential/check").json()
        assert result == {"valid": False, "message": "API key rejected: bad key"}


class TestGenerateContractFunction:
    BODY = {
        "contractType": "nda",
        "formData": {"partyA": "PT Maju"},
        "templateSample": "Between [Party A] and [Party B]",
        "userId": "user-1",
    }

    def test_uses_bearer_key(self, api, upstream):
        requests, _ = upstream
        response = api.post(
            "/functions/v1/generate-contract",
            json=self.BODY,
            headers={"Authorization": "Bearer sk-caller"},
        )

        assert response.status_code == 200
        data = response.json()
        assert data["content"] == "DRAFTED BY FUNCTION"
        assert data["contractId"].startswith("local-")
        request = requests[0]
        assert request["headers"]["Authorization"] == "Bearer sk-caller"
        prompt = request["payload"]["messages"][1]["content"]
        assert "Between PT Maju and [Party B]" in prompt

    def test_non_string_form_values(self, api, upstream):
        requests, _ = upstream
        body = dict(self.BODY, formData={"partyA": "PT Maju", "term": 2, "renewable": True, "notes": None})

        assert api.post("/functions/v1/generate-contract", json=body).status_code == 200
        prompt = requests[0]["payload"]["messages"][1]["content"]
        assert "term: 2" in prompt
        assert "renewable: true" in prompt
        assert "notes: \n" in prompt

    def test_falls_back_to_configured_key(self, api, upstream):
        requests, _ = upstream
        assert api.post("/functions/v1/generate-contract", json=self.BODY).status_code == 200
        assert requests[0]["headers"]["Authorization"] == "Bearer test-key"

    def test_missing_key(self, api, upstream, monkeypatch):
        monkeypatch.delenv("OPENAI_API_KEY")
        requests, _ = upstream
        response = api.post("/functions/v1/generate-contract", json=self.BODY)
        assert response.status_code == 400
        assert "API key not found" in response.json()["error"]
        assert requests == []

    def test_upstream_failure(self, api, upstream):
        _, reply = upstream
        reply.update(status=429, reason="Too Many Requests", body="")
        response = api.post("/functions/v1/generate-contract", json=self.BODY)
        assert response.status_code == 400
        assert response.json() == {"error": "Too Many Requests"}

    def test_unexpected_failure(self, api, upstream):
        _, reply = upstream
        reply.update(body="not json")
        response = api.post("/functions/v1/generate-contract", json=self.BODY)
        assert response.status_code == 500
        data = response.json()
        assert data["error"] == "Failed to generate contract. Please try again."
        assert data["details"]


def test_health(api):
    data = api.get("/health").json()
    assert data["status"] == "ok"
    assert data["version"] == __version__
    assert "timestamp" in data
