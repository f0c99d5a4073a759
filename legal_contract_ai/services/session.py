"""Drafting session: step state machine plus the in-memory document"""

import logging
from contextlib import asynccontextmanager
from typing import Mapping, Optional
from uuid import uuid4

from legal_contract_ai.models.contract import ReviewResult
from legal_contract_ai.models.session import ChatMessage, MessageRole, SessionStep, ViewMode
from legal_contract_ai.models.template import ContractTemplate
from legal_contract_ai.services.ai_service import AIService
from legal_contract_ai.services.template_store import TemplateStore
from legal_contract_ai.utils.errors import (
    IncompleteFormError,
    InvalidTransitionError,
    RequestError,
    SessionBusyError,
)

logger = logging.getLogger(__name__)

REGENERATED_NOTE = "Contract regenerated from scratch."


def _message(role: MessageRole, content: str) -> ChatMessage:
    return ChatMessage(id=f"{role.value}-{uuid4().hex[:12]}", role=role, content=content)


class DraftingSession:
    """One user's path from type selection to a reviewed, revised contract.

    Steps: TYPE_SELECTION -> FORM_FILLING -> DOCUMENT_VIEW (PREVIEW or CHAT).
    At most one remote request runs at a time; while it is pending every
    other mutating action raises SessionBusyError.
    """

    def __init__(
        self,
        ai_service: AIService,
        templates: TemplateStore,
        session_id: Optional[str] = None,
    ):
        self.id = session_id or str(uuid4())
        self.ai = ai_service
        self.templates = templates

        self.step = SessionStep.TYPE_SELECTION
        self.view_mode = ViewMode.PREVIEW
        self.template: Optional[ContractTemplate] = None
        self.form_data: dict[str, str] = {}
        self.document: Optional[str] = None
        self.review_result: Optional[ReviewResult] = None
        self.messages: list[ChatMessage] = []
        self.last_error: Optional[str] = None
        self._busy = False

    @property
    def busy(self) -> bool:
        return self._busy

    @property
    def contract_type(self) -> Optional[str]:
        return self.template.id if self.template else None

    # Guards

    def _ensure_idle(self):
        if self._busy:
            raise SessionBusyError()

    def _require_step(self, step: SessionStep, action: str):
        self._ensure_idle()
        if self.step is not step:
            raise InvalidTransitionError(f"Cannot {action} during {self.step.value}")

    @asynccontextmanager
    async def _request(self):
        """Hold the busy flag for one remote call; record its error, if any."""
        self._ensure_idle()
        self._busy = True
        self.last_error = None
        try:
            yield
        except RequestError as e:
            self.last_error = str(e)
            logger.warning(f"Session {self.id}: request failed: {e}")
            raise
        finally:
            self._busy = False

    # Type selection and form

    def select_type(self, contract_type: str) -> ContractTemplate:
        """Pick a contract type and start a fresh form."""
        self._require_step(SessionStep.TYPE_SELECTION, "select a contract type")
        template = self.templates.require_template(contract_type)

        self.template = template
        self.form_data = {f.id: f.default_value for f in template.fields if f.default_value}
        self._clear_document()
        self.step = SessionStep.FORM_FILLING
        return template

    def set_field(self, field_id: str, value: str):
        self._require_step(SessionStep.FORM_FILLING, "edit the form")
        if self.template.get_field(field_id) is None:
            raise ValueError(f"Unknown field '{field_id}' for {self.template.id}")
        self.form_data[field_id] = value

    def update_form(self, values: Mapping[str, str]):
        """Apply several fields at once; nothing is written if any id is unknown."""
        self._require_step(SessionStep.FORM_FILLING, "edit the form")
        unknown = [f for f in values if self.template.get_field(f) is None]
        if unknown:
            raise ValueError(f"Unknown field(s) for {self.template.id}: {', '.join(unknown)}")
        self.form_data.update(values)

    def missing_fields(self) -> list[str]:
        """Labels of required fields that are still empty."""
        if not self.template:
            return []
        return [
            f.label for f in self.template.required_fields
            if not (self.form_data.get(f.id) or "").strip()
        ]

    async def submit_form(self) -> str:
        """Generate the contract and move to the document preview."""
        self._require_step(SessionStep.FORM_FILLING, "submit the form")
        missing = self.missing_fields()
        if missing:
            raise IncompleteFormError(missing)

        async with self._request():
            content = await self.ai.generate_contract(
                self.template.id, dict(self.form_data), self.template.sample
            )

        self.document = content
        self.review_result = None
        self.messages = [_message(MessageRole.ASSISTANT, content)]
        self.view_mode = ViewMode.PREVIEW
        self.step = SessionStep.DOCUMENT_VIEW
        return content

    # Navigation

    def go_back(self):
        """One step back: document -> form (data kept), form -> type selection."""
        self._ensure_idle()
        if self.step is SessionStep.DOCUMENT_VIEW:
            self._clear_document()
            self.step = SessionStep.FORM_FILLING
        elif self.step is SessionStep.FORM_FILLING:
            self.template = None
            self.form_data = {}
            self.step = SessionStep.TYPE_SELECTION
        else:
            raise InvalidTransitionError("Already at contract type selection")

    def reset(self):
        """Back to type selection from anywhere."""
        self._ensure_idle()
        self.template = None
        self.form_data = {}
        self._clear_document()
        self.last_error = None
        self.step = SessionStep.TYPE_SELECTION

    def set_view_mode(self, mode: ViewMode | str):
        self._require_step(SessionStep.DOCUMENT_VIEW, "switch view mode")
        self.view_mode = ViewMode(mode)

    def _clear_document(self):
        self.document = None
        self.review_result = None
        self.messages = []
        self.view_mode = ViewMode.PREVIEW

    # Document actions

    def edit_document(self, content: str):
        """Replace the document with user-edited text."""
        self._require_step(SessionStep.DOCUMENT_VIEW, "edit the document")
        self.document = content

    async def review(self) -> ReviewResult:
        """AI review; a suggested revision replaces the document."""
        self._require_step(SessionStep.DOCUMENT_VIEW, "review the document")
        async with self._request():
            result = await self.ai.review_contract(self.document)

        self.review_result = result
        if result.revised_content:
            self.document = result.revised_content
        return result

    async def revise(self, instructions: str) -> str:
        """Chat-driven revision of the current document."""
        self._require_step(SessionStep.DOCUMENT_VIEW, "revise the document")
        if not instructions or not instructions.strip():
            raise ValueError("Revision instructions must not be empty")

        async with self._request():
            revised = await self.ai.revise_contract(
                self.document, instructions, self.contract_type
            )

        self.messages.append(_message(MessageRole.USER, instructions))
        self.messages.append(_message(MessageRole.ASSISTANT, revised))
        self.document = revised
        return revised

    async def regenerate(self) -> str:
        """Draft again from the form data alone, without the template sample."""
        self._require_step(SessionStep.DOCUMENT_VIEW, "regenerate the document")
        async with self._request():
            content = await self.ai.generate_contract(
                self.contract_type, dict(self.form_data), ""
            )

        self.messages.append(_message(MessageRole.SYSTEM, REGENERATED_NOTE))
        self.messages.append(_message(MessageRole.ASSISTANT, content))
        self.document = content
        return content
