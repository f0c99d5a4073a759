"""Data models"""

from legal_contract_ai.models.template import (
    ContractType,
    FieldType,
    FieldSpec,
    ContractTemplate,
)
from legal_contract_ai.models.contract import (
    ReviewResult,
    ApiKeyCheck,
    GenerateContractRequest,
    GenerateContractResponse,
)
from legal_contract_ai.models.session import (
    SessionStep,
    ViewMode,
    MessageRole,
    ChatMessage,
)

__all__ = [
    "ContractType",
    "FieldType",
    "FieldSpec",
    "ContractTemplate",
    "ReviewResult",
    "ApiKeyCheck",
    "GenerateContractRequest",
    "GenerateContractResponse",
    "SessionStep",
    "ViewMode",
    "MessageRole",
    "ChatMessage",
]
