"""Review, credential-check and backend-function payload models"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _as_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, bool):
        return "true" if value else "false"
    return str(value)


class ReviewResult(BaseModel):
    """Structured outcome of an AI contract review"""
    model_config = ConfigDict(populate_by_name=True)

    suggestions: list[str] = []
    risks: list[str] = []
    completeness: int = 0          # 0..100, scored by the model
    revised_content: Optional[str] = Field(default=None, alias="revisedContent")

    @field_validator("suggestions", "risks", mode="before")
    @classmethod
    def _coerce_list(cls, value):
        if value is None:
            return []
        if isinstance(value, str):
            return [value]
        if not isinstance(value, (list, tuple)):
            raise ValueError(f"expected a list of strings, got {type(value).__name__}")
        return [str(v) for v in value]

    @field_validator("completeness", mode="before")
    @classmethod
    def _clamp_completeness(cls, value):
        if value is None:
            return 0
        if isinstance(value, str):
            value = value.strip().rstrip("%")
        if isinstance(value, bool) or not isinstance(value, (int, float, str)):
            raise ValueError(f"expected a number, got {type(value).__name__}")
        try:
            score = int(round(float(value)))
        except OverflowError as e:
            raise ValueError(f"completeness out of range: {value}") from e
        return max(0, min(100, score))

    @field_validator("revised_content", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class ApiKeyCheck(BaseModel):
    """Result of probing the configured API key"""
    valid: bool
    message: str


class GenerateContractRequest(BaseModel):
    """Body of POST /functions/v1/generate-contract"""
    model_config = ConfigDict(populate_by_name=True)

    contract_type: str = Field(alias="contractType")
    form_data: dict[str, str] = Field(default_factory=dict, alias="formData")
    template_sample: Optional[str] = Field(default="", alias="templateSample")
    user_id: Optional[str] = Field(default=None, alias="userId")

    @field_validator("form_data", mode="before")
    @classmethod
    def _stringify_values(cls, value):
        """Form values arrive as any JSON scalar; the prompt needs text."""
        if not isinstance(value, dict):
            return value
        return {key: _as_text(v) for key, v in value.items()}


class GenerateContractResponse(BaseModel):
    """Successful reply of the generate-contract function"""
    model_config = ConfigDict(populate_by_name=True)

    content: str
    contract_id: Optional[str] = Field(default=None, alias="contractId")
