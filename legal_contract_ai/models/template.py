"""Contract template models"""

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ContractType(str, Enum):
    """Contract types shipped with the application"""
    COMMERCIAL = "commercial"
    PARTNERSHIP = "partnership"
    EMPLOYMENT = "employment"
    NDA = "nda"
    VENDOR = "vendor"


class FieldType(str, Enum):
    """Form input kinds"""
    TEXT = "text"
    TEXTAREA = "textarea"
    SELECT = "select"
    DATE = "date"


class FieldSpec(BaseModel):
    """One form input of a contract template"""
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    id: str                         # camelCase, also the placeholder basis
    label: str
    type: FieldType = FieldType.TEXT
    required: bool = False
    options: Optional[list[str]] = None   # select only
    help_text: Optional[str] = Field(default=None, alias="helpText")
    placeholder: Optional[str] = None
    default_value: Optional[str] = Field(default=None, alias="defaultValue")


class ContractTemplate(BaseModel):
    """A contract type with its form schema and sample document"""
    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    description: str
    icon: str = "file"
    fields: list[FieldSpec]
    sample: str

    @property
    def required_fields(self) -> list[FieldSpec]:
        return [f for f in self.fields if f.required]

    def get_field(self, field_id: str) -> Optional[FieldSpec]:
        return next((f for f in self.fields if f.id == field_id), None)
