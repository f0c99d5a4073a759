"""Template store: static table of contract templates loaded from JSON files"""

import json
import logging
from pathlib import Path
from typing import Optional

from pydantic import ValidationError

from legal_contract_ai.models.template import ContractTemplate, ContractType
from legal_contract_ai.services.substitution import unmatched_placeholders
from legal_contract_ai.utils.errors import TemplateNotFoundError

logger = logging.getLogger(__name__)

TEMPLATES_DIR = Path(__file__).resolve().parent.parent / "templates"

# Display order of the built-in contract types
_BUILTIN_ORDER = [t.value for t in ContractType]


class TemplateStore:
    """Read-only lookup of contract templates by type identifier"""

    def __init__(self, templates_dir: Optional[str | Path] = None):
        self.templates_dir = Path(templates_dir) if templates_dir else TEMPLATES_DIR
        self._templates: dict[str, ContractTemplate] = {}
        self._load_templates()

    def _load_templates(self):
        """Load all templates from JSON files"""
        for template_file in sorted(self.templates_dir.glob("*.json")):
            try:
                with open(template_file, "r", encoding="utf-8") as f:
                    template = ContractTemplate(**json.load(f))
            except (OSError, json.JSONDecodeError, ValidationError) as e:
                logger.warning(f"Error loading template {template_file}: {e}")
                continue

            unmatched = unmatched_placeholders(template)
            if unmatched:
                logger.debug(f"Template '{template.id}' has tokens without a field: {unmatched}")
            self._templates[template.id] = template

    def list_templates(self) -> list[ContractTemplate]:
        """List templates, built-in types first in their canonical order"""
        def sort_key(t: ContractTemplate):
            if t.id in _BUILTIN_ORDER:
                return (0, _BUILTIN_ORDER.index(t.id), t.id)
            return (1, 0, t.id)

        return sorted(self._templates.values(), key=sort_key)

    def get_template(self, contract_type: str) -> Optional[ContractTemplate]:
        """Get a specific template by type"""
        return self._templates.get(contract_type)

    def require_template(self, contract_type: str) -> ContractTemplate:
        """Like get_template but raises TemplateNotFoundError"""
        template = self.get_template(contract_type)
        if template is None:
            raise TemplateNotFoundError(contract_type)
        return template

    def __contains__(self, contract_type: str) -> bool:
        return contract_type in self._templates

    def __len__(self) -> int:
        return len(self._templates)


_store: Optional[TemplateStore] = None


def get_template_store() -> TemplateStore:
    """Get or create the TemplateStore singleton."""
    global _store
    if _store is None:
        _store = TemplateStore()
    return _store
