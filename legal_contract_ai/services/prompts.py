"""Prompt assembly for contract generation, review and revision"""

from enum import Enum
from typing import Mapping, Optional

from legal_contract_ai.services.substitution import substitute, truncate


class PromptKind(str, Enum):
    """The three drafting use cases"""
    GENERATE = "generate"
    REVIEW = "review"
    REVISE = "revise"


SYSTEM_ROLES = {
    PromptKind.GENERATE: "You are a legal expert specializing in Indonesian law and contract drafting.",
    PromptKind.REVIEW: "You are a legal expert specializing in Indonesian law and contract review.",
    PromptKind.REVISE: "You are a legal expert specializing in Indonesian law and contract revision.",
}

GENERATE_PROMPT = """Act as a legal expert specialized in Indonesian law.
I need you to create a complete {contract_type} contract based on the following information:

Contract Type: {contract_type}

Form Data:
{form_data}

Initial Template:
{template}

Please generate a complete, professional, and legally sound contract following Indonesian law standards.
The contract should include all standard sections, clauses, terms, and provisions typical for this type of agreement in Indonesia.
Include references to relevant Indonesian regulations where appropriate.
Format the output as a properly structured legal document with numbered sections.
DO NOT include any explanations or commentary - ONLY return the contract text."""

REVIEW_PROMPT = """Act as a legal expert specialized in Indonesian law. Please review the following contract for:

1. Potential legal issues or risks under Indonesian law
2. Missing clauses or information
3. Suggestions for improvements
4. Compliance with Indonesian regulations

Contract Text:
{document}

Provide your analysis in the following JSON format:
{{
  "suggestions": ["suggestion1", "suggestion2", ...],
  "risks": ["risk1", "risk2", ...],
  "completeness": 85,
  "revisedContent": "revised contract text if necessary"
}}

"completeness" is an integer percentage from 0 to 100. Omit "revisedContent" if no revision is needed.
Return ONLY the JSON response, no additional text."""

REVISE_PROMPT = """Act as a legal expert specialized in Indonesian law.
Revise the following {contract_type} contract according to the user's instructions.

Current Contract:
{document}

User Instructions:
{instructions}

Apply the requested changes while keeping the rest of the contract intact and consistent with Indonesian law.
Return the COMPLETE revised contract text only.
DO NOT include any explanations or commentary - ONLY return the contract text."""


def format_form_data(form_data: Mapping[str, str]) -> str:
    """One ``key: value`` line per field, in insertion order."""
    return "\n".join(f"{key}: {value}" for key, value in form_data.items())


def build_prompt(
    kind: PromptKind | str,
    contract_type: str,
    form_data: Optional[Mapping[str, str]],
    template_or_document: str,
    extra: Optional[str] = None,
    max_length: Optional[int] = None,
) -> str:
    """Assemble the user prompt for one use case.

    Args:
        kind: generate, review or revise.
        contract_type: Contract type identifier, e.g. ``nda``.
        form_data: Field id -> value. Only used by generate.
        template_or_document: Template sample for generate, current document
            text for review and revise.
        extra: Free-text user instructions for revise.
        max_length: Size guard applied to the template/document before it is
            embedded.
    """
    kind = PromptKind(kind)
    form_data = form_data or {}

    if kind is PromptKind.GENERATE:
        return GENERATE_PROMPT.format(
            contract_type=contract_type,
            form_data=format_form_data(form_data),
            template=substitute(template_or_document, form_data, max_length),
        )

    document = truncate(template_or_document or "", max_length)
    if kind is PromptKind.REVIEW:
        return REVIEW_PROMPT.format(document=document)

    if not extra or not extra.strip():
        raise ValueError("Revision instructions must not be empty")
    return REVISE_PROMPT.format(
        contract_type=contract_type,
        document=document,
        instructions=extra.strip(),
    )


def system_role(kind: PromptKind | str) -> str:
    return SYSTEM_ROLES[PromptKind(kind)]
