"""Placeholder substitution for contract templates.

Templates carry bracketed natural-language tokens such as ``[Party A Role]``.
Each form field id maps to exactly one token by expanding its camelCase
spelling; a token no field derives to is left in place.
"""

import re
from typing import Mapping, Optional

from legal_contract_ai.models.template import ContractTemplate

ELLIPSIS = "..."

_UPPER = re.compile(r"([A-Z])")
_TOKEN = re.compile(r"\[([^\[\]\n]+)\]")


def derive_label(field_id: str) -> str:
    """``partyARole`` -> ``Party A Role``"""
    if not field_id:
        return ""
    head, tail = field_id[0].upper(), field_id[1:]
    return (head + _UPPER.sub(r" \1", tail)).strip()


def derive_placeholder(field_id: str) -> str:
    """``partyARole`` -> ``[Party A Role]``"""
    return f"[{derive_label(field_id)}]"


def truncate(text: str, max_length: Optional[int]) -> str:
    """Cut text to max_length characters and mark the cut with an ellipsis."""
    if max_length is None or len(text) <= max_length:
        return text
    return text[:max_length] + ELLIPSIS


def substitute(
    template: str,
    data: Mapping[str, str],
    max_length: Optional[int] = None,
) -> str:
    """Replace every derived placeholder token in template with its value.

    All tokens are matched in a single scan of the (possibly truncated)
    template, so a value that happens to contain another token is inserted
    verbatim and never substituted again.
    """
    template = truncate(template or "", max_length)

    replacements: dict[str, str] = {}
    for key, value in data.items():
        token = derive_placeholder(key)
        if token != "[]":
            replacements[token] = "" if value is None else str(value)
    if not replacements or not template:
        return template

    pattern = re.compile("|".join(re.escape(t) for t in replacements))
    return pattern.sub(lambda m: replacements[m.group(0)], template)


def find_placeholders(text: str) -> list[str]:
    """Distinct bracketed tokens in text, in order of first appearance."""
    seen: dict[str, None] = {}
    for match in _TOKEN.finditer(text):
        seen.setdefault(match.group(0), None)
    return list(seen)


def unmatched_placeholders(template: ContractTemplate) -> list[str]:
    """Tokens in the template sample that no field id derives to."""
    derived = {derive_placeholder(f.id) for f in template.fields}
    return [t for t in find_placeholders(template.sample) if t not in derived]
