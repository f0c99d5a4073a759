"""Tests for the contract template table"""

import json

import pytest

from legal_contract_ai.models.template import ContractType, FieldType
from legal_contract_ai.services.template_store import TemplateStore
from legal_contract_ai.utils.errors import TemplateNotFoundError


@pytest.fixture(scope="module")
def store():
    return TemplateStore()


def test_builtin_templates_in_order(store):
    assert [t.id for t in store.list_templates()] == [t.value for t in ContractType]
    assert len(store) == 5


@pytest.mark.parametrize("contract_type", [t.value for t in ContractType])
def test_templates_are_well_formed(store, contract_type):
    template = store.require_template(contract_type)
    assert template.name
    assert template.sample.strip()
    assert template.required_fields
    ids = [f.id for f in template.fields]
    assert len(ids) == len(set(ids))
    for field in template.fields:
        if field.type is FieldType.SELECT:
            assert field.options


def test_lookup(store):
    assert "nda" in store
    assert store.get_template("nda").name == "Non-Disclosure Agreement"
    assert store.get_template("lease") is None


def test_require_unknown(store):
    with pytest.raises(TemplateNotFoundError) as exc_info:
        store.require_template("lease")
    assert isinstance(exc_info.value, ValueError)
    assert "lease" in str(exc_info.value)


def test_get_field(store):
    employment = store.require_template("employment")
    assert employment.get_field("employeeNIK").label
    assert employment.get_field("nope") is None


def test_custom_directory_skips_bad_files(tmp_path):
    (tmp_path / "broken.json").write_text("{not json")
    (tmp_path / "invalid.json").write_text(json.dumps({"id": "x"}))
    (tmp_path / "lease.json").write_text(json.dumps({
        "id": "lease",
        "name": "Lease Agreement",
        "description": "Property lease",
        "fields": [{"id": "landlordName", "label": "Landlord", "type": "text", "required": True}],
        "sample": "Landlord: [Landlord Name]",
    }))

    store = TemplateStore(tmp_path)

    assert [t.id for t in store.list_templates()] == ["lease"]
    assert store.require_template("lease").fields[0].required
