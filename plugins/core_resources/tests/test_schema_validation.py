# plugins/core_resources/tests/test_schema_validation.py

import json

import pytest

from plugins.core_resources.errors import ResourceValidationError
from plugins.core_resources.resources import RESOURCE_CLASSES
from plugins.core_resources.validation import JsonSchemaValidator


class TestJsonSchemaValidator:
    def test_every_resource_type_has_a_schema(self, validator):
        for resource_class in RESOURCE_CLASSES.values():
            assert validator.has_schema(resource_class.schema_id), resource_class.__name__

    def test_valid_content(self, validator):
        content = {"name": "test/fieldTypes/x", "dataType": "shortText"}
        assert validator.validate(content, "fieldTypeSchema") == []

    def test_errors_name_the_failing_path(self, validator):
        content = {
            "name": "test/workflows/x",
            "states": [{"name": "Draft", "category": "weird"}],
            "transitions": [],
        }
        errors = validator.validate(content, "workflowSchema")
        assert len(errors) == 1
        assert errors[0].startswith("states.0.category:")

    def test_missing_required_property(self, validator):
        errors = validator.validate({"name": "x"}, "linkTypeSchema")
        assert any("'sourceCardTypes' is a required property" in e for e in errors)

    def test_unknown_schema(self, validator):
        assert not validator.has_schema("noSuchSchema")
        with pytest.raises(ResourceValidationError, match="Unknown schema 'noSuchSchema'"):
            validator.validate({}, "noSuchSchema")

    def test_check_schema(self, validator):
        assert validator.check_schema({"type": "object"}) == []
        assert validator.check_schema({"type": 12})

    def test_custom_schema_directory(self, tmp_path):
        (tmp_path / "thing.json").write_text(
            json.dumps({"type": "object", "required": ["id"]}), encoding="utf-8"
        )
        validator = JsonSchemaValidator(tmp_path)
        assert validator.validate({"id": 1}, "thing") == []
        assert validator.validate({}, "thing") == ["root: 'id' is a required property"]


class TestInjectedValidator:
    """资源对象只通过注入的校验器做 schema 检查。"""

    @pytest.mark.asyncio
    async def test_project_uses_injected_validator(self, project, monkeypatch):
        calls = []

        def fake_validate(content, schema_id):
            calls.append(schema_id)
            return ["name: rejected by policy"]

        monkeypatch.setattr(project.validator, "validate", fake_validate)

        with pytest.raises(ResourceValidationError, match="rejected by policy"):
            await project.create_resource("workflows", "blocked")
        assert calls == ["workflowSchema"]
