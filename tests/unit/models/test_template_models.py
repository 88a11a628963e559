"""テンプレートモデルのユニットテスト。"""

import pytest
from pydantic import ValidationError

from infrapatterns.models.template import (
    BinaryExpression,
    ComponentTemplate,
    ConditionalValue,
    NotExpression,
    ParameterReference,
    PatternTemplate,
    TemplateContext,
    parse_template_value,
)


class TestParseTemplateValue:
    def test_parameter_reference(self) -> None:
        node = parse_template_value({"type": "parameter", "name": "size", "default_value": "small"})
        assert isinstance(node, ParameterReference)
        assert node.default_value == "small"

    def test_conditional_value_with_nested_nodes(self) -> None:
        node = parse_template_value(
            {
                "type": "conditional",
                "condition": {"type": "not", "operand": {"type": "equals", "left": 1, "right": 2}},
                "true_value": {"type": "parameter", "name": "a"},
                "false_value": [{"type": "parameter", "name": "b"}],
            }
        )
        assert isinstance(node, ConditionalValue)
        assert isinstance(node.condition, NotExpression)
        assert isinstance(node.condition.operand, BinaryExpression)
        assert isinstance(node.true_value, ParameterReference)
        assert isinstance(node.false_value[0], ParameterReference)

    def test_plain_dict_is_kept(self) -> None:
        value = {"type": "t3.micro", "count": 2}
        assert parse_template_value(value) == value

    def test_nested_containers(self) -> None:
        node = parse_template_value({"ports": [{"type": "parameter", "name": "port"}], "enabled": True})
        assert isinstance(node["ports"][0], ParameterReference)
        assert node["enabled"] is True


class TestComponentTemplate:
    def test_configuration_is_parsed(self) -> None:
        template = ComponentTemplate.model_validate(
            {
                "instance_id": "{{name}}-db",
                "component_id": "generic-database",
                "display_name": "Database",
                "configuration": {"engine": {"type": "parameter", "name": "engine"}},
                "conditional": {"type": "equals", "left": {"type": "parameter", "name": "db"}, "right": True},
            }
        )
        assert isinstance(template.configuration["engine"], ParameterReference)
        assert isinstance(template.conditional, BinaryExpression)
        assert isinstance(template.conditional.left, ParameterReference)

    def test_unknown_condition_type_rejected(self) -> None:
        with pytest.raises(ValidationError):
            ComponentTemplate.model_validate(
                {
                    "instance_id": "a",
                    "component_id": "generic-compute",
                    "display_name": "A",
                    "conditional": {"type": "xor", "left": 1, "right": 2},
                }
            )


class TestPatternTemplate:
    def test_defaults(self) -> None:
        template = PatternTemplate(id="t", name="T", description="d", category="web")
        assert template.complexity == "beginner"
        assert template.component_templates == []
        assert template.metadata.examples == []


class TestTemplateContext:
    def test_provider_required(self) -> None:
        with pytest.raises(ValidationError):
            TemplateContext.model_validate({"parameters": {}})

    def test_environment_values(self) -> None:
        assert TemplateContext(provider="aws", environment="production").environment == "production"
        with pytest.raises(ValidationError):
            TemplateContext.model_validate({"provider": "aws", "environment": "qa"})
