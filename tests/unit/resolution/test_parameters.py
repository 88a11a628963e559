"""ParameterResolverのユニットテスト。"""

from infrapatterns.models.template import (
    BinaryExpression,
    ConditionalValue,
    NotExpression,
    ParameterReference,
    TemplateContext,
    TransformFunction,
)
from infrapatterns.resolution.parameters import ParameterResolver, stringify_parameter


def _context(**parameters: object) -> TemplateContext:
    return TemplateContext(parameters=parameters, provider="aws")


def _param(name: str, **kwargs: object) -> ParameterReference:
    return ParameterReference(name=name, **kwargs)


class TestInterpolation:
    def test_replaces_tokens(self, resolver: ParameterResolver) -> None:
        assert resolver.resolve_value("{{project_name}}-vpc", _context(project_name="acme")) == "acme-vpc"

    def test_missing_token_left_verbatim(self, resolver: ParameterResolver) -> None:
        assert resolver.resolve_value("{{missing}}-vpc", _context()) == "{{missing}}-vpc"

    def test_none_value_left_verbatim(self, resolver: ParameterResolver) -> None:
        assert resolver.resolve_value("{{name}}", _context(name=None)) == "{{name}}"

    def test_stringifies_values(self, resolver: ParameterResolver) -> None:
        ctx = _context(flag=True, regions=["a", "b"], count=2.0)
        assert resolver.resolve_value("{{flag}}/{{regions}}/{{count}}", ctx) == "true/a,b/2"

    def test_stringify_parameter(self) -> None:
        assert stringify_parameter(False) == "false"
        assert stringify_parameter(1.5) == "1.5"
        assert stringify_parameter(3) == "3"


class TestParameterReference:
    def test_present_value(self, resolver: ParameterResolver) -> None:
        assert resolver.resolve_value(_param("size"), _context(size="large")) == "large"

    def test_missing_value_falls_back_to_default(self, resolver: ParameterResolver) -> None:
        assert resolver.resolve_value(_param("size", default_value="small"), _context()) == "small"

    def test_missing_value_without_default_is_none(self, resolver: ParameterResolver) -> None:
        assert resolver.resolve_value(_param("size"), _context()) is None

    def test_transform_applied(self, resolver: ParameterResolver) -> None:
        ref = _param("name", transform=TransformFunction(name="uppercase"))
        assert resolver.resolve_value(ref, _context(name="acme")) == "ACME"

    def test_transform_not_applied_to_default(self, resolver: ParameterResolver) -> None:
        ref = _param("name", default_value="fallback", transform=TransformFunction(name="uppercase"))
        assert resolver.resolve_value(ref, _context()) == "fallback"


class TestConditionalValue:
    def test_selects_branch(self, resolver: ParameterResolver) -> None:
        value = ConditionalValue.model_validate(
            {
                "type": "conditional",
                "condition": {"type": "equals", "left": {"type": "parameter", "name": "env"}, "right": "prod"},
                "true_value": "db.large",
                "false_value": "db.small",
            }
        )
        assert resolver.resolve_value(value, _context(env="prod")) == "db.large"
        assert resolver.resolve_value(value, _context(env="dev")) == "db.small"

    def test_selected_branch_is_resolved(self, resolver: ParameterResolver) -> None:
        value = ConditionalValue.model_validate(
            {
                "type": "conditional",
                "condition": {"type": "equals", "left": {"type": "parameter", "name": "size"}, "right": "small"},
                "true_value": "t3.micro",
                "false_value": {
                    "type": "conditional",
                    "condition": {
                        "type": "equals",
                        "left": {"type": "parameter", "name": "size"},
                        "right": "medium",
                    },
                    "true_value": "{{size}}-instance",
                    "false_value": "t3.large",
                },
            }
        )
        assert resolver.resolve_value(value, _context(size="medium")) == "medium-instance"
        assert resolver.resolve_value(value, _context(size="large")) == "t3.large"

    def test_nested_configuration(self, resolver: ParameterResolver) -> None:
        config = {
            "name": "{{app}}-db",
            "ports": [_param("port", default_value=5432)],
            "tags": {"owner": _param("owner")},
        }
        resolved = resolver.resolve_configuration(config, _context(app="shop", owner="team-a"))
        assert resolved == {"name": "shop-db", "ports": [5432], "tags": {"owner": "team-a"}}


class TestEvaluateCondition:
    def test_equals_is_strict(self, resolver: ParameterResolver) -> None:
        expr = BinaryExpression(type="equals", left=_param("flag"), right=1)
        assert resolver.evaluate_condition(expr, _context(flag=True)) is False
        assert resolver.evaluate_condition(expr, _context(flag=1)) is True

    def test_greater_and_less(self, resolver: ParameterResolver) -> None:
        greater = BinaryExpression(type="greater", left=_param("count"), right=3)
        less = BinaryExpression(type="less", left=_param("count"), right=3)
        assert resolver.evaluate_condition(greater, _context(count=5)) is True
        assert resolver.evaluate_condition(less, _context(count=5)) is False

    def test_incomparable_operands_are_false(self, resolver: ParameterResolver) -> None:
        expr = BinaryExpression(type="greater", left=_param("count"), right=3)
        assert resolver.evaluate_condition(expr, _context()) is False
        assert resolver.evaluate_condition(expr, _context(count="many")) is False

    def test_contains(self, resolver: ParameterResolver) -> None:
        expr = BinaryExpression(type="contains", left=_param("regions"), right="eu-west-1")
        assert resolver.evaluate_condition(expr, _context(regions=["us-east-1", "eu-west-1"])) is True
        assert resolver.evaluate_condition(expr, _context(regions="eu-west-1a")) is True
        assert resolver.evaluate_condition(expr, _context(regions=42)) is False

    def test_and_or(self, resolver: ParameterResolver) -> None:
        is_prod = BinaryExpression(type="equals", left=_param("env"), right="prod")
        has_ha = BinaryExpression(type="equals", left=_param("ha"), right=True)
        ctx = _context(env="prod", ha=False)
        assert resolver.evaluate_condition(BinaryExpression(type="and", left=is_prod, right=has_ha), ctx) is False
        assert resolver.evaluate_condition(BinaryExpression(type="or", left=is_prod, right=has_ha), ctx) is True

    def test_and_or_with_missing_operand_is_false(self, resolver: ParameterResolver) -> None:
        always = BinaryExpression(type="equals", left="x", right="x")
        ctx = _context()
        assert resolver.evaluate_condition(BinaryExpression(type="and", left=always), ctx) is False
        assert resolver.evaluate_condition(BinaryExpression(type="or", left=always), ctx) is False
        assert resolver.evaluate_condition(BinaryExpression(type="or", right=always), ctx) is False

    def test_not(self, resolver: ParameterResolver) -> None:
        expr = NotExpression(operand=BinaryExpression(type="equals", left=_param("env"), right="prod"))
        assert resolver.evaluate_condition(expr, _context(env="dev")) is True
        assert resolver.evaluate_condition(NotExpression(), _context()) is False

    def test_resolution_is_deterministic(self, resolver: ParameterResolver) -> None:
        expr = BinaryExpression(type="contains", left=_param("tags"), right="web")
        ctx = _context(tags=["web", "api"])
        assert [resolver.evaluate_condition(expr, ctx) for _ in range(3)] == [True, True, True]


class TestTransforms:
    def test_string_transforms(self, resolver: ParameterResolver) -> None:
        assert resolver.apply_transform("My Web App!", TransformFunction(name="kebab-case")) == "my-web-app"
        assert resolver.apply_transform("My Web App", TransformFunction(name="snake-case")) == "my_web_app"
        assert resolver.apply_transform("Acme", TransformFunction(name="lowercase")) == "acme"

    def test_number_transforms(self, resolver: ParameterResolver) -> None:
        assert resolver.apply_transform(3, TransformFunction(name="multiply", args=[2])) == 6
        assert resolver.apply_transform(3, TransformFunction(name="add", args=[4])) == 7
        assert resolver.apply_transform(2.5, TransformFunction(name="round")) == 3

    def test_list_transforms(self, resolver: ParameterResolver) -> None:
        values = ["a", "b", "c"]
        assert resolver.apply_transform(values, TransformFunction(name="join")) == "a,b,c"
        assert resolver.apply_transform(values, TransformFunction(name="join", args=[" | "])) == "a | b | c"
        assert resolver.apply_transform(values, TransformFunction(name="first")) == "a"
        assert resolver.apply_transform(values, TransformFunction(name="last")) == "c"
        assert resolver.apply_transform([], TransformFunction(name="first")) is None

    def test_default_transform(self, resolver: ParameterResolver) -> None:
        assert resolver.apply_transform(None, TransformFunction(name="default", args=["x"])) == "x"
        assert resolver.apply_transform("y", TransformFunction(name="default", args=["x"])) == "y"

    def test_unknown_transform_returns_value(self, resolver: ParameterResolver) -> None:
        assert resolver.apply_transform("acme", TransformFunction(name="reverse")) == "acme"

    def test_unsuitable_value_returns_value(self, resolver: ParameterResolver) -> None:
        assert resolver.apply_transform(42, TransformFunction(name="uppercase")) == 42
        assert resolver.apply_transform("3", TransformFunction(name="multiply")) == "3"

    def test_custom_transform(self) -> None:
        resolver = ParameterResolver(transforms={"reverse": lambda value: value[::-1]})
        assert resolver.apply_transform("abc", TransformFunction(name="reverse")) == "cba"
        assert "reverse" in resolver.transform_names
