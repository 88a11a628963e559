"""パターンテンプレートと条件式ASTのデータモデル。

テンプレートの各フィールドにはリテラル値、`ParameterReference`、`ConditionalValue`
のいずれかを記述できる。YAMLやJSONから読み込んだ辞書は `type` タグを見て
対応するノードに変換し、評価時に型の曖昧さが残らないようにする。
"""

from typing import Annotated, Any, Literal

from pydantic import BaseModel, Field, field_validator

from infrapatterns.models.pattern import (
    InfrastructurePattern,
    PatternComplexity,
    PatternParameter,
    RelationshipType,
)

BinaryOperator = Literal["equals", "greater", "less", "contains", "and", "or"]
TemplateActionType = Literal["add_component", "remove_component", "add_relationship", "modify_configuration"]
Environment = Literal["development", "staging", "production"]

_BINARY_OPERATORS: set[str] = {"equals", "greater", "less", "contains", "and", "or"}


def parse_template_value(raw: Any) -> Any:
    """辞書・リストを再帰的に走査し、タグ付きの辞書を式ノードへ変換する。"""
    if isinstance(raw, BaseModel):
        return raw
    if isinstance(raw, dict):
        node_type = raw.get("type")
        if node_type == "parameter" and "name" in raw:
            return ParameterReference.model_validate(raw)
        if node_type == "conditional" and "condition" in raw:
            return ConditionalValue.model_validate(raw)
        if node_type in _BINARY_OPERATORS:
            return BinaryExpression.model_validate(raw)
        if node_type == "not":
            return NotExpression.model_validate(raw)
        return {key: parse_template_value(value) for key, value in raw.items()}
    if isinstance(raw, list):
        return [parse_template_value(item) for item in raw]
    return raw


class TransformFunction(BaseModel):
    """パラメータ値に適用する名前付き変換。"""

    name: str
    args: list[Any] = Field(default_factory=list)


class ParameterReference(BaseModel):
    """コンテキストのパラメータ値への参照。"""

    type: Literal["parameter"] = "parameter"
    name: str
    default_value: Any = None
    transform: TransformFunction | None = None


class BinaryExpression(BaseModel):
    """二項の条件式ノード。"""

    type: BinaryOperator
    left: Any = None
    right: Any = None

    @field_validator("left", "right", mode="before")
    @classmethod
    def _parse_operand(cls, value: Any) -> Any:
        return parse_template_value(value)


class NotExpression(BaseModel):
    """否定の条件式ノード。"""

    type: Literal["not"] = "not"
    operand: Any = None

    @field_validator("operand", mode="before")
    @classmethod
    def _parse_operand(cls, value: Any) -> Any:
        return parse_template_value(value)


ConditionalExpression = Annotated[BinaryExpression | NotExpression, Field(discriminator="type")]


class ConditionalValue(BaseModel):
    """条件に応じて2つの値のどちらかを選ぶ値。"""

    type: Literal["conditional"] = "conditional"
    condition: ConditionalExpression
    true_value: Any = None
    false_value: Any = None

    @field_validator("true_value", "false_value", mode="before")
    @classmethod
    def _parse_branch(cls, value: Any) -> Any:
        return parse_template_value(value)


class PositionTemplate(BaseModel):
    x: Any = 0
    y: Any = 0

    @field_validator("x", "y", mode="before")
    @classmethod
    def _parse_coordinate(cls, value: Any) -> Any:
        return parse_template_value(value)


class ComponentTemplate(BaseModel):
    """パラメータ化されたコンポーネント定義。"""

    instance_id: Any
    component_id: Any
    display_name: Any
    position: PositionTemplate = Field(default_factory=PositionTemplate)
    configuration: dict[str, Any] = Field(default_factory=dict)
    conditional: ConditionalExpression | None = None
    required: bool = True
    dependencies: list[Any] = Field(default_factory=list)
    description: Any = None

    @field_validator("instance_id", "component_id", "display_name", "description", mode="before")
    @classmethod
    def _parse_scalar(cls, value: Any) -> Any:
        return parse_template_value(value)

    @field_validator("configuration", "dependencies", mode="before")
    @classmethod
    def _parse_container(cls, value: Any) -> Any:
        return parse_template_value(value)


class RelationshipTemplate(BaseModel):
    """パラメータ化された接続定義。"""

    id: Any
    from_instance_id: Any
    to_instance_id: Any
    relationship_type: RelationshipType
    configuration: dict[str, Any] = Field(default_factory=dict)
    conditional: ConditionalExpression | None = None

    @field_validator("id", "from_instance_id", "to_instance_id", mode="before")
    @classmethod
    def _parse_scalar(cls, value: Any) -> Any:
        return parse_template_value(value)

    @field_validator("configuration", mode="before")
    @classmethod
    def _parse_configuration(cls, value: Any) -> Any:
        return parse_template_value(value)


class TemplateAction(BaseModel):
    """条件ルールが成立したときに実行する構造変更。"""

    type: TemplateActionType
    target: str = ""
    data: Any = None

    @field_validator("data", mode="before")
    @classmethod
    def _parse_data(cls, value: Any) -> Any:
        return parse_template_value(value)


class ConditionalRule(BaseModel):
    condition: ConditionalExpression
    actions: list[TemplateAction] = Field(default_factory=list)


class TemplateExample(BaseModel):
    """テンプレートの利用例。"""

    name: str
    description: str = ""
    parameters: dict[str, Any] = Field(default_factory=dict)
    expected_components: int | None = None


class TemplateMetadata(BaseModel):
    author: str = ""
    version: str = "1.0.0"
    created: str = ""
    updated: str = ""
    tags: list[str] = Field(default_factory=list)
    examples: list[TemplateExample] = Field(default_factory=list)


class PatternTemplate(BaseModel):
    """未解決のパラメータ化パターン定義。"""

    id: str
    name: str
    description: str
    category: str
    complexity: PatternComplexity = "beginner"
    parameters: list[PatternParameter] = Field(default_factory=list)
    component_templates: list[ComponentTemplate] = Field(default_factory=list)
    relationship_templates: list[RelationshipTemplate] = Field(default_factory=list)
    conditional_logic: list[ConditionalRule] = Field(default_factory=list)
    metadata: TemplateMetadata = Field(default_factory=TemplateMetadata)


class TemplateContext(BaseModel):
    """テンプレート展開時の実行コンテキスト。"""

    parameters: dict[str, Any] = Field(default_factory=dict)
    provider: str
    region: str | None = None
    environment: Environment | None = None
    project_name: str | None = None
    tags: dict[str, str] = Field(default_factory=dict)


class TemplateResult(BaseModel):
    """テンプレート展開の結果。"""

    success: bool
    pattern: InfrastructurePattern | None = None
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class ParameterValidationResult(BaseModel):
    valid: bool
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)


class TemplatePreview(BaseModel):
    """テンプレートのパラメータと利用例のプレビュー。"""

    template: PatternTemplate | None = None
    parameters: list[PatternParameter] = Field(default_factory=list)
    examples: list[TemplateExample] = Field(default_factory=list)
