"""パターンテンプレートの管理と具体パターンへの展開を行うサービス。"""

import logging
import re
import time
from typing import Any

from pydantic import ValidationError as PydanticValidationError

from infrapatterns.models.errors import TemplateNotFoundError
from infrapatterns.models.pattern import (
    ComponentMetadataNote,
    ComponentReference,
    ComponentRelationship,
    InfrastructurePattern,
    ParameterOption,
    PatternDocumentation,
    PatternParameter,
    PatternPreview,
    Position,
    RelationshipConfig,
    RelationshipMetadata,
)
from infrapatterns.models.template import (
    ComponentTemplate,
    ParameterValidationResult,
    PatternTemplate,
    PositionTemplate,
    RelationshipTemplate,
    TemplateAction,
    TemplateContext,
    TemplateMetadata,
    TemplatePreview,
    TemplateResult,
)
from infrapatterns.resolution.parameters import ParameterResolver, stringify_parameter

logger = logging.getLogger(__name__)

_ENVIRONMENT_OPTIONS: list[tuple[str, str]] = [
    ("development", "Development"),
    ("staging", "Staging"),
    ("production", "Production"),
]


def _is_number(value: Any) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


def _as_text(value: Any) -> str:
    if value is None:
        return ""
    if isinstance(value, str):
        return value
    return stringify_parameter(value)


def _as_coordinate(value: Any) -> float:
    if _is_number(value):
        return float(value)
    if isinstance(value, str):
        try:
            return float(value)
        except ValueError:
            return 0.0
    return 0.0


class TemplateEngine:
    """テンプレートを保持し、コンテキストに従って具体パターンを生成する。"""

    def __init__(self, resolver: ParameterResolver | None = None) -> None:
        self._resolver = resolver or ParameterResolver()
        self._templates: dict[str, PatternTemplate] = {}

    @property
    def resolver(self) -> ParameterResolver:
        return self._resolver

    def register_template(self, template: PatternTemplate) -> None:
        if template.id in self._templates:
            logger.info("Replacing template %s", template.id)
        self._templates[template.id] = template

    def get_template(self, template_id: str) -> PatternTemplate | None:
        return self._templates.get(template_id)

    def require_template(self, template_id: str) -> PatternTemplate:
        """テンプレートを取得する。

        Raises:
            TemplateNotFoundError: テンプレートが登録されていない場合。
        """
        template = self._templates.get(template_id)
        if template is None:
            raise TemplateNotFoundError(template_id)
        return template

    def list_templates(self, category: str | None = None) -> list[PatternTemplate]:
        templates = list(self._templates.values())
        if category is not None:
            templates = [t for t in templates if t.category == category]
        return templates

    def preview_template(self, template_id: str) -> TemplatePreview:
        """テンプレートのパラメータ定義と利用例を返す。未登録なら空のプレビュー。"""
        template = self._templates.get(template_id)
        if template is None:
            return TemplatePreview()
        return TemplatePreview(
            template=template,
            parameters=template.parameters,
            examples=template.metadata.examples,
        )

    def validate_parameters(self, template: PatternTemplate, parameters: dict[str, Any]) -> ParameterValidationResult:
        """パラメータ値をテンプレートの宣言に照らして検証する。

        Args:
            template: 対象テンプレート。
            parameters: 利用者が指定したパラメータ値。

        Returns:
            エラーと警告を含む検証結果。未知のキーは警告になる。
        """
        errors: list[str] = []
        warnings: list[str] = []

        for param in template.parameters:
            if param.required and parameters.get(param.id) is None:
                errors.append(f"Required parameter '{param.name}' is missing")

        declared = {p.id: p for p in template.parameters}
        for param_id, value in parameters.items():
            param = declared.get(param_id)
            if param is None:
                warnings.append(f"Unknown parameter '{param_id}' will be ignored")
                continue
            if value is None:
                continue
            error = self._validate_parameter_value(param, value)
            if error is not None:
                errors.append(f"Invalid value for parameter '{param.name}': {error}")

        return ParameterValidationResult(valid=len(errors) == 0, errors=errors, warnings=warnings)

    @staticmethod
    def _validate_parameter_value(param: PatternParameter, value: Any) -> str | None:
        if param.type == "string" and not isinstance(value, str):
            return "Expected string value"
        if param.type == "number" and not _is_number(value):
            return "Expected number value"
        if param.type == "boolean" and not isinstance(value, bool):
            return "Expected boolean value"
        if param.type in ("select", "multiselect") and param.options:
            valid_values = [option.value for option in param.options]
            choices = ", ".join(str(v) for v in valid_values)
            if param.type == "select" and value not in valid_values:
                return f"Value must be one of: {choices}"
            if param.type == "multiselect" and (
                not isinstance(value, list) or any(v not in valid_values for v in value)
            ):
                return f"Values must be from: {choices}"

        rules = param.validation
        if rules is None:
            return None
        if _is_number(value):
            if rules.min is not None and value < rules.min:
                return f"Value must be at least {stringify_parameter(rules.min)}"
            if rules.max is not None and value > rules.max:
                return f"Value must be at most {stringify_parameter(rules.max)}"
        if rules.pattern and isinstance(value, str) and not re.search(rules.pattern, value):
            return f"Value does not match pattern {rules.pattern}"
        return None

    def generate_pattern(self, template_id: str, context: TemplateContext) -> TemplateResult:
        """テンプレートとコンテキストから具体パターンを生成する。

        生成中の予期しない失敗は1件のエラー文字列にまとめ、部分的なパターンは返さない。
        """
        template = self._templates.get(template_id)
        if template is None:
            return TemplateResult(success=False, errors=[f"Template {template_id} not found"])

        try:
            validation = self.validate_parameters(template, context.parameters)
            if not validation.valid:
                return TemplateResult(success=False, errors=validation.errors, warnings=validation.warnings)

            warnings = list(validation.warnings)
            components = self._process_component_templates(template.component_templates, context)
            relationships = self._process_relationship_templates(
                template.relationship_templates, context, components
            )
            components, relationships = self._apply_conditional_logic(
                template, context, components, relationships, warnings
            )

            pattern = self._assemble_pattern(template, context, components, relationships)
        except (ValueError, TypeError, KeyError) as e:
            logger.warning("Generation from template %s failed: %s", template_id, e)
            return TemplateResult(success=False, errors=[f"Template generation failed: {e}"])

        logger.info(
            "Generated pattern %s from template %s (%d components, %d relationships)",
            pattern.id,
            template_id,
            len(pattern.components),
            len(pattern.relationships),
        )
        return TemplateResult(success=True, pattern=pattern, warnings=warnings)

    def create_template_from_pattern(
        self, pattern: InfrastructurePattern, metadata: TemplateMetadata | None = None
    ) -> PatternTemplate:
        """既存パターンを条件ロジックなしのテンプレートに変換する。"""
        affects = [c.instance_id for c in pattern.components]
        parameters = [
            PatternParameter(
                id="project_name",
                name="Project Name",
                description="Name of the project",
                type="string",
                required=True,
                default_value=pattern.name,
                affects=affects,
            ),
            PatternParameter(
                id="environment",
                name="Environment",
                description="Deployment environment",
                type="select",
                required=True,
                default_value="development",
                options=[ParameterOption(value=value, label=label) for value, label in _ENVIRONMENT_OPTIONS],
                affects=affects,
            ),
        ]
        component_templates = [
            ComponentTemplate(
                instance_id=c.instance_id,
                component_id=c.component_id,
                display_name=c.display_name,
                position=PositionTemplate(x=c.position.x, y=c.position.y),
                configuration=c.configuration,
                required=c.required,
                dependencies=c.dependencies,
            )
            for c in pattern.components
        ]
        relationship_templates = [
            RelationshipTemplate(
                id=r.id,
                from_instance_id=r.from_instance_id,
                to_instance_id=r.to_instance_id,
                relationship_type=r.relationship_type,
                configuration=r.configuration.model_dump(exclude_none=True),
            )
            for r in pattern.relationships
        ]
        return PatternTemplate(
            id=f"{pattern.id}-template",
            name=f"{pattern.name} Template",
            description=f"Template based on {pattern.name}",
            category=pattern.category,
            complexity=pattern.complexity,
            parameters=parameters,
            component_templates=component_templates,
            relationship_templates=relationship_templates,
            metadata=metadata or TemplateMetadata(author=pattern.author, tags=list(pattern.tags)),
        )

    # --- 展開処理 ---

    @staticmethod
    def _pattern_id(template: PatternTemplate, context: TemplateContext) -> str:
        timestamp = int(time.time() * 1000)
        prefix = f"{context.project_name}-" if context.project_name else ""
        return f"{prefix}{template.id}-{timestamp}"

    def _process_component_templates(
        self, component_templates: list[ComponentTemplate], context: TemplateContext
    ) -> list[ComponentReference]:
        components: list[ComponentReference] = []
        for component_template in component_templates:
            if component_template.conditional is not None and not self._resolver.evaluate_condition(
                component_template.conditional, context
            ):
                continue
            components.append(self._resolve_component(component_template, context))
        return components

    def _resolve_component(self, component_template: ComponentTemplate, context: TemplateContext) -> ComponentReference:
        resolve = self._resolver.resolve_value
        display_name = _as_text(resolve(component_template.display_name, context))
        description = resolve(component_template.description, context)
        return ComponentReference(
            component_id=_as_text(resolve(component_template.component_id, context)),
            instance_id=_as_text(resolve(component_template.instance_id, context)),
            display_name=display_name,
            position=Position(
                x=_as_coordinate(resolve(component_template.position.x, context)),
                y=_as_coordinate(resolve(component_template.position.y, context)),
            ),
            configuration=self._resolver.resolve_configuration(component_template.configuration, context),
            required=component_template.required,
            dependencies=[_as_text(resolve(dep, context)) for dep in component_template.dependencies],
            metadata=ComponentMetadataNote(description=_as_text(description) if description else display_name),
        )

    def _process_relationship_templates(
        self,
        relationship_templates: list[RelationshipTemplate],
        context: TemplateContext,
        components: list[ComponentReference],
    ) -> list[ComponentRelationship]:
        instance_ids = {c.instance_id for c in components}
        relationships: list[ComponentRelationship] = []
        for relationship_template in relationship_templates:
            if relationship_template.conditional is not None and not self._resolver.evaluate_condition(
                relationship_template.conditional, context
            ):
                continue

            relationship = self._resolve_relationship(relationship_template, context)
            if relationship.from_instance_id not in instance_ids or relationship.to_instance_id not in instance_ids:
                logger.debug("Skipping relationship %s: referenced components not found", relationship.id)
                continue
            relationships.append(relationship)
        return relationships

    def _resolve_relationship(
        self, relationship_template: RelationshipTemplate, context: TemplateContext
    ) -> ComponentRelationship:
        resolve = self._resolver.resolve_value
        from_id = _as_text(resolve(relationship_template.from_instance_id, context))
        to_id = _as_text(resolve(relationship_template.to_instance_id, context))
        configuration = {
            "bidirectional": False,
            "protocols": [],
            **self._resolver.resolve_configuration(relationship_template.configuration, context),
        }
        return ComponentRelationship(
            id=_as_text(resolve(relationship_template.id, context)),
            from_instance_id=from_id,
            to_instance_id=to_id,
            relationship_type=relationship_template.relationship_type,
            configuration=RelationshipConfig.model_validate(configuration),
            metadata=RelationshipMetadata(description=f"Relationship between {from_id} and {to_id}"),
        )

    def _apply_conditional_logic(
        self,
        template: PatternTemplate,
        context: TemplateContext,
        components: list[ComponentReference],
        relationships: list[ComponentRelationship],
        warnings: list[str],
    ) -> tuple[list[ComponentReference], list[ComponentRelationship]]:
        # ルールは宣言順に、直前までの結果に対して適用する
        for rule in template.conditional_logic:
            if not self._resolver.evaluate_condition(rule.condition, context):
                continue
            for action in rule.actions:
                components, relationships = self._execute_action(
                    action, context, components, relationships, warnings
                )
        return components, relationships

    def _execute_action(
        self,
        action: TemplateAction,
        context: TemplateContext,
        components: list[ComponentReference],
        relationships: list[ComponentRelationship],
        warnings: list[str],
    ) -> tuple[list[ComponentReference], list[ComponentRelationship]]:
        if action.type == "add_component":
            data = self._resolver.resolve_value(action.data, context)
            try:
                component = ComponentReference.model_validate(data)
            except PydanticValidationError:
                warnings.append(f"Skipped add_component action with invalid data: {action.target or data!r}")
                return components, relationships
            return [*components, component], relationships

        if action.type == "remove_component":
            target = _as_text(self._resolver.resolve_value(action.target, context))
            return (
                [c for c in components if c.instance_id != target],
                [r for r in relationships if target not in (r.from_instance_id, r.to_instance_id)],
            )

        if action.type == "add_relationship":
            data = self._resolver.resolve_value(action.data, context)
            try:
                relationship = ComponentRelationship.model_validate(data)
            except PydanticValidationError:
                warnings.append(f"Skipped add_relationship action with invalid data: {action.target or data!r}")
                return components, relationships
            instance_ids = {c.instance_id for c in components}
            missing = [
                endpoint
                for endpoint in (relationship.from_instance_id, relationship.to_instance_id)
                if endpoint not in instance_ids
            ]
            if missing:
                warnings.append(
                    f"Skipped relationship {relationship.id}: components not found: {', '.join(missing)}"
                )
                return components, relationships
            return components, [*relationships, relationship]

        # modify_configuration
        target = _as_text(self._resolver.resolve_value(action.target, context))
        data = self._resolver.resolve_value(action.data, context)
        if not isinstance(data, dict):
            warnings.append(f"Skipped modify_configuration action for {target}: data must be a mapping")
            return components, relationships
        updated: list[ComponentReference] = []
        found = False
        for component in components:
            if component.instance_id == target:
                found = True
                component = component.model_copy(update={"configuration": {**component.configuration, **data}})
            updated.append(component)
        if not found:
            warnings.append(f"Skipped modify_configuration action: component {target} not found")
            return components, relationships
        return updated, relationships

    def _assemble_pattern(
        self,
        template: PatternTemplate,
        context: TemplateContext,
        components: list[ComponentReference],
        relationships: list[ComponentRelationship],
    ) -> InfrastructurePattern:
        description = self._resolver.interpolate(template.description, context)
        tags = list(template.metadata.tags)
        for tag in context.tags.values():
            if tag not in tags:
                tags.append(tag)

        return InfrastructurePattern(
            id=self._pattern_id(template, context),
            name=self._resolver.interpolate(template.name, context),
            description=description,
            category=template.category,
            complexity=template.complexity,
            status="published",
            components=components,
            relationships=relationships,
            parameters=template.parameters,
            preview=PatternPreview(description=description),
            documentation=PatternDocumentation(overview=description),
            tags=tags,
            author=template.metadata.author,
            providers=[context.provider],
        )
