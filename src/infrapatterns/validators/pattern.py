"""インフラパターンの構造検証ロジック。"""

import logging
import re

from infrapatterns.models.pattern import InfrastructurePattern
from infrapatterns.models.validation import (
    PatternValidationResult,
    ValidationError,
    ValidationSuggestion,
    ValidationWarning,
)
from infrapatterns.services.catalog import ComponentCatalog

logger = logging.getLogger(__name__)

_PATTERN_ID = re.compile(r"^[a-z0-9-]+$")
_SEMVER = re.compile(r"^\d+\.\d+\.\d+$")
_MAX_RECOMMENDED_COMPONENTS = 50
_DATA_CATEGORIES: set[str] = {"database", "storage"}


class PatternValidator:
    """パターンの構造的な妥当性と非致命的な問題を判定する。"""

    def __init__(self, catalog: ComponentCatalog) -> None:
        self._catalog = catalog

    def validate(self, pattern: InfrastructurePattern) -> PatternValidationResult:
        """パターンを検証する。パターン自体は変更しない。

        Args:
            pattern: 検証対象のパターン。

        Returns:
            エラー・警告・提案をまとめた検証結果。
        """
        errors: list[ValidationError] = []
        warnings: list[ValidationWarning] = []
        suggestions: list[ValidationSuggestion] = []

        self._check_required_fields(pattern, errors, warnings)
        self._check_components(pattern, errors)
        self._check_relationships(pattern, errors, warnings)
        self._check_dependencies(pattern, errors)
        self._check_circular_dependencies(pattern, errors)
        self._check_provider_compatibility(pattern, warnings)
        self._check_isolated_components(pattern, warnings)
        self._suggest_improvements(pattern, suggestions)

        if errors:
            logger.debug("Pattern %s failed validation: %s", pattern.id, [e.code for e in errors])

        return PatternValidationResult(
            valid=len(errors) == 0,
            errors=errors,
            warnings=warnings,
            suggestions=suggestions,
        )

    @staticmethod
    def _check_required_fields(
        pattern: InfrastructurePattern,
        errors: list[ValidationError],
        warnings: list[ValidationWarning],
    ) -> None:
        for field_name in ("id", "name", "description"):
            if not getattr(pattern, field_name):
                errors.append(
                    ValidationError(
                        code="MISSING_FIELD",
                        message=f"Pattern {field_name} is required",
                        field=field_name,
                    )
                )

        if pattern.id and not _PATTERN_ID.match(pattern.id):
            errors.append(
                ValidationError(
                    code="INVALID_FORMAT",
                    message="Pattern ID must contain only lowercase letters, numbers, and hyphens",
                    field="id",
                )
            )

        if pattern.version and not _SEMVER.match(pattern.version):
            warnings.append(
                ValidationWarning(
                    code="INVALID_VERSION_FORMAT",
                    message="Version should follow semantic versioning (x.y.z)",
                    suggestion="Use semantic versioning format like 1.0.0",
                )
            )

        if not pattern.components:
            errors.append(ValidationError(code="NO_COMPONENTS", message="Pattern must contain at least one component"))
        elif len(pattern.components) > _MAX_RECOMMENDED_COMPONENTS:
            warnings.append(
                ValidationWarning(
                    code="TOO_MANY_COMPONENTS",
                    message="Pattern contains many components, consider breaking into sub-patterns",
                    suggestion="Split the pattern into smaller patterns",
                )
            )

    def _check_components(self, pattern: InfrastructurePattern, errors: list[ValidationError]) -> None:
        seen: set[str] = set()
        for component in pattern.components:
            if component.instance_id in seen:
                errors.append(
                    ValidationError(
                        code="DUPLICATE_INSTANCE_ID",
                        message=f"Duplicate instance ID: {component.instance_id}",
                        component=component.instance_id,
                    )
                )
            seen.add(component.instance_id)

            if self._catalog.get_component(component.component_id) is None:
                errors.append(
                    ValidationError(
                        code="INVALID_COMPONENT",
                        message=f"Component {component.component_id} not found",
                        component=component.instance_id,
                    )
                )

    @staticmethod
    def _check_relationships(
        pattern: InfrastructurePattern,
        errors: list[ValidationError],
        warnings: list[ValidationWarning],
    ) -> None:
        instance_ids = {c.instance_id for c in pattern.components}
        for relationship in pattern.relationships:
            if relationship.from_instance_id not in instance_ids:
                errors.append(
                    ValidationError(
                        code="INVALID_RELATIONSHIP_SOURCE",
                        message=f"Source component {relationship.from_instance_id} not found",
                        component=relationship.from_instance_id,
                        field=f"relationships.{relationship.id}",
                    )
                )
            if relationship.to_instance_id not in instance_ids:
                errors.append(
                    ValidationError(
                        code="INVALID_RELATIONSHIP_TARGET",
                        message=f"Target component {relationship.to_instance_id} not found",
                        component=relationship.to_instance_id,
                        field=f"relationships.{relationship.id}",
                    )
                )
            if relationship.from_instance_id == relationship.to_instance_id:
                warnings.append(
                    ValidationWarning(
                        code="SELF_REFERENCING_RELATIONSHIP",
                        message=f"Component {relationship.from_instance_id} has a relationship to itself",
                        component=relationship.from_instance_id,
                        suggestion="Consider if this relationship is necessary",
                    )
                )

    @staticmethod
    def _check_dependencies(pattern: InfrastructurePattern, errors: list[ValidationError]) -> None:
        instance_ids = {c.instance_id for c in pattern.components}
        for component in pattern.components:
            for dependency in component.dependencies:
                if dependency not in instance_ids:
                    errors.append(
                        ValidationError(
                            code="MISSING_DEPENDENCY",
                            message=f"Dependency {dependency} not found for component {component.instance_id}",
                            component=component.instance_id,
                        )
                    )

    @staticmethod
    def _check_circular_dependencies(pattern: InfrastructurePattern, errors: list[ValidationError]) -> None:
        """依存グラフを反復DFSで走査し、最初の後退辺で1件だけエラーを出す。"""
        graph: dict[str, list[str]] = {}
        for component in pattern.components:
            graph.setdefault(component.instance_id, []).extend(component.dependencies)

        visited: set[str] = set()
        on_stack: set[str] = set()

        for start in graph:
            if start in visited:
                continue
            visited.add(start)
            on_stack.add(start)
            stack: list[tuple[str, int]] = [(start, 0)]

            while stack:
                node, index = stack[-1]
                dependencies = graph[node]
                if index >= len(dependencies):
                    stack.pop()
                    on_stack.discard(node)
                    continue

                stack[-1] = (node, index + 1)
                dependency = dependencies[index]
                if dependency in on_stack:
                    errors.append(
                        ValidationError(
                            code="CIRCULAR_DEPENDENCY",
                            message=f"Circular dependency detected involving component {dependency}",
                            component=dependency,
                        )
                    )
                    return
                # 存在しない依存先は MISSING_DEPENDENCY で報告済み
                if dependency in visited or dependency not in graph:
                    continue
                visited.add(dependency)
                on_stack.add(dependency)
                stack.append((dependency, 0))

    def _check_provider_compatibility(
        self, pattern: InfrastructurePattern, warnings: list[ValidationWarning]
    ) -> None:
        for provider in pattern.providers:
            for component in pattern.components:
                metadata = self._catalog.get_component(component.component_id)
                if metadata is None or metadata.supports(provider):
                    continue
                alternatives = self._catalog.find_alternatives(component.component_id, provider)
                if alternatives:
                    suggestion = f"Consider using an alternative component: {', '.join(alternatives)}"
                else:
                    suggestion = f"Consider using an alternative component or adding a {provider} mapping"
                warnings.append(
                    ValidationWarning(
                        code="PROVIDER_INCOMPATIBILITY",
                        message=(
                            f"Component {component.component_id} may not be compatible with provider {provider}"
                        ),
                        component=component.instance_id,
                        suggestion=suggestion,
                    )
                )

    @staticmethod
    def _check_isolated_components(pattern: InfrastructurePattern, warnings: list[ValidationWarning]) -> None:
        if len(pattern.components) < 2:
            return

        linked: set[str] = set()
        for relationship in pattern.relationships:
            linked.add(relationship.from_instance_id)
            linked.add(relationship.to_instance_id)
        for component in pattern.components:
            if component.dependencies:
                linked.add(component.instance_id)
                linked.update(component.dependencies)

        for component in pattern.components:
            if component.instance_id not in linked:
                warnings.append(
                    ValidationWarning(
                        code="ISOLATED_COMPONENT",
                        message=f"Component {component.display_name} appears to be isolated",
                        component=component.instance_id,
                        suggestion="Connect the component or remove it from the pattern",
                    )
                )

    def _suggest_improvements(
        self, pattern: InfrastructurePattern, suggestions: list[ValidationSuggestion]
    ) -> None:
        categories: set[str] = set()
        for component in pattern.components:
            metadata = self._catalog.get_component(component.component_id)
            if metadata is not None:
                categories.add(metadata.category)

        if not categories:
            return

        if "monitoring" not in categories:
            suggestions.append(
                ValidationSuggestion(
                    type="optimization",
                    message="Consider adding monitoring and observability components",
                    impact="high",
                    effort="medium",
                )
            )
        if "compute" in categories and not categories & _DATA_CATEGORIES:
            suggestions.append(
                ValidationSuggestion(
                    type="optimization",
                    message="Pattern has compute components but no data storage",
                    impact="medium",
                    effort="medium",
                )
            )
