"""具体パターンをワークスペースへ配置するパイプライン。

1回の配置は次の段階を固定順で進む。
preparing → validating → conflict_detection → parameter_override →
component_conversion → layout → connection_validation → complete | failed
"""

import asyncio
import logging
import re
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any

from infrapatterns.models.pattern import (
    ComponentReference,
    ComponentRelationship,
    InfrastructurePattern,
    PatternComplexity,
    PatternParameter,
    Position,
)
from infrapatterns.models.workspace import (
    BatchDeploymentItem,
    BatchDeploymentOptions,
    BatchDeploymentResult,
    ConflictInfo,
    DeploymentOptions,
    DeploymentPreview,
    DeploymentResult,
    DeploymentStage,
    EstimatedChanges,
    NamingOptions,
    WorkspaceComponent,
    WorkspaceConnection,
    WorkspaceSnapshot,
    WorkspaceState,
)
from infrapatterns.resolution.parameters import stringify_parameter
from infrapatterns.services.layout import CELL_HEIGHT, CELL_WIDTH, calculate_bounds, get_layout_strategy
from infrapatterns.validators.pattern import PatternValidator

logger = logging.getLogger(__name__)

_OVERRIDE_TOKEN = re.compile(r"\$\{([^}]+)\}")
_PROVIDER_PREFIXES: dict[str, str] = {"aws-": "aws", "azure-": "azure", "gcp-": "gcp"}
PARALLEL_BATCH_WARNING = "Deployed in a parallel batch: conflicts with other patterns in the same batch are not detected"


def substitute_overrides(value: Any, overrides: dict[str, Any]) -> Any:
    """文字列中の `${name}` を上書き値で置換する。ネストした辞書・リストも対象。"""
    if isinstance(value, str):

        def _replace(match: re.Match[str]) -> str:
            name = match.group(1)
            if overrides.get(name) is None:
                return match.group(0)
            return stringify_parameter(overrides[name])

        return _OVERRIDE_TOKEN.sub(_replace, value)
    if isinstance(value, list):
        return [substitute_overrides(item, overrides) for item in value]
    if isinstance(value, dict):
        return {key: substitute_overrides(item, overrides) for key, item in value.items()}
    return value


def _next_free_name(name: str, taken: set[str]) -> str:
    if name not in taken:
        return name
    counter = 2
    while f"{name}-{counter}" in taken:
        counter += 1
    return f"{name}-{counter}"


@dataclass
class _Plan:
    """1回の配置計画。失敗時も途中結果を保持する。"""

    names: dict[str, str] = field(default_factory=dict)
    conflicts: list[ConflictInfo] = field(default_factory=list)
    components: list[WorkspaceComponent] = field(default_factory=list)
    connections: list[WorkspaceConnection] = field(default_factory=list)
    dangling: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)


class DeploymentService:
    """パターンの配置・プレビュー・スナップショット・抽出を担う。"""

    def __init__(self, validator: PatternValidator, max_workspace_components: int = 100) -> None:
        self._validator = validator
        self._max_workspace_components = max_workspace_components

    def deploy_pattern(
        self,
        pattern: InfrastructurePattern,
        workspace: WorkspaceState,
        options: DeploymentOptions | None = None,
    ) -> DeploymentResult:
        """パターンをワークスペースに配置した結果を計算する。

        ワークスペース自体は変更しない。反映は `apply_deployment` で行う。

        Args:
            pattern: 配置する具体パターン。
            workspace: 現在のワークスペース。
            options: 配置オプション。

        Returns:
            配置結果。失敗時は `deployed_components` が空になる。
        """
        options = options or DeploymentOptions()
        warnings: list[str] = []
        stage: DeploymentStage = "preparing"
        logger.debug("Deploying pattern %s into workspace %s", pattern.id, workspace.id)

        if options.validation.enforce_constraints:
            stage = "validating"
            errors = self._enforce_constraints(pattern, workspace, warnings)
            if errors:
                return self._failed(pattern, stage, errors, warnings)

        plan = _Plan()
        if options.validation.check_conflicts:
            stage = "conflict_detection"
        self._assign_names(pattern, workspace, options, plan)
        blocking = [c for c in plan.conflicts if c.severity == "error"]
        if blocking:
            return self._failed(pattern, stage, [c.message for c in blocking], warnings + plan.warnings, plan.conflicts)

        stage = "parameter_override"
        components = self._apply_overrides(pattern.components, options.parameter_overrides)

        stage = "component_conversion"
        self._convert_components(pattern, components, plan)

        stage = "layout"
        plan.components = self._apply_layout(plan.components, options)
        if options.validation.check_conflicts and options.position is not None and not options.auto_layout:
            self._detect_position_conflicts(plan.components, workspace, plan)

        if options.validation.validate_connections:
            stage = "connection_validation"
            if plan.dangling:
                return self._failed(pattern, stage, plan.dangling, warnings + plan.warnings, plan.conflicts)
        else:
            plan.warnings.extend(f"Dropped connection: {message}" for message in plan.dangling)

        non_fatal = [c for c in plan.conflicts if c.severity == "warning"]
        warnings.extend(plan.warnings)
        warnings.extend(c.message for c in non_fatal)
        logger.info("Deployed pattern %s: %d components", pattern.id, len(plan.components))
        return DeploymentResult(
            success=True,
            deployed_components=plan.components,
            connections=plan.connections,
            warnings=warnings,
            conflicts=non_fatal or None,
            layout=calculate_bounds(plan.components),
            stage="complete",
        )

    def preview_deployment(
        self,
        pattern: InfrastructurePattern,
        workspace: WorkspaceState,
        options: DeploymentOptions | None = None,
    ) -> DeploymentPreview:
        """配置後の姿と衝突を、ワークスペースを変更せずに返す。"""
        options = options or DeploymentOptions()
        plan = _Plan()
        self._assign_names(pattern, workspace, options, plan, force_check=True)
        components = self._apply_overrides(pattern.components, options.parameter_overrides)
        self._convert_components(pattern, components, plan)
        placed = self._apply_layout(plan.components, options)
        if options.position is not None and not options.auto_layout:
            self._detect_position_conflicts(placed, workspace, plan)
        return DeploymentPreview(
            preview=placed,
            layout=calculate_bounds(placed),
            conflicts=plan.conflicts,
            estimated_changes=EstimatedChanges(added=len(placed)),
        )

    def apply_deployment(self, workspace: WorkspaceState, result: DeploymentResult) -> WorkspaceState:
        """成功した配置結果をワークスペースに追記する。失敗した結果は無視する。"""
        if not result.success:
            return workspace
        workspace.components.extend(c.model_copy(deep=True) for c in result.deployed_components)
        workspace.connections.extend(c.model_copy() for c in result.connections)
        workspace.metadata.last_modified = datetime.now(UTC)
        return workspace

    def create_snapshot(self, workspace: WorkspaceState, label: str | None = None) -> WorkspaceSnapshot:
        patterns = sorted({c.pattern_id for c in workspace.components if c.pattern_id})
        return WorkspaceSnapshot(
            label=label,
            components=[c.model_copy(deep=True) for c in workspace.components],
            connections=[c.model_copy() for c in workspace.connections],
            metadata=workspace.metadata.model_copy(),
            patterns=patterns,
        )

    def restore_snapshot(self, workspace: WorkspaceState, snapshot: WorkspaceSnapshot) -> WorkspaceState:
        """スナップショット取得時点の内容にワークスペースを戻す。"""
        workspace.components = [c.model_copy(deep=True) for c in snapshot.components]
        workspace.connections = [c.model_copy() for c in snapshot.connections]
        workspace.metadata = snapshot.metadata.model_copy()
        logger.info("Restored workspace %s from snapshot %s", workspace.id, snapshot.label or snapshot.timestamp)
        return workspace

    async def deploy_pattern_batch(
        self,
        items: list[BatchDeploymentItem],
        workspace: WorkspaceState,
        options: BatchDeploymentOptions | None = None,
    ) -> list[BatchDeploymentResult]:
        """複数パターンを順次または並列に配置し、成功分をワークスペースへ反映する。

        順次モードでは後続のパターンが先行パターンの配置結果を参照する。
        並列モードでは同じバッチ内のパターン同士の衝突は検出しない。
        """
        options = options or BatchDeploymentOptions()
        snapshot = None
        if options.create_snapshot or options.rollback_on_error:
            snapshot = self.create_snapshot(workspace, "pre-batch-deployment")

        if options.parallel:
            return await self._deploy_parallel(items, workspace, options, snapshot)

        results: list[BatchDeploymentResult] = []
        for item in items:
            result = self.deploy_pattern(item.pattern, workspace, item.options)
            results.append(BatchDeploymentResult(pattern_id=item.pattern.id, **result.model_dump()))
            if result.success:
                self.apply_deployment(workspace, result)
                continue
            if options.rollback_on_error and snapshot is not None:
                logger.warning("Batch deployment failed at pattern %s; rolling back", item.pattern.id)
                self.restore_snapshot(workspace, snapshot)
                break
        return results

    async def _deploy_parallel(
        self,
        items: list[BatchDeploymentItem],
        workspace: WorkspaceState,
        options: BatchDeploymentOptions,
        snapshot: WorkspaceSnapshot | None,
    ) -> list[BatchDeploymentResult]:
        baseline = workspace.model_copy(deep=True)
        deployed = await asyncio.gather(
            *(asyncio.to_thread(self.deploy_pattern, item.pattern, baseline, item.options) for item in items)
        )

        results: list[BatchDeploymentResult] = []
        for item, result in zip(items, deployed):
            data = result.model_dump()
            data["warnings"] = [*result.warnings, PARALLEL_BATCH_WARNING]
            results.append(BatchDeploymentResult(pattern_id=item.pattern.id, **data))

        if options.rollback_on_error and any(not r.success for r in results):
            logger.warning("Parallel batch deployment had failures; no pattern committed")
            if snapshot is not None:
                self.restore_snapshot(workspace, snapshot)
            return results

        for result in results:
            self.apply_deployment(workspace, result)
        return results

    def extract_pattern(
        self,
        components: list[WorkspaceComponent],
        name: str,
        description: str,
        category: str = "custom",
        author: str = "Workspace User",
    ) -> InfrastructurePattern:
        """ワークスペース上のコンポーネントから下書きパターンを作る。"""
        selected = {c.id for c in components}
        references: list[ComponentReference] = []
        relationships: list[ComponentRelationship] = []
        for component in components:
            targets = [t for t in component.connections if t in selected]
            references.append(
                ComponentReference(
                    component_id=component.type,
                    instance_id=component.id,
                    display_name=component.display_name or component.id,
                    position=component.position,
                    configuration=component.configuration,
                    dependencies=targets,
                )
            )
            for target in targets:
                relationships.append(
                    ComponentRelationship(
                        id=f"{component.id}-{target}",
                        from_instance_id=component.id,
                        to_instance_id=target,
                        relationship_type="dependency",
                        metadata={"description": f"Connection from {component.id} to {target}"},
                    )
                )

        return InfrastructurePattern(
            id=re.sub(r"-+", "-", re.sub(r"[^a-z0-9]", "-", name.lower())).strip("-"),
            name=name,
            description=description,
            category=category,
            complexity=self._complexity_for(len(components)),
            status="draft",
            components=references,
            relationships=relationships,
            parameters=self._extract_parameters(components),
            tags=self._extract_tags(components),
            author=author,
            providers=self._extract_providers(components),
        )

    # --- パイプラインの各段階 ---

    def _enforce_constraints(
        self, pattern: InfrastructurePattern, workspace: WorkspaceState, warnings: list[str]
    ) -> list[str]:
        result = self._validator.validate(pattern)
        warnings.extend(w.message for w in result.warnings)
        if len(workspace.components) + len(pattern.components) > self._max_workspace_components:
            warnings.append(
                f"Deployment will exceed recommended component count ({self._max_workspace_components})"
            )
        return [e.message for e in result.errors]

    @staticmethod
    def _base_name(component: ComponentReference, naming: NamingOptions, pattern_id: str) -> str:
        name = component.instance_id
        prefix = naming.prefix
        if naming.strategy == "prefix" and not prefix:
            prefix = f"{pattern_id}-"
        if prefix:
            name = f"{prefix}{name}"
        if naming.suffix:
            name = f"{name}{naming.suffix}"
        return name

    def _assign_names(
        self,
        pattern: InfrastructurePattern,
        workspace: WorkspaceState,
        options: DeploymentOptions,
        plan: _Plan,
        force_check: bool = False,
    ) -> None:
        """各インスタンスの配置名を決め、名前の衝突を記録する。"""
        check = options.validation.check_conflicts or force_check
        taken = workspace.component_ids()
        for component in pattern.components:
            proposed = self._base_name(component, options.naming, pattern.id)
            if options.naming.strategy == "increment" or proposed not in taken:
                name = _next_free_name(proposed, taken)
            elif not check:
                name = _next_free_name(proposed, taken)
                plan.warnings.append(f"Renamed {proposed} to {name} to avoid a duplicate id")
            elif options.preserve_existing:
                name = proposed
                plan.conflicts.append(
                    ConflictInfo(
                        type="naming",
                        severity="error",
                        message=f"Component name conflict: {proposed}",
                        component=component.instance_id,
                        suggestion="Use a naming prefix or the increment strategy",
                    )
                )
            else:
                name = _next_free_name(proposed, taken)
                plan.conflicts.append(
                    ConflictInfo(
                        type="naming",
                        severity="warning",
                        message=f"Component name conflict: {proposed} renamed to {name}",
                        component=component.instance_id,
                    )
                )
            plan.names[component.instance_id] = name
            taken.add(name)

    @staticmethod
    def _apply_overrides(components: list[ComponentReference], overrides: dict[str, Any]) -> list[ComponentReference]:
        if not overrides:
            return components
        return [
            c.model_copy(update={"configuration": substitute_overrides(c.configuration, overrides)})
            for c in components
        ]

    @staticmethod
    def _convert_components(pattern: InfrastructurePattern, components: list[ComponentReference], plan: _Plan) -> None:
        converted = {
            c.instance_id: WorkspaceComponent(
                id=plan.names[c.instance_id],
                type=c.component_id,
                display_name=c.display_name,
                position=c.position,
                configuration=c.configuration,
                pattern_id=pattern.id,
            )
            for c in components
        }
        for relationship in pattern.relationships:
            source = converted.get(relationship.from_instance_id)
            target = converted.get(relationship.to_instance_id)
            if source is None:
                plan.dangling.append(f"Connection source not found: {relationship.from_instance_id}")
            if target is None:
                plan.dangling.append(f"Connection target not found: {relationship.to_instance_id}")
            if source is None or target is None:
                continue
            source.connections.append(target.id)
            plan.connections.append(
                WorkspaceConnection(
                    source_id=source.id,
                    target_id=target.id,
                    connection_type=relationship.relationship_type,
                )
            )
        plan.components = list(converted.values())

    @staticmethod
    def _apply_layout(components: list[WorkspaceComponent], options: DeploymentOptions) -> list[WorkspaceComponent]:
        if options.layout is not None:
            name = options.layout
        else:
            name = "hierarchical" if options.auto_layout else "grid"
        base = options.position or Position()
        return get_layout_strategy(name).apply(components, base)

    @staticmethod
    def _detect_position_conflicts(
        placed: list[WorkspaceComponent], workspace: WorkspaceState, plan: _Plan
    ) -> None:
        for component in placed:
            for existing in workspace.components:
                if (
                    abs(component.position.x - existing.position.x) < CELL_WIDTH
                    and abs(component.position.y - existing.position.y) < CELL_HEIGHT
                ):
                    plan.conflicts.append(
                        ConflictInfo(
                            type="position",
                            severity="warning",
                            message=f"Component {component.id} overlaps existing component {existing.id}",
                            component=component.id,
                            suggestion="Choose another position or enable auto layout",
                        )
                    )
                    break

    @staticmethod
    def _failed(
        pattern: InfrastructurePattern,
        stage: DeploymentStage,
        errors: list[str],
        warnings: list[str],
        conflicts: list[ConflictInfo] | None = None,
    ) -> DeploymentResult:
        logger.warning("Deployment of pattern %s failed at %s: %s", pattern.id, stage, "; ".join(errors))
        return DeploymentResult(
            success=False,
            errors=errors,
            warnings=warnings,
            conflicts=conflicts or None,
            stage="failed",
        )

    # --- 抽出用の補助 ---

    @staticmethod
    def _complexity_for(count: int) -> PatternComplexity:
        if count <= 3:
            return "beginner"
        if count <= 7:
            return "intermediate"
        if count <= 15:
            return "advanced"
        return "expert"

    @staticmethod
    def _extract_tags(components: list[WorkspaceComponent]) -> list[str]:
        tags: list[str] = []
        for component in components:
            candidates = [component.type]
            config_tags = component.configuration.get("tags")
            if isinstance(config_tags, list):
                candidates.extend(str(t) for t in config_tags)
            for tag in candidates:
                if tag not in tags:
                    tags.append(tag)
        return tags

    @staticmethod
    def _extract_parameters(components: list[WorkspaceComponent]) -> list[PatternParameter]:
        """`${...}` を含む設定値を文字列パラメータとして抽出する。"""
        parameters: dict[str, PatternParameter] = {}
        for component in components:
            for key, value in component.configuration.items():
                if isinstance(value, str) and "${" in value and key not in parameters:
                    parameters[key] = PatternParameter(
                        id=key,
                        name=key,
                        description=f"Configuration parameter for {component.id}",
                        type="string",
                        default_value=value,
                    )
        return list(parameters.values())

    @staticmethod
    def _extract_providers(components: list[WorkspaceComponent]) -> list[str]:
        providers: list[str] = []
        for component in components:
            for prefix, provider in _PROVIDER_PREFIXES.items():
                if component.type.startswith(prefix) and provider not in providers:
                    providers.append(provider)
        return providers
