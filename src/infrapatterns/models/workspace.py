"""ワークスペース（キャンバス文書）とパターン配置関連のデータモデル。"""

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

from infrapatterns.models.pattern import InfrastructurePattern, Position

NamingStrategy = Literal["preserve", "prefix", "increment"]
LayoutName = Literal["grid", "hierarchical", "circular"]
DeploymentStage = Literal[
    "preparing",
    "validating",
    "conflict_detection",
    "parameter_override",
    "component_conversion",
    "layout",
    "connection_validation",
    "complete",
    "failed",
]


class WorkspaceComponent(BaseModel):
    """キャンバス上に配置されたコンポーネント。"""

    id: str
    type: str
    display_name: str = ""
    position: Position = Field(default_factory=Position)
    configuration: dict[str, Any] = Field(default_factory=dict)
    connections: list[str] = Field(default_factory=list)
    pattern_id: str | None = None


class WorkspaceConnection(BaseModel):
    """ワークスペース上のコンポーネント間接続。"""

    source_id: str
    target_id: str
    connection_type: str


class WorkspaceMetadata(BaseModel):
    name: str = ""
    description: str = ""
    version: str = "1.0.0"
    last_modified: datetime = Field(default_factory=lambda: datetime.now(UTC))


class WorkspaceState(BaseModel):
    """キャンバスホストが所有する現在の文書。"""

    id: str
    components: list[WorkspaceComponent] = Field(default_factory=list)
    connections: list[WorkspaceConnection] = Field(default_factory=list)
    metadata: WorkspaceMetadata = Field(default_factory=WorkspaceMetadata)

    def component_ids(self) -> set[str]:
        return {c.id for c in self.components}


class WorkspaceSnapshot(BaseModel):
    """バッチ配置前に取得するワークスペースの複製。"""

    timestamp: datetime = Field(default_factory=lambda: datetime.now(UTC))
    label: str | None = None
    components: list[WorkspaceComponent] = Field(default_factory=list)
    connections: list[WorkspaceConnection] = Field(default_factory=list)
    metadata: WorkspaceMetadata = Field(default_factory=WorkspaceMetadata)
    patterns: list[str] = Field(default_factory=list)


class NamingOptions(BaseModel):
    prefix: str | None = None
    suffix: str | None = None
    strategy: NamingStrategy = "preserve"


class DeploymentValidationOptions(BaseModel):
    check_conflicts: bool = True
    validate_connections: bool = True
    enforce_constraints: bool = False


class DeploymentOptions(BaseModel):
    """パターン配置のオプション。"""

    position: Position | None = None
    auto_layout: bool = False
    layout: LayoutName | None = None
    preserve_existing: bool = True
    parameter_overrides: dict[str, Any] = Field(default_factory=dict)
    naming: NamingOptions = Field(default_factory=NamingOptions)
    validation: DeploymentValidationOptions = Field(default_factory=DeploymentValidationOptions)


class ConflictInfo(BaseModel):
    """既存ワークスペースとの衝突。"""

    type: Literal["naming", "position", "connection", "configuration"]
    severity: Literal["error", "warning"]
    message: str
    component: str | None = None
    suggestion: str | None = None


class Bounds(BaseModel):
    width: float = 0
    height: float = 0


class Spacing(BaseModel):
    horizontal: float = 200
    vertical: float = 150


class LayoutInfo(BaseModel):
    """ビューのフィッティング用のレイアウト情報。"""

    bounds: Bounds = Field(default_factory=Bounds)
    center: Position = Field(default_factory=Position)
    spacing: Spacing = Field(default_factory=Spacing)


class DeploymentResult(BaseModel):
    """パターン配置の結果。"""

    success: bool
    deployed_components: list[WorkspaceComponent] = Field(default_factory=list)
    connections: list[WorkspaceConnection] = Field(default_factory=list)
    errors: list[str] = Field(default_factory=list)
    warnings: list[str] = Field(default_factory=list)
    conflicts: list[ConflictInfo] | None = None
    layout: LayoutInfo | None = None
    stage: DeploymentStage = "preparing"


class EstimatedChanges(BaseModel):
    added: int = 0
    modified: int = 0
    removed: int = 0


class DeploymentPreview(BaseModel):
    """ワークスペースを変更しない配置プレビュー。"""

    preview: list[WorkspaceComponent] = Field(default_factory=list)
    layout: LayoutInfo = Field(default_factory=LayoutInfo)
    conflicts: list[ConflictInfo] = Field(default_factory=list)
    estimated_changes: EstimatedChanges = Field(default_factory=EstimatedChanges)


class BatchDeploymentItem(BaseModel):
    pattern: InfrastructurePattern
    options: DeploymentOptions = Field(default_factory=DeploymentOptions)


class BatchDeploymentOptions(BaseModel):
    """バッチ配置のオプション。"""

    create_snapshot: bool = False
    rollback_on_error: bool = False
    parallel: bool = False


class BatchDeploymentResult(DeploymentResult):
    pattern_id: str
