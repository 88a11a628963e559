"""インフラパターン関連のデータモデル。"""

from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, Field

PatternComplexity = Literal["beginner", "intermediate", "advanced", "expert"]
PatternStatus = Literal["draft", "review", "published", "deprecated"]
ParameterType = Literal["string", "number", "boolean", "select", "multiselect"]
RelationshipType = Literal[
    "network-connection",
    "data-flow",
    "dependency",
    "containment",
    "load-balance",
    "replication",
    "backup",
]


class Position(BaseModel):
    """キャンバス上の座標。"""

    x: float = 0
    y: float = 0


class ComponentMetadataNote(BaseModel):
    """パターン内コンポーネントの補足情報。"""

    description: str | None = None
    notes: str | None = None
    alternatives: list[str] = Field(default_factory=list)


class ComponentReference(BaseModel):
    """パターン内で実体化された1つのコンポーネント。"""

    component_id: str
    instance_id: str
    display_name: str
    position: Position = Field(default_factory=Position)
    configuration: dict[str, Any] = Field(default_factory=dict)
    required: bool = True
    dependencies: list[str] = Field(default_factory=list)
    metadata: ComponentMetadataNote = Field(default_factory=ComponentMetadataNote)


class SecurityConfig(BaseModel):
    """接続のセキュリティ設定。"""

    encryption: bool = False
    authentication: list[str] = Field(default_factory=list)
    authorization: list[str] = Field(default_factory=list)
    compliance: list[str] = Field(default_factory=list)


class PerformanceConfig(BaseModel):
    """接続の性能要件。"""

    latency: str | None = None
    throughput: str | None = None
    bandwidth: str | None = None
    availability: str | None = None


class RelationshipConfig(BaseModel):
    """接続設定。既知のキー以外も保持する。"""

    model_config = {"extra": "allow"}

    bidirectional: bool = False
    protocols: list[Any] = Field(default_factory=list)
    ports: list[Any] | None = None
    security: SecurityConfig | None = None
    performance: PerformanceConfig | None = None


class RelationshipMetadata(BaseModel):
    """接続の補足情報。"""

    description: str | None = None
    protocols: list[str] = Field(default_factory=list)


class ComponentRelationship(BaseModel):
    """2つのコンポーネントインスタンス間の有向接続。"""

    id: str
    from_instance_id: str
    to_instance_id: str
    relationship_type: RelationshipType
    configuration: RelationshipConfig = Field(default_factory=RelationshipConfig)
    metadata: RelationshipMetadata = Field(default_factory=RelationshipMetadata)


class ParameterOption(BaseModel):
    """select/multiselect パラメータの選択肢。"""

    value: Any
    label: str
    description: str | None = None


class ParameterValidation(BaseModel):
    """パラメータ値の範囲・形式制約。"""

    min: float | None = None
    max: float | None = None
    pattern: str | None = None


class PatternParameter(BaseModel):
    """パターン生成を制御する型付きパラメータ。"""

    id: str
    name: str
    description: str = ""
    type: ParameterType
    required: bool = False
    default_value: Any = None
    options: list[ParameterOption] | None = None
    validation: ParameterValidation | None = None
    affects: list[str] = Field(default_factory=list)


class PatternPreview(BaseModel):
    """ブラウザ表示用のプレビュー情報。"""

    thumbnail: str = ""
    description: str = ""
    features: list[str] = Field(default_factory=list)
    benefits: list[str] = Field(default_factory=list)
    use_cases: list[str] = Field(default_factory=list)


class PatternDocumentation(BaseModel):
    """パターンのドキュメント。コアでは概要のみ参照する。"""

    overview: str = ""
    architecture: str = ""
    deployment_steps: list[str] = Field(default_factory=list)
    references: list[str] = Field(default_factory=list)


class PatternReview(BaseModel):
    """利用者レビュー。"""

    user_id: str
    rating: float
    comment: str = ""
    helpful: int = 0
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))


class InfrastructurePattern(BaseModel):
    """解決済みの具体的なインフラ構成パターン。"""

    id: str
    name: str
    description: str
    version: str = "1.0.0"

    category: str
    subcategory: str | None = None
    complexity: PatternComplexity = "beginner"
    status: PatternStatus = "draft"

    components: list[ComponentReference] = Field(default_factory=list)
    relationships: list[ComponentRelationship] = Field(default_factory=list)
    parameters: list[PatternParameter] = Field(default_factory=list)

    preview: PatternPreview = Field(default_factory=PatternPreview)
    documentation: PatternDocumentation = Field(default_factory=PatternDocumentation)

    tags: list[str] = Field(default_factory=list)
    author: str = ""
    organization: str | None = None
    license: str = "MIT"

    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    updated_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    download_count: int = 0
    rating: float | None = None
    reviews: list[PatternReview] = Field(default_factory=list)

    providers: list[str] = Field(default_factory=list)
    required_features: list[str] = Field(default_factory=list)

    def get_component(self, instance_id: str) -> ComponentReference | None:
        for component in self.components:
            if component.instance_id == instance_id:
                return component
        return None
