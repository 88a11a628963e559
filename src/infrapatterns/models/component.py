"""コンポーネントカタログのデータモデル。"""

from typing import Any

from pydantic import BaseModel, Field


class ProviderMapping(BaseModel):
    """クラウドプロバイダー固有のサービス情報。"""

    name: str
    description: str = ""
    icon_path: str = ""
    tags: list[str] = Field(default_factory=list)


class ComponentMetadata(BaseModel):
    """カタログに登録されたコンポーネント定義。"""

    id: str
    name: str
    category: str
    description: str = ""
    provider_mappings: dict[str, ProviderMapping] = Field(default_factory=dict)
    default_config: dict[str, Any] = Field(default_factory=dict)

    def supports(self, provider: str) -> bool:
        return provider in self.provider_mappings

    def label_for(self, provider: str | None = None) -> str:
        """プロバイダー向けの表示名を返す。マッピングがなければ汎用名。"""
        if provider is not None and provider in self.provider_mappings:
            return self.provider_mappings[provider].name
        return self.name
