"""YAMLで定義されたコンポーネントカタログ。"""

import logging
from pathlib import Path

import yaml

from infrapatterns.models.component import ComponentMetadata
from infrapatterns.models.errors import ComponentCatalogError

logger = logging.getLogger(__name__)


class ComponentCatalog:
    """コンポーネントIDからプロバイダー別メタデータを引く読み取り専用カタログ。"""

    def __init__(self, config_dir: Path) -> None:
        self._config_dir = config_dir
        self._components: dict[str, ComponentMetadata] | None = None

    def _load_components(self) -> dict[str, ComponentMetadata]:
        """コンポーネント定義を読み込む。"""
        if self._components is not None:
            return self._components

        catalog_file = self._config_dir / "components.yaml"
        try:
            with open(catalog_file, encoding="utf-8") as f:
                data = yaml.safe_load(f)
        except FileNotFoundError:
            raise ComponentCatalogError(f"Component catalog not found: {catalog_file}") from None

        components: dict[str, ComponentMetadata] = {}
        for entry in (data or {}).get("components", []):
            component = ComponentMetadata.model_validate(entry)
            components[component.id] = component
        logger.info("Loaded %d catalog components from %s", len(components), catalog_file)
        self._components = components
        return components

    def get_component(self, component_id: str) -> ComponentMetadata | None:
        return self._load_components().get(component_id)

    def list_components(self, category: str | None = None, provider: str | None = None) -> list[ComponentMetadata]:
        """カテゴリ・プロバイダーで絞り込んだコンポーネント一覧を返す。"""
        components = list(self._load_components().values())
        if category is not None:
            components = [c for c in components if c.category == category]
        if provider is not None:
            components = [c for c in components if c.supports(provider)]
        return components

    def find_alternatives(self, component_id: str, provider: str) -> list[str]:
        """同カテゴリで指定プロバイダーに対応するコンポーネントIDを返す。"""
        component = self.get_component(component_id)
        if component is None:
            return []
        return [
            c.id
            for c in self.list_components(category=component.category, provider=provider)
            if c.id != component_id
        ]
