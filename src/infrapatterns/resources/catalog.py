"""カタログ関連のMCPリソース定義。"""

import yaml
from fastmcp import FastMCP

from infrapatterns.services.catalog import ComponentCatalog
from infrapatterns.services.template import TemplateEngine


def register_catalog_resources(mcp: FastMCP, catalog: ComponentCatalog, engine: TemplateEngine) -> None:
    """カタログ関連のMCPリソースを登録する。"""

    @mcp.resource("infrapatterns://catalog/components")
    async def components() -> str:
        """パターンで利用可能なコンポーネント定義を取得する。

        各コンポーネントにはID、カテゴリ、プロバイダー別のサービス名が含まれます。
        """
        data = {"components": [c.model_dump() for c in catalog.list_components()]}
        return yaml.dump(data, allow_unicode=True, default_flow_style=False)

    @mcp.resource("infrapatterns://catalog/templates")
    async def templates() -> str:
        """登録済みのパターンテンプレートとそのパラメータを取得する。"""
        data = {
            "templates": [
                {
                    "id": t.id,
                    "name": t.name,
                    "category": t.category,
                    "complexity": t.complexity,
                    "parameters": [p.model_dump(exclude_none=True) for p in t.parameters],
                }
                for t in engine.list_templates()
            ]
        }
        return yaml.dump(data, allow_unicode=True, default_flow_style=False)
