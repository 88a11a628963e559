"""パターンテンプレートのMCPツール定義。"""

from typing import Any

from fastmcp import FastMCP

from infrapatterns.models.errors import InfraPatternsError
from infrapatterns.models.template import TemplateContext
from infrapatterns.services.registry import PatternRegistry
from infrapatterns.services.template import TemplateEngine


def register_template_tools(mcp: FastMCP, engine: TemplateEngine, registry: PatternRegistry) -> None:
    """テンプレート関連のMCPツールを登録する。"""

    @mcp.tool()
    async def list_templates(category: str | None = None) -> dict[str, Any]:
        """利用可能なパターンテンプレートの一覧を取得する。

        Args:
            category: カテゴリで絞り込む場合に指定。
        """
        return {
            "templates": [
                {
                    "id": t.id,
                    "name": t.name,
                    "description": t.description,
                    "category": t.category,
                    "complexity": t.complexity,
                    "parameters": [p.id for p in t.parameters],
                }
                for t in engine.list_templates(category)
            ]
        }

    @mcp.tool()
    async def preview_template(template_id: str) -> dict[str, Any]:
        """テンプレートのパラメータ定義と利用例を取得する。

        Args:
            template_id: テンプレートID。
        """
        try:
            engine.require_template(template_id)
            return engine.preview_template(template_id).model_dump(mode="json")
        except InfraPatternsError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def generate_pattern(
        template_id: str,
        provider: str,
        parameters: dict[str, Any] | None = None,
        project_name: str | None = None,
        environment: str | None = None,
        region: str | None = None,
        tags: dict[str, str] | None = None,
        register: bool = False,
    ) -> dict[str, Any]:
        """テンプレートから具体パターンを生成する。

        パラメータ検証に失敗した場合は `success: false` とエラー一覧を返します。
        `register` を指定すると、生成したパターンを検証してレジストリに登録します。

        Args:
            template_id: テンプレートID。
            provider: 対象クラウドプロバイダー（aws / azure / gcp / generic）。
            parameters: テンプレートパラメータの値。
            project_name: パターンIDの接頭辞に使うプロジェクト名。
            environment: 環境（development / staging / production）。
            region: リージョン。
            tags: パターンに付与するタグ。
            register: 生成結果をレジストリに登録するかどうか。
        """
        context = TemplateContext.model_validate(
            {
                "parameters": parameters or {},
                "provider": provider,
                "project_name": project_name,
                "environment": environment,
                "region": region,
                "tags": tags or {},
            }
        )
        result = engine.generate_pattern(template_id, context)
        response: dict[str, Any] = result.model_dump(mode="json")
        if register and result.pattern is not None:
            validation = registry.register_pattern(result.pattern)
            response["registered"] = validation.valid
            response["validation"] = validation.model_dump()
        return response
