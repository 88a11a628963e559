"""FastMCPベースのMCPサーバーエントリポイント。"""

from fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import JSONResponse

from infrapatterns.config import ServerConfig
from infrapatterns.prompts.workflow import register_workflow_prompts
from infrapatterns.resolution.parameters import ParameterResolver
from infrapatterns.resources.catalog import register_catalog_resources
from infrapatterns.services.catalog import ComponentCatalog
from infrapatterns.services.deployment import DeploymentService
from infrapatterns.services.library import bootstrap_library
from infrapatterns.services.registry import PatternRegistry
from infrapatterns.services.template import TemplateEngine
from infrapatterns.storage.service import StorageService
from infrapatterns.tools.export import register_export_tools
from infrapatterns.tools.patterns import register_pattern_tools
from infrapatterns.tools.templates import register_template_tools
from infrapatterns.tools.workspace import register_workspace_tools
from infrapatterns.validators.pattern import PatternValidator


def create_server(config: ServerConfig | None = None) -> FastMCP:
    """infrapatterns MCPサーバーを作成し、ツール・リソース・プロンプトを登録する。

    Args:
        config: サーバー設定。Noneの場合はデフォルト設定を使用。

    Returns:
        設定済みのFastMCPインスタンス。
    """
    if config is None:
        config = ServerConfig()

    mcp = FastMCP("infrapatterns")

    # データアクセス層
    storage = StorageService(data_dir=config.data_dir)
    catalog = ComponentCatalog(config_dir=config.config_dir)

    # サービス層
    validator = PatternValidator(catalog)
    registry = PatternRegistry(validator)
    engine = TemplateEngine(ParameterResolver())
    deployment = DeploymentService(validator, max_workspace_components=config.max_workspace_components)
    bootstrap_library(config.config_dir, engine, registry)

    # MCPインターフェース登録（パターン・テンプレート）
    register_pattern_tools(mcp, registry, validator)
    register_template_tools(mcp, engine, registry)
    register_catalog_resources(mcp, catalog, engine)

    # MCPインターフェース登録（ワークスペース）
    register_workspace_tools(mcp, deployment, registry, storage)
    register_export_tools(mcp, registry)

    # MCPインターフェース登録（プロンプト）
    register_workflow_prompts(mcp)

    # ヘルスチェックエンドポイント
    @mcp.custom_route("/health", methods=["GET"])
    async def health_check(request: Request) -> JSONResponse:
        return JSONResponse({"status": "ok"})

    return mcp
