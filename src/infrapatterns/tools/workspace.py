"""ワークスペースへのパターン配置のMCPツール定義。"""

import uuid
from typing import Any

from fastmcp import FastMCP

from infrapatterns.models.errors import InfraPatternsError, PatternValidationError
from infrapatterns.models.workspace import (
    BatchDeploymentItem,
    BatchDeploymentOptions,
    DeploymentOptions,
    WorkspaceMetadata,
    WorkspaceState,
)
from infrapatterns.services.deployment import DeploymentService
from infrapatterns.services.registry import PatternRegistry
from infrapatterns.storage.service import StorageService


def register_workspace_tools(
    mcp: FastMCP,
    deployment: DeploymentService,
    registry: PatternRegistry,
    storage: StorageService,
) -> None:
    """ワークスペース関連のMCPツールを登録する。"""

    @mcp.tool()
    async def create_workspace(name: str, description: str = "") -> dict[str, Any]:
        """空のワークスペースを作成する。

        作成されたワークスペースID（`workspace_id`）は以降の配置操作で必要です。

        Args:
            name: ワークスペース名。
            description: ワークスペースの説明。
        """
        workspace = WorkspaceState(
            id=str(uuid.uuid4()),
            metadata=WorkspaceMetadata(name=name, description=description),
        )
        await storage.save_workspace(workspace)
        return {"workspace_id": workspace.id, "name": name}

    @mcp.tool()
    async def get_workspace(workspace_id: str) -> dict[str, Any]:
        """ワークスペースの現在の内容を取得する。

        Args:
            workspace_id: ワークスペースID。
        """
        try:
            workspace = await storage.load_workspace(workspace_id)
            return workspace.model_dump(mode="json")
        except InfraPatternsError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def preview_deployment(
        workspace_id: str,
        pattern_id: str,
        options: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """ワークスペースを変更せずに配置結果と衝突を確認する。

        Args:
            workspace_id: ワークスペースID。
            pattern_id: 配置するパターンのID。
            options: DeploymentOptions 形式の配置オプション。
        """
        try:
            workspace = await storage.load_workspace(workspace_id)
            pattern = registry.require_pattern(pattern_id)
            preview = deployment.preview_deployment(pattern, workspace, DeploymentOptions.model_validate(options or {}))
            return preview.model_dump(mode="json")
        except InfraPatternsError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def deploy_pattern(
        workspace_id: str,
        pattern_id: str,
        options: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """パターンをワークスペースに配置する。

        成功した場合のみ、配置されたコンポーネントと接続がワークスペースに保存されます。
        名前の衝突はデフォルトでエラーになり、何も追加されません。

        Args:
            workspace_id: ワークスペースID。
            pattern_id: 配置するパターンのID。
            options: DeploymentOptions 形式の配置オプション。
                例: {"position": {"x": 0, "y": 0}, "auto_layout": true,
                "naming": {"strategy": "increment"}}。
        """
        try:
            workspace = await storage.load_workspace(workspace_id)
            pattern = registry.require_pattern(pattern_id)
            result = deployment.deploy_pattern(pattern, workspace, DeploymentOptions.model_validate(options or {}))
            if result.success:
                deployment.apply_deployment(workspace, result)
                await storage.save_workspace(workspace)
            return result.model_dump(mode="json")
        except InfraPatternsError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def deploy_pattern_batch(
        workspace_id: str,
        items: list[dict[str, Any]],
        create_snapshot: bool = False,
        rollback_on_error: bool = False,
        parallel: bool = False,
    ) -> dict[str, Any]:
        """複数のパターンをまとめて配置する。

        順次モードでは後続のパターンが先行パターンの配置結果を考慮します。
        並列モードではバッチ内のパターン同士の衝突は検出されません。

        Args:
            workspace_id: ワークスペースID。
            items: 配置対象のリスト。各要素は {"pattern_id": str, "options": dict} 形式。
            create_snapshot: 配置前にスナップショットを取得するかどうか。
            rollback_on_error: 失敗時にスナップショットへ戻すかどうか。
            parallel: 並列に配置するかどうか。
        """
        try:
            workspace = await storage.load_workspace(workspace_id)
            batch = [
                BatchDeploymentItem(
                    pattern=registry.require_pattern(item["pattern_id"]),
                    options=DeploymentOptions.model_validate(item.get("options") or {}),
                )
                for item in items
            ]
            results = await deployment.deploy_pattern_batch(
                batch,
                workspace,
                BatchDeploymentOptions(
                    create_snapshot=create_snapshot,
                    rollback_on_error=rollback_on_error,
                    parallel=parallel,
                ),
            )
            await storage.save_workspace(workspace)
            return {
                "workspace_id": workspace.id,
                "component_count": len(workspace.components),
                "results": [r.model_dump(mode="json") for r in results],
            }
        except InfraPatternsError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def extract_pattern(
        workspace_id: str,
        name: str,
        description: str,
        component_ids: list[str] | None = None,
        category: str = "custom",
        author: str = "Workspace User",
        register: bool = False,
    ) -> dict[str, Any]:
        """ワークスペース上のコンポーネントから下書きパターンを作成する。

        Args:
            workspace_id: ワークスペースID。
            name: パターン名。
            description: パターンの説明。
            component_ids: 抽出するコンポーネントID。省略時は全コンポーネント。
            category: パターンのカテゴリ。
            author: 作者名。
            register: 抽出したパターンをレジストリに登録するかどうか。
        """
        try:
            workspace = await storage.load_workspace(workspace_id)
            components = workspace.components
            if component_ids is not None:
                selected = set(component_ids)
                components = [c for c in components if c.id in selected]
            pattern = deployment.extract_pattern(components, name, description, category=category, author=author)
            if register:
                result = registry.register_pattern(pattern)
                if not result.valid:
                    raise PatternValidationError(pattern.id, result.error_codes)
            return pattern.model_dump(mode="json")
        except InfraPatternsError as e:
            return {"error": type(e).__name__, "message": str(e)}
