"""ローカルファイルシステムベースのワークスペースストレージ。"""

import json
import logging
import shutil
from pathlib import Path

from infrapatterns.models.errors import StorageError, WorkspaceNotFoundError
from infrapatterns.models.workspace import WorkspaceState

logger = logging.getLogger(__name__)


class StorageService:
    """ワークスペース文書をJSONファイルとして永続化する。"""

    def __init__(self, data_dir: Path) -> None:
        self._data_dir = data_dir
        self._workspaces_dir = data_dir / "workspaces"

    def _workspace_dir(self, workspace_id: str) -> Path:
        # ディレクトリトラバーサル防止
        safe_id = Path(workspace_id).name
        if not safe_id or safe_id != workspace_id:
            raise StorageError(f"Invalid workspace ID: {workspace_id}")
        return self._workspaces_dir / safe_id

    def _workspace_file(self, workspace_id: str) -> Path:
        return self._workspace_dir(workspace_id) / "workspace.json"

    async def save_workspace(self, workspace: WorkspaceState) -> None:
        """ワークスペースをファイルシステムに保存する。"""
        workspace_dir = self._workspace_dir(workspace.id)
        workspace_dir.mkdir(parents=True, exist_ok=True)
        self._workspace_file(workspace.id).write_text(workspace.model_dump_json(indent=2), encoding="utf-8")
        logger.debug("Saved workspace %s (%d components)", workspace.id, len(workspace.components))

    async def load_workspace(self, workspace_id: str) -> WorkspaceState:
        """ワークスペースをファイルシステムから読み込む。

        Raises:
            WorkspaceNotFoundError: ワークスペースが存在しない場合。
        """
        workspace_file = self._workspace_file(workspace_id)
        if not workspace_file.exists():
            raise WorkspaceNotFoundError(workspace_id)
        data = json.loads(workspace_file.read_text(encoding="utf-8"))
        return WorkspaceState.model_validate(data)

    async def delete_workspace(self, workspace_id: str) -> None:
        workspace_dir = self._workspace_dir(workspace_id)
        if workspace_dir.exists():
            shutil.rmtree(workspace_dir)

    async def list_workspaces(self) -> list[str]:
        """保存されているワークスペースIDの一覧を返す。"""
        if not self._workspaces_dir.exists():
            return []
        return sorted(d.name for d in self._workspaces_dir.iterdir() if d.is_dir())
