"""StorageServiceのユニットテスト。"""

import pytest

from infrapatterns.models.errors import StorageError, WorkspaceNotFoundError
from infrapatterns.models.workspace import WorkspaceComponent, WorkspaceState
from infrapatterns.storage.service import StorageService


class TestStorageService:
    async def test_save_and_load_workspace(self, storage: StorageService) -> None:
        workspace = WorkspaceState(id="ws-1")
        workspace.metadata.name = "Sandbox"
        await storage.save_workspace(workspace)

        loaded = await storage.load_workspace("ws-1")
        assert loaded.id == "ws-1"
        assert loaded.metadata.name == "Sandbox"
        assert loaded.components == []

    async def test_save_workspace_with_components(self, storage: StorageService) -> None:
        workspace = WorkspaceState(
            id="ws-2",
            components=[WorkspaceComponent(id="web", type="generic-compute", configuration={"size": "small"})],
        )
        await storage.save_workspace(workspace)

        loaded = await storage.load_workspace("ws-2")
        assert loaded.components[0].configuration == {"size": "small"}

    async def test_save_workspace_overwrites_existing(self, storage: StorageService) -> None:
        workspace = WorkspaceState(id="ws-3")
        await storage.save_workspace(workspace)

        workspace.components.append(WorkspaceComponent(id="db", type="generic-database"))
        await storage.save_workspace(workspace)

        loaded = await storage.load_workspace("ws-3")
        assert [c.id for c in loaded.components] == ["db"]

    async def test_load_nonexistent_workspace_raises_error(self, storage: StorageService) -> None:
        with pytest.raises(WorkspaceNotFoundError) as exc_info:
            await storage.load_workspace("nonexistent")
        assert exc_info.value.workspace_id == "nonexistent"

    async def test_delete_workspace(self, storage: StorageService) -> None:
        await storage.save_workspace(WorkspaceState(id="ws-4"))
        await storage.delete_workspace("ws-4")

        with pytest.raises(WorkspaceNotFoundError):
            await storage.load_workspace("ws-4")

    async def test_delete_nonexistent_workspace_no_error(self, storage: StorageService) -> None:
        await storage.delete_workspace("nonexistent")

    async def test_list_workspaces(self, storage: StorageService) -> None:
        assert await storage.list_workspaces() == []
        await storage.save_workspace(WorkspaceState(id="ws-b"))
        await storage.save_workspace(WorkspaceState(id="ws-a"))
        assert await storage.list_workspaces() == ["ws-a", "ws-b"]

    @pytest.mark.parametrize("workspace_id", ["../escape", "a/b", "", ".."])
    async def test_invalid_workspace_id(self, storage: StorageService, workspace_id: str) -> None:
        with pytest.raises(StorageError):
            await storage.load_workspace(workspace_id)
