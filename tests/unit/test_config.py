"""ServerConfigのユニットテスト。"""

from pathlib import Path

import pytest

from infrapatterns.config import ServerConfig


class TestServerConfig:
    def test_defaults(self) -> None:
        config = ServerConfig()
        assert config.port == 8000
        assert config.url_token == ""
        assert config.max_workspace_components == 100
        assert (config.config_dir / "components.yaml").exists()

    def test_env_override(self, monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
        monkeypatch.setenv("INFRAPATTERNS_DATA_DIR", str(tmp_path))
        monkeypatch.setenv("INFRAPATTERNS_MAX_WORKSPACE_COMPONENTS", "25")
        monkeypatch.setenv("INFRAPATTERNS_LOG_LEVEL", "debug")
        config = ServerConfig()
        assert config.data_dir == tmp_path
        assert config.max_workspace_components == 25
        assert config.log_level == "debug"
