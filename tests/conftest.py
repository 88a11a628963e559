"""テスト共通フィクスチャ。"""

from pathlib import Path

import pytest

from infrapatterns.config import ServerConfig
from infrapatterns.resolution.parameters import ParameterResolver
from infrapatterns.services.catalog import ComponentCatalog
from infrapatterns.services.deployment import DeploymentService
from infrapatterns.services.registry import PatternRegistry
from infrapatterns.services.template import TemplateEngine
from infrapatterns.storage.service import StorageService
from infrapatterns.validators.pattern import PatternValidator


@pytest.fixture
def tmp_data_dir(tmp_path: Path) -> Path:
    """テスト用の一時データディレクトリ。"""
    return tmp_path / "infrapatterns-test"


@pytest.fixture
def config_dir() -> Path:
    """設定ファイルディレクトリ。"""
    return Path(__file__).parent.parent / "config"


@pytest.fixture
def storage(tmp_data_dir: Path) -> StorageService:
    """テスト用StorageService。"""
    return StorageService(data_dir=tmp_data_dir)


@pytest.fixture
def catalog(config_dir: Path) -> ComponentCatalog:
    """同梱カタログを読むComponentCatalog。"""
    return ComponentCatalog(config_dir=config_dir)


@pytest.fixture
def resolver() -> ParameterResolver:
    return ParameterResolver()


@pytest.fixture
def validator(catalog: ComponentCatalog) -> PatternValidator:
    return PatternValidator(catalog)


@pytest.fixture
def registry(validator: PatternValidator) -> PatternRegistry:
    """テストごとに新しいPatternRegistry。"""
    return PatternRegistry(validator)


@pytest.fixture
def engine(resolver: ParameterResolver) -> TemplateEngine:
    """テンプレート未登録のTemplateEngine。"""
    return TemplateEngine(resolver)


@pytest.fixture
def deployment(validator: PatternValidator) -> DeploymentService:
    return DeploymentService(validator, max_workspace_components=100)


@pytest.fixture
def server_config(tmp_data_dir: Path, config_dir: Path) -> ServerConfig:
    """テスト用ServerConfig。"""
    return ServerConfig(data_dir=tmp_data_dir, config_dir=config_dir)
