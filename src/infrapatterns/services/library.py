"""同梱のパターンテンプレート・パターン定義の読み込み。"""

import logging
from pathlib import Path

import yaml

from infrapatterns.models.pattern import InfrastructurePattern
from infrapatterns.models.template import PatternTemplate
from infrapatterns.services.registry import PatternRegistry
from infrapatterns.services.template import TemplateEngine

logger = logging.getLogger(__name__)


def _load_yaml_dir(directory: Path) -> list[tuple[Path, dict]]:  # type: ignore[type-arg]
    if not directory.exists():
        return []
    documents = []
    for yaml_file in sorted(directory.glob("*.yaml")):
        with open(yaml_file, encoding="utf-8") as f:
            data = yaml.safe_load(f)
        if data:
            documents.append((yaml_file, data))
    return documents


def load_templates(config_dir: Path) -> list[PatternTemplate]:
    """`pattern-templates/*.yaml` をテンプレートとして読み込む。"""
    return [
        PatternTemplate.model_validate(data) for _, data in _load_yaml_dir(config_dir / "pattern-templates")
    ]


def load_patterns(config_dir: Path) -> list[InfrastructurePattern]:
    """`patterns/*.yaml` を具体パターンとして読み込む。"""
    return [InfrastructurePattern.model_validate(data) for _, data in _load_yaml_dir(config_dir / "patterns")]


def bootstrap_library(config_dir: Path, engine: TemplateEngine, registry: PatternRegistry) -> None:
    """同梱テンプレートとパターンをエンジン・レジストリに登録する。

    検証に失敗したパターンはログに記録して読み飛ばす。
    """
    templates = load_templates(config_dir)
    for template in templates:
        engine.register_template(template)

    registered = 0
    for pattern in load_patterns(config_dir):
        result = registry.register_pattern(pattern)
        if result.valid:
            registered += 1
        else:
            logger.warning("Skipped bundled pattern %s: %s", pattern.id, ", ".join(result.error_codes))
    logger.info("Loaded %d templates and %d patterns from %s", len(templates), registered, config_dir)
