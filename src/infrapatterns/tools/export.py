"""エクスポート系のMCPツール定義。"""

import json
from typing import Any

import yaml
from fastmcp import FastMCP

from infrapatterns.models.errors import InfraPatternsError, UnsupportedFormatError
from infrapatterns.models.pattern import InfrastructurePattern
from infrapatterns.services.registry import PatternRegistry


def render_pattern(pattern: InfrastructurePattern, format_name: str) -> str:
    """パターンを指定形式の文字列に変換する。

    Raises:
        UnsupportedFormatError: json / yaml 以外が指定された場合。
    """
    data = pattern.model_dump(mode="json")
    if format_name == "json":
        return json.dumps(data, indent=2, ensure_ascii=False)
    if format_name == "yaml":
        return yaml.safe_dump(data, allow_unicode=True, default_flow_style=False, sort_keys=False)
    raise UnsupportedFormatError(format_name)


def register_export_tools(mcp: FastMCP, registry: PatternRegistry) -> None:
    """エクスポート関連のMCPツールを登録する。"""

    @mcp.tool()
    async def export_pattern(pattern_id: str, format: str = "json") -> dict[str, Any]:
        """登録済みパターンをJSONまたはYAMLで出力する。

        Args:
            pattern_id: パターンID。
            format: 出力形式（"json" または "yaml"）。
        """
        try:
            pattern = registry.require_pattern(pattern_id)
            return {"pattern_id": pattern_id, "format": format, "content": render_pattern(pattern, format)}
        except InfraPatternsError as e:
            return {"error": type(e).__name__, "message": str(e)}
