"""パターンレジストリのMCPツール定義。"""

from typing import Any

from fastmcp import FastMCP

from infrapatterns.models.errors import InfraPatternsError, PatternNotFoundError, PatternValidationError
from infrapatterns.models.pattern import InfrastructurePattern
from infrapatterns.models.registry import PatternSearchFilters
from infrapatterns.services.registry import PatternRegistry
from infrapatterns.validators.pattern import PatternValidator


def register_pattern_tools(mcp: FastMCP, registry: PatternRegistry, validator: PatternValidator) -> None:
    """パターン関連のMCPツールを登録する。"""

    @mcp.tool()
    async def search_patterns(
        free_text: str | None = None,
        categories: list[str] | None = None,
        complexity: list[str] | None = None,
        providers: list[str] | None = None,
        tags: list[str] | None = None,
        status: list[str] | None = None,
        author: str | None = None,
        min_rating: float | None = None,
    ) -> dict[str, Any]:
        """登録済みパターンを検索する。

        指定した条件はすべてAND結合されます。結果は関連度の高い順に並び、
        名前に検索語を含むパターンが先頭に来ます。

        Args:
            free_text: 名前・説明・タグ・概要に対する部分一致検索語。
            categories: カテゴリの候補。
            complexity: 複雑度の候補（beginner / intermediate / advanced / expert）。
            providers: いずれかに対応するパターンに絞り込むプロバイダー。
            tags: いずれかを持つパターンに絞り込むタグ。
            status: ステータスの候補（draft / review / published / deprecated）。
            author: 作者名の部分一致（大文字小文字を区別しない）。
            min_rating: 最低評価。
        """
        filters = PatternSearchFilters.model_validate(
            {
                "free_text": free_text,
                "categories": categories or [],
                "complexity": complexity or [],
                "providers": providers or [],
                "tags": tags or [],
                "status": status or [],
                "author": author,
                "min_rating": min_rating,
            }
        )
        results = registry.search_patterns(filters)
        return {
            "results": [
                {
                    "pattern_id": r.pattern.id,
                    "name": r.pattern.name,
                    "description": r.pattern.description,
                    "category": r.pattern.category,
                    "relevance_score": r.relevance_score,
                    "matched_fields": r.matched_fields,
                }
                for r in results
            ]
        }

    @mcp.tool()
    async def get_pattern(pattern_id: str) -> dict[str, Any]:
        """パターンの詳細を取得する。

        Args:
            pattern_id: パターンID。
        """
        try:
            return registry.require_pattern(pattern_id).model_dump(mode="json")
        except InfraPatternsError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def validate_pattern(pattern: dict[str, Any]) -> dict[str, Any]:
        """パターン定義を登録せずに検証する。

        Args:
            pattern: InfrastructurePattern 形式のパターン定義。
        """
        result = validator.validate(InfrastructurePattern.model_validate(pattern))
        return result.model_dump()

    @mcp.tool()
    async def register_pattern(pattern: dict[str, Any]) -> dict[str, Any]:
        """パターンを検証してレジストリに登録する。

        検証エラーがある場合は登録されず、検証結果が返されます。
        同じIDのパターンは上書きされます。

        Args:
            pattern: InfrastructurePattern 形式のパターン定義。
        """
        candidate = InfrastructurePattern.model_validate(pattern)
        result = registry.register_pattern(candidate)
        return {"pattern_id": candidate.id, "registered": result.valid, "validation": result.model_dump()}

    @mcp.tool()
    async def clone_pattern(
        source_id: str,
        overrides: dict[str, Any] | None = None,
        register: bool = False,
    ) -> dict[str, Any]:
        """既存パターンを複製する。

        IDを指定しない場合は `{source_id}-copy` になります。
        利用回数・評価・レビューはリセットされます。

        Args:
            source_id: 複製元のパターンID。
            overrides: 上書きするフィールド。
            register: 複製をレジストリに登録するかどうか。
        """
        try:
            clone = registry.clone_pattern(source_id, overrides)
            if clone is None:
                raise PatternNotFoundError(source_id)
            if register:
                result = registry.register_pattern(clone)
                if not result.valid:
                    raise PatternValidationError(clone.id, result.error_codes)
            return clone.model_dump(mode="json")
        except InfraPatternsError as e:
            return {"error": type(e).__name__, "message": str(e)}

    @mcp.tool()
    async def get_pattern_stats() -> dict[str, Any]:
        """レジストリ全体の統計を取得する。"""
        return registry.get_pattern_stats().model_dump()
