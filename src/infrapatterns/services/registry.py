"""検証済みパターンの登録・検索を行うサービス。"""

import logging
import math
import threading
from collections import Counter
from datetime import UTC, datetime
from typing import Any, get_args

from infrapatterns.models.errors import PatternNotFoundError
from infrapatterns.models.pattern import InfrastructurePattern, PatternComplexity, PatternStatus
from infrapatterns.models.registry import AuthorCount, PatternSearchFilters, PatternSearchResult, PatternStats
from infrapatterns.models.validation import PatternValidationResult
from infrapatterns.validators.pattern import PatternValidator

logger = logging.getLogger(__name__)

_TOP_AUTHORS = 10


class PatternRegistry:
    """パターンを保持し、カテゴリ・タグ・作者の索引で引けるようにする。

    索引は変更のたびに全件から再構築する。変更と再構築はロックで直列化する。
    """

    def __init__(self, validator: PatternValidator) -> None:
        self._validator = validator
        self._patterns: dict[str, InfrastructurePattern] = {}
        self._by_category: dict[str, set[str]] = {}
        self._by_tag: dict[str, set[str]] = {}
        self._by_author: dict[str, set[str]] = {}
        self._lock = threading.RLock()

    def register_pattern(self, pattern: InfrastructurePattern) -> PatternValidationResult:
        """パターンを検証し、妥当であれば登録する。

        Args:
            pattern: 登録するパターン。同じIDのパターンは上書きされる。

        Returns:
            検証結果。`valid` が False の場合は登録されない。
        """
        result = self._validator.validate(pattern)
        if not result.valid:
            logger.warning("Rejected pattern %s: %s", pattern.id, ", ".join(result.error_codes))
            return result

        with self._lock:
            self._patterns[pattern.id] = pattern
            self._rebuild_indexes()
        logger.info("Registered pattern %s", pattern.id)
        return result

    def unregister_pattern(self, pattern_id: str) -> bool:
        with self._lock:
            if self._patterns.pop(pattern_id, None) is None:
                return False
            self._rebuild_indexes()
        logger.info("Unregistered pattern %s", pattern_id)
        return True

    def get_pattern(self, pattern_id: str) -> InfrastructurePattern | None:
        return self._patterns.get(pattern_id)

    def require_pattern(self, pattern_id: str) -> InfrastructurePattern:
        """パターンを取得する。

        Raises:
            PatternNotFoundError: パターンが登録されていない場合。
        """
        pattern = self._patterns.get(pattern_id)
        if pattern is None:
            raise PatternNotFoundError(pattern_id)
        return pattern

    def list_patterns(self) -> list[InfrastructurePattern]:
        with self._lock:
            return list(self._patterns.values())

    def get_patterns_by_category(self, category: str) -> list[InfrastructurePattern]:
        return self._lookup(self._by_category, category)

    def get_patterns_by_tag(self, tag: str) -> list[InfrastructurePattern]:
        return self._lookup(self._by_tag, tag)

    def get_patterns_by_author(self, author: str) -> list[InfrastructurePattern]:
        return self._lookup(self._by_author, author)

    def search_patterns(self, filters: PatternSearchFilters) -> list[PatternSearchResult]:
        """条件に一致するパターンを関連度順に返す。

        名前に検索語を含むパターンはスコアに関わらず先頭に並ぶ。
        """
        results = [p for p in self.list_patterns() if self._matches(p, filters)]
        term = filters.free_text.lower() if filters.free_text else None

        scored = [
            PatternSearchResult(
                pattern=p,
                relevance_score=self._relevance_score(p, filters),
                matched_fields=self._matched_fields(p, filters),
            )
            for p in results
        ]
        scored.sort(
            key=lambda r: (term is not None and term in r.pattern.name.lower(), r.relevance_score),
            reverse=True,
        )
        return scored

    def clone_pattern(self, source_id: str, overrides: dict[str, Any] | None = None) -> InfrastructurePattern | None:
        """既存パターンを複製する。複製は自動登録されない。"""
        source = self.get_pattern(source_id)
        if source is None:
            return None

        overrides = overrides or {}
        now = datetime.now(UTC)
        data = {
            **source.model_dump(),
            **overrides,
            "id": overrides.get("id") or f"{source.id}-copy",
            "name": overrides.get("name") or f"{source.name} (Copy)",
            "version": overrides.get("version") or "1.0.0",
            "created_at": now,
            "updated_at": now,
            "download_count": 0,
            "rating": None,
            "reviews": [],
        }
        return InfrastructurePattern.model_validate(data)

    def get_pattern_stats(self) -> PatternStats:
        patterns = self.list_patterns()
        categories = sorted({p.category for p in patterns})
        author_counts = Counter(p.author for p in patterns)
        rated = [p.rating for p in patterns if p.rating is not None]

        return PatternStats(
            total_patterns=len(patterns),
            by_category={c: sum(1 for p in patterns if p.category == c) for c in categories},
            by_complexity={c: sum(1 for p in patterns if p.complexity == c) for c in get_args(PatternComplexity)},
            by_status={s: sum(1 for p in patterns if p.status == s) for s in get_args(PatternStatus)},
            top_authors=[
                AuthorCount(author=author, count=count) for author, count in author_counts.most_common(_TOP_AUTHORS)
            ],
            avg_rating=sum(rated) / len(rated) if rated else 0.0,
        )

    def _lookup(self, index: dict[str, set[str]], key: str) -> list[InfrastructurePattern]:
        with self._lock:
            return [self._patterns[pid] for pid in sorted(index.get(key, set()))]

    def _rebuild_indexes(self) -> None:
        by_category: dict[str, set[str]] = {}
        by_tag: dict[str, set[str]] = {}
        by_author: dict[str, set[str]] = {}
        for pattern in self._patterns.values():
            by_category.setdefault(pattern.category, set()).add(pattern.id)
            for tag in pattern.tags:
                by_tag.setdefault(tag, set()).add(pattern.id)
            by_author.setdefault(pattern.author, set()).add(pattern.id)
        self._by_category = by_category
        self._by_tag = by_tag
        self._by_author = by_author

    @staticmethod
    def _matches(pattern: InfrastructurePattern, filters: PatternSearchFilters) -> bool:
        if filters.categories and pattern.category not in filters.categories:
            return False
        if filters.complexity and pattern.complexity not in filters.complexity:
            return False
        if filters.providers and not set(filters.providers) & set(pattern.providers):
            return False
        if filters.status and pattern.status not in filters.status:
            return False
        if filters.tags and not set(filters.tags) & set(pattern.tags):
            return False
        if filters.author and filters.author.lower() not in pattern.author.lower():
            return False
        if filters.min_rating is not None and (pattern.rating or 0) < filters.min_rating:
            return False
        if filters.free_text:
            term = filters.free_text.lower()
            haystacks = [
                pattern.name.lower(),
                pattern.description.lower(),
                pattern.documentation.overview.lower(),
                *(tag.lower() for tag in pattern.tags),
            ]
            if not any(term in text for text in haystacks):
                return False
        return True

    @staticmethod
    def _relevance_score(pattern: InfrastructurePattern, filters: PatternSearchFilters) -> float:
        score = (pattern.rating or 0) * 20
        if pattern.category in filters.categories:
            score += 50
        score += 30 * sum(1 for tag in filters.tags if tag in pattern.tags)
        score += 25 * sum(1 for provider in filters.providers if provider in pattern.providers)
        if pattern.complexity in filters.complexity:
            score += 20
        score += math.log10(pattern.download_count + 1) * 10
        if filters.free_text:
            term = filters.free_text.lower()
            if term in pattern.name.lower():
                score += 100
            if term in pattern.description.lower():
                score += 50
        return score

    @staticmethod
    def _matched_fields(pattern: InfrastructurePattern, filters: PatternSearchFilters) -> list[str]:
        matched: list[str] = []
        if pattern.category in filters.categories:
            matched.append("category")
        if set(filters.tags) & set(pattern.tags):
            matched.append("tags")
        if set(filters.providers) & set(pattern.providers):
            matched.append("providers")
        if pattern.complexity in filters.complexity:
            matched.append("complexity")
        if filters.free_text:
            term = filters.free_text.lower()
            if term in pattern.name.lower():
                matched.append("name")
            if term in pattern.description.lower():
                matched.append("description")
        return matched
