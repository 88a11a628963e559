"""パターンレジストリの検索・統計モデル。"""

from pydantic import BaseModel, Field

from infrapatterns.models.pattern import InfrastructurePattern, PatternComplexity, PatternStatus


class PatternSearchFilters(BaseModel):
    """パターン検索の条件。指定された条件はすべてAND結合される。"""

    categories: list[str] = Field(default_factory=list)
    complexity: list[PatternComplexity] = Field(default_factory=list)
    providers: list[str] = Field(default_factory=list)
    tags: list[str] = Field(default_factory=list)
    status: list[PatternStatus] = Field(default_factory=list)
    author: str | None = None
    min_rating: float | None = None
    free_text: str | None = None


class PatternSearchResult(BaseModel):
    pattern: InfrastructurePattern
    relevance_score: float
    matched_fields: list[str] = Field(default_factory=list)


class AuthorCount(BaseModel):
    author: str
    count: int


class PatternStats(BaseModel):
    """レジストリ全体の集計。"""

    total_patterns: int = 0
    by_category: dict[str, int] = Field(default_factory=dict)
    by_complexity: dict[str, int] = Field(default_factory=dict)
    by_status: dict[str, int] = Field(default_factory=dict)
    top_authors: list[AuthorCount] = Field(default_factory=list)
    avg_rating: float = 0.0
