"""パターン検証結果のデータモデル。"""

from typing import Literal

from pydantic import BaseModel, Field


class ValidationError(BaseModel):
    """登録・配置を阻止する構造上の問題。"""

    code: str
    message: str
    component: str | None = None
    field: str | None = None
    severity: Literal["error", "warning", "info"] = "error"


class ValidationWarning(BaseModel):
    """致命的ではない指摘。"""

    code: str
    message: str
    component: str | None = None
    suggestion: str | None = None


class ValidationSuggestion(BaseModel):
    """構成改善の提案。"""

    type: Literal["optimization", "security", "cost", "performance"]
    message: str
    impact: Literal["high", "medium", "low"]
    effort: Literal["low", "medium", "high"]


class PatternValidationResult(BaseModel):
    valid: bool
    errors: list[ValidationError] = Field(default_factory=list)
    warnings: list[ValidationWarning] = Field(default_factory=list)
    suggestions: list[ValidationSuggestion] = Field(default_factory=list)

    @property
    def error_codes(self) -> list[str]:
        return [e.code for e in self.errors]
