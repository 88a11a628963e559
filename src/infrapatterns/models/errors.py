"""infrapatternsのカスタム例外クラス。"""


class InfraPatternsError(Exception):
    """infrapatternsの基底例外クラス。"""


class TemplateNotFoundError(InfraPatternsError):
    """指定されたパターンテンプレートが見つからない場合の例外。"""

    def __init__(self, template_id: str) -> None:
        super().__init__(f"Template not found: {template_id}")
        self.template_id = template_id


class PatternNotFoundError(InfraPatternsError):
    """指定されたパターンがレジストリに存在しない場合の例外。"""

    def __init__(self, pattern_id: str) -> None:
        super().__init__(f"Pattern not found: {pattern_id}")
        self.pattern_id = pattern_id


class PatternValidationError(InfraPatternsError):
    """パターンが構造検証に失敗した場合の例外。"""

    def __init__(self, pattern_id: str, codes: list[str]) -> None:
        super().__init__(f"Pattern validation failed for {pattern_id}: {', '.join(codes)}")
        self.pattern_id = pattern_id
        self.codes = codes


class WorkspaceNotFoundError(InfraPatternsError):
    """指定されたワークスペースが見つからない場合の例外。"""

    def __init__(self, workspace_id: str) -> None:
        super().__init__(f"Workspace not found: {workspace_id}")
        self.workspace_id = workspace_id


class ComponentCatalogError(InfraPatternsError):
    """コンポーネントカタログの読み込みに失敗した場合の例外。"""


class StorageError(InfraPatternsError):
    """ストレージ操作のエラー。"""


class UnsupportedFormatError(InfraPatternsError):
    """未対応のエクスポート形式が指定された場合の例外。"""

    def __init__(self, format_name: str) -> None:
        super().__init__(f"Unsupported export format: {format_name}")
        self.format_name = format_name
