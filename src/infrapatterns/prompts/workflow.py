"""パターン配置ワークフローのMCPプロンプト定義。"""

from fastmcp import FastMCP


def register_workflow_prompts(mcp: FastMCP) -> None:
    """ワークフロー系のMCPプロンプトを登録する。"""

    @mcp.prompt()
    async def deploy_pattern_workflow() -> str:
        """テンプレート選択からワークスペース配置までのワークフロー。

        テンプレートからパターンを生成し、検証してワークスペースに配置するまでをガイドします。
        """
        return (
            "# インフラパターン配置ワークフロー\n\n"
            "## Step 1: パターンの選択\n\n"
            "1. `search_patterns` ツールで既存のパターンを検索してください。\n"
            "2. 適切なパターンがなければ `list_templates` でテンプレート一覧を取得してください。\n"
            "3. `preview_template` でパラメータ定義と利用例を確認してください。\n\n"
            "## Step 2: パターンの生成\n\n"
            "1. 利用者にプロバイダーとパラメータ値を確認してください。\n"
            "2. `generate_pattern` ツールに `register: true` を指定してパターンを生成・登録してください。\n"
            "3. 検証結果のerrorは必ず対応してください。warningとsuggestionは推奨事項です。\n\n"
            "## Step 3: 配置\n\n"
            "1. `create_workspace` でワークスペースを作成し、**ワークスペースIDを利用者に提示してください。**\n"
            "2. `preview_deployment` で配置結果と衝突を確認してください。\n"
            "3. 名前の衝突がある場合は `naming` オプション（prefix / increment）を指定してください。\n"
            "4. `deploy_pattern` ツールで配置してください。\n"
            "5. `get_workspace` で配置結果を確認してください。\n\n"
            "## 注意事項\n\n"
            "- 配置が失敗した場合、ワークスペースには何も追加されません。\n"
            "- `deploy_pattern_batch` の並列モードでは、同じバッチ内のパターン同士の衝突は検出されません。\n"
        )
