"""クラウドインフラパターンのテンプレート展開・検証・ワークスペース配置エンジン。"""
