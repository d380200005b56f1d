"""ワークフロー統合MCPプロンプト定義。"""

from fastmcp import FastMCP


def register_workflow_prompts(mcp: FastMCP) -> None:
    """ワークフロー系のMCPプロンプトを登録する。"""

    def _analysis_phase() -> str:
        return (
            "## Phase 1: 解析結果の取り込み\n\n"
            "1. 全体解析の結果は `load_analysis_results` ツールで読み込んでください。"
            " ファイルとして渡された場合は `load_results_files` を使用してください。\n"
            "2. 一部のファイルだけを再解析した場合は、`merge_partial_results` に"
            " 解析対象のファイルURIを `scope_file_paths` として必ず渡してください。\n"
            "3. `get_issue_tree` ツールで課題の一覧（メッセージ → ファイル → 行）を確認し、"
            " 件数（`label`）を利用者に提示してください。\n\n"
        )

    def _solution_phase() -> str:
        return (
            "## Phase 2: 修正提案の確認\n\n"
            "1. 修正提案は `load_solution` ツールで読み込んでください。\n"
            "2. `failures` に含まれるファイルはdiffが適用できなかったものです。"
            " 提案内容としてdiffテキストがそのまま入っているため、利用者に注意を促してください。\n"
            "3. `list_changes` で変更候補を一覧し、`get_change_diff` で変更前後の内容を提示してください。\n\n"
        )

    def _review_phase() -> str:
        return (
            "## Phase 3: 適用・破棄\n\n"
            "1. 利用者が承認した変更候補は `apply_change` で適用してください。"
            " **適用すると実ファイルが即座に書き換わります。**\n"
            "2. 不要な変更候補は `discard_change` で破棄してください。実ファイルは変更されません。\n"
            "3. 全ての変更候補をまとめて処理する場合は `apply_all_changes` / `discard_all_changes` を"
            " 使用し、`failed` に含まれるファイルを利用者に報告してください。\n\n"
        )

    def _notes() -> str:
        return (
            "## 注意事項\n\n"
            "- 適用・破棄済みの変更候補を再度処理することはできません。\n"
            "- 全体解析の結果を読み込み直すと、未処理の変更候補は破棄されます。\n"
            "- ワークスペース外のファイルを指す解析結果は読み込めません。\n"
        )

    @mcp.prompt()
    async def review_and_fix() -> str:
        """解析結果の確認から修正提案の適用までをガイドするワークフロー。"""
        return (
            "# 解析結果の確認と修正ワークフロー\n\n"
            "静的解析で検出された課題を確認し、修正提案をファイルごとに適用・破棄します。\n\n"
            + _analysis_phase()
            + _solution_phase()
            + _review_phase()
            + _notes()
        )
