"""解析結果のMCPツール定義。"""

from typing import Any

from fastmcp import FastMCP

from mender.models.errors import MenderError
from mender.models.issues import IssueTree
from mender.models.validation import NormalizedResults
from mender.services.analysis import AnalysisService
from mender.services.loader import ResultsLoader
from mender.tools.errors import error_response


def _normalized_summary(normalized: NormalizedResults) -> dict[str, Any]:
    return {
        "rule_set_count": len(normalized.rule_sets),
        "dropped_incidents": normalized.dropped_count,
        "issues": [issue.model_dump() for issue in normalized.issues],
    }


def _tree_to_dict(tree: IssueTree) -> dict[str, Any]:
    groups = []
    for group in tree.children():
        files = []
        for file_node in tree.children(group.index):
            incidents = [
                {
                    "line": location.line,
                    "severity": node.incident.severity if node.incident else None,
                }
                for node in tree.children(file_node.index)
                if (location := tree.location(node.index)) is not None
            ]
            files.append({"uri": file_node.uri, "incidents": incidents})
        groups.append({"message": group.message, "files": files})
    return {
        "label": tree.label,
        "badge": tree.badge,
        "incident_count": tree.count_incidents(),
        "file_count": tree.count_files(),
        "groups": groups,
    }


def register_analysis_tools(mcp: FastMCP, analysis_service: AnalysisService, loader: ResultsLoader) -> None:
    """解析結果関連のMCPツールを登録する。"""

    @mcp.tool()
    async def load_analysis_results(rule_sets: list[dict[str, Any]]) -> dict[str, Any]:
        """全体解析の結果を読み込む。

        これまでの解析結果と変更候補は破棄され、今回の結果に置き換わります。

        Args:
            rule_sets: アナライザーが出力したRuleSetの配列。
        """
        try:
            normalized = await analysis_service.load_rule_sets(rule_sets)
            return _normalized_summary(normalized)
        except MenderError as e:
            return error_response(e)

    @mcp.tool()
    async def merge_partial_results(
        rule_sets: list[dict[str, Any]],
        scope_file_paths: list[str],
    ) -> dict[str, Any]:
        """部分解析の結果を蓄積済みの解析結果にマージする。

        scope_file_pathsに含まれるファイルの結果のみが置き換わります。

        Args:
            rule_sets: 部分解析の結果（RuleSetの配列）。
            scope_file_paths: 解析リクエストに含めたファイルのURI（file://...）。
        """
        try:
            normalized = await analysis_service.merge_partial(rule_sets, scope_file_paths)
            tree = analysis_service.issue_tree()
            return {**_normalized_summary(normalized), "label": tree.label}
        except MenderError as e:
            return error_response(e)

    @mcp.tool()
    async def clean_analysis_results() -> dict[str, Any]:
        """蓄積済みの解析結果を破棄する。"""
        await analysis_service.clean()
        return {"label": analysis_service.issue_tree().label}

    @mcp.tool()
    async def get_issue_tree() -> dict[str, Any]:
        """メッセージ → ファイル → 行 の順にまとめた課題ツリーを取得する。"""
        return _tree_to_dict(analysis_service.issue_tree())

    @mcp.tool()
    async def get_diagnostics(uri: str | None = None) -> dict[str, Any]:
        """エディタ向けの診断マーカーを取得する。

        Args:
            uri: 対象ファイルのURI。省略時は全ファイル分を返す。
        """
        diagnostics = analysis_service.diagnostics()
        if uri is not None:
            diagnostics = {uri: diagnostics.get(uri, [])}
        return {
            "diagnostics": {
                file_uri: [d.model_dump(exclude={"uri"}) for d in markers] for file_uri, markers in diagnostics.items()
            }
        }

    @mcp.tool()
    async def load_results_files(paths: list[str]) -> dict[str, Any]:
        """ファイルから解析結果・ソリューションを読み込む（YAML/JSON）。

        各ファイルの内容から種類を判別します。解析結果とソリューションはそれぞれ
        最初の1ファイルが採用されます。

        Args:
            paths: 読み込むファイルのパス。
        """
        try:
            report = await loader.load_files(paths)
            return report.model_dump()
        except (MenderError, ValueError) as e:
            return error_response(e)

    @mcp.tool()
    async def restore_state() -> dict[str, Any]:
        """データフォルダに保存された最新の解析結果とソリューションを復元する。"""
        try:
            analysis, solution = await loader.restore_state()
            return {
                "analysis_restored": analysis,
                "solution_restored": solution,
                "label": analysis_service.issue_tree().label,
            }
        except MenderError as e:
            return error_response(e)
