"""解析結果から課題ツリーを構築する。"""

from collections.abc import Sequence

from mender.models.analysis import Incident, RuleSet, all_incidents
from mender.models.issues import IssueNode, IssueTree
from mender.models.state import EngineState


def _displayable(incident: Incident) -> bool:
    # 空メッセージは許容する（同じグループにまとまる）
    return isinstance(incident.message, str) and bool(incident.uri) and incident.line_number > 0


def build_issue_tree(rule_sets: Sequence[RuleSet]) -> IssueTree:
    """メッセージ → ファイル → 行 の順にグループ化した課題ツリーを構築する。

    メッセージは初出順、ファイルはURIの辞書順、Incidentは行番号の昇順に並ぶ。
    """
    by_message: dict[str, dict[str, list[Incident]]] = {}
    for incident in all_incidents(rule_sets):
        if not _displayable(incident):
            continue
        by_message.setdefault(incident.message, {}).setdefault(incident.uri, []).append(incident)

    # 先に親を確保し、子のインデックスが決まってから置き換える
    nodes: list[IssueNode | None] = []
    roots: list[int] = []
    for message, by_file in by_message.items():
        group_index = len(nodes)
        nodes.append(None)
        roots.append(group_index)

        file_indices: list[int] = []
        for uri in sorted(by_file):
            file_index = len(nodes)
            nodes.append(None)
            file_indices.append(file_index)

            incident_indices: list[int] = []
            for incident in sorted(by_file[uri], key=lambda it: it.line_number):
                incident_index = len(nodes)
                nodes.append(
                    IssueNode(
                        kind="incident",
                        index=incident_index,
                        parent=file_index,
                        message=message,
                        uri=uri,
                        incident=incident,
                    )
                )
                incident_indices.append(incident_index)

            nodes[file_index] = IssueNode(
                kind="file",
                index=file_index,
                parent=group_index,
                children=tuple(incident_indices),
                message=message,
                uri=uri,
            )

        nodes[group_index] = IssueNode(
            kind="group",
            index=group_index,
            children=tuple(file_indices),
            message=message,
        )

    return IssueTree(nodes=tuple(n for n in nodes if n is not None), roots=tuple(roots))


class IssueAggregator:
    """解析結果が置き換わった場合にのみツリーを再構築する。

    状態の更新は常に新しいrule_setsを生成するため、同一性の比較で足りる。
    変更候補の遷移などrule_setsを共有したままの更新では再構築しない。
    """

    def __init__(self) -> None:
        self._rule_sets: tuple[RuleSet, ...] | None = None
        self._tree = IssueTree()
        self.rebuilds = 0

    def tree_for(self, state: EngineState) -> IssueTree:
        if state.rule_sets is not self._rule_sets:
            self._tree = build_issue_tree(state.rule_sets)
            self._rule_sets = state.rule_sets
            self.rebuilds += 1
        return self._tree
