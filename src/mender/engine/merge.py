"""部分解析の結果を蓄積済みの解析結果にマージする。

スコープ（解析リクエストに含めたファイル）に含まれるファイルについては
最新の結果を、それ以外のファイルについては以前の結果を保持する。
スコープに含まれていてIncidentが返ってこなかったファイルは「再解析されて
問題がなくなった」とみなす。
"""

import logging
from collections.abc import Iterable, Sequence

from mender.models.analysis import Incident, RuleSet, Violation

LOG = logging.getLogger(__name__)


def _evict(violations: dict[str, Violation], scope: set[str]) -> dict[str, Violation]:
    """スコープ内のファイルを指すIncidentを取り除いたviolationsを返す。"""
    evicted: dict[str, Violation] = {}
    for vid, violation in violations.items():
        if any(incident.uri in scope for incident in violation.incidents):
            kept = tuple(incident for incident in violation.incidents if incident.uri not in scope)
            violation = violation.model_copy(update={"incidents": kept})
        evicted[vid] = violation
    return evicted


def _in_scope(incidents: Iterable[Incident], scope: set[str]) -> tuple[Incident, ...]:
    return tuple(incident for incident in incidents if incident.uri in scope)


def merge_rule_sets(
    accumulated: Sequence[RuleSet],
    incoming: Sequence[RuleSet],
    scope_file_paths: Iterable[str],
) -> list[RuleSet]:
    """部分解析の結果をマージした新しいRuleSetのリストを返す。

    入力はいずれも変更しない。

    Args:
        accumulated: これまでに蓄積された解析結果。
        incoming: 今回の（部分）解析の結果。
        scope_file_paths: 今回の解析リクエストに含めたファイルのURI。

    Returns:
        マージ後のRuleSetのリスト。accumulatedが空の場合はincomingをそのまま返す。
    """
    if not accumulated:
        # 全体解析がまだ行われていない（または結果が破棄された）ため、部分解析の結果をそのまま採用する
        return list(incoming)

    scope = set(scope_file_paths)
    merged: list[RuleSet] = [
        rule_set.model_copy(update={"violations": _evict(rule_set.violations, scope)}) for rule_set in accumulated
    ]
    index_by_name = {rule_set.name: i for i, rule_set in reversed(list(enumerate(merged)))}

    for received in incoming:
        additions = {
            vid: incidents
            for vid, violation in received.violations.items()
            if (incidents := _in_scope(violation.incidents, scope))
        }
        if not additions:
            continue

        target_index = index_by_name.get(received.name)
        if target_index is None:
            LOG.warning(
                "Skipping %d violation(s) of rule set %r: no matching rule set in the accumulated results",
                len(additions),
                received.name,
            )
            continue

        target = merged[target_index]
        violations = dict(target.violations)
        for vid, incidents in additions.items():
            current = violations.get(vid)
            if current is None:
                violations[vid] = received.violations[vid].model_copy(update={"incidents": incidents})
            else:
                violations[vid] = current.model_copy(update={"incidents": current.incidents + incidents})
        merged[target_index] = target.model_copy(update={"violations": violations})

    return merged


def count_incidents_on_paths(rule_sets: Sequence[RuleSet], file_paths: Iterable[str]) -> int:
    """指定ファイル上のIncident数を数える。"""
    paths = set(file_paths)
    return sum(1 for rule_set in rule_sets for incident in rule_set.all_incidents() if incident.uri in paths)
