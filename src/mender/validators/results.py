"""アナライザー出力の検証と正規化。

バッチの形が不正な場合は全体を拒否する。個々のIncidentの不備は
除外した上で一覧として返し、処理は継続する。
"""

import logging
from pathlib import Path
from typing import Any, get_args

from pydantic import ValidationError

from mender.models.analysis import Category, Incident, RuleSet, Severity
from mender.models.errors import IngestionError, PathScopeError
from mender.models.validation import IncidentIssue, NormalizedResults
from mender.uris import is_file_uri, relative_to_workspace

LOG = logging.getLogger(__name__)

# RuleSetのトップレベルキーと期待する型
_RULE_SET_KEYS: dict[str, type | tuple[type, ...]] = {
    "name": str,
    "description": str,
    "tags": list,
    "violations": dict,
    "insights": dict,
    "errors": dict,
    "unmatched": list,
    "skipped": list,
}

_CATEGORIES = set(get_args(Category))
_SEVERITIES = set(get_args(Severity))


def _coerce_line_number(value: Any) -> int:
    """行番号を1始まりの整数に揃える。欠落・不正値・0以下は1とする。"""
    if isinstance(value, bool):
        return 1
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, int) and value > 0:
        return value
    return 1


def normalize_incident(raw: Any) -> tuple[dict[str, Any] | None, str | None]:
    """1件のIncidentレコードを正規化する。

    Returns:
        (正規化済みレコード, None) または (None, 除外理由) のタプル。
    """
    if not isinstance(raw, dict):
        return None, "incident is not a mapping"
    message = raw.get("message")
    if not isinstance(message, str):
        return None, "message is not a string"
    uri = raw.get("uri")
    if not is_file_uri(uri):
        return None, f"uri is not a file URI: {uri!r}"

    record: dict[str, Any] = {
        "uri": uri,
        "message": message,
        "lineNumber": _coerce_line_number(raw.get("lineNumber")),
    }
    if raw.get("severity") in _SEVERITIES:
        record["severity"] = raw["severity"]
    if isinstance(raw.get("codeSnip"), str):
        record["codeSnip"] = raw["codeSnip"]
    if isinstance(raw.get("variables"), dict):
        record["variables"] = raw["variables"]
    return record, None


def normalize_incidents(
    raw_incidents: list[Any],
    *,
    rule_set: str | None = None,
    violation_id: str = "",
) -> tuple[list[Incident], list[IncidentIssue]]:
    """Incidentレコードの列を正規化する。出現順を保つ。"""
    incidents: list[Incident] = []
    issues: list[IncidentIssue] = []
    for index, raw in enumerate(raw_incidents):
        record, reason = normalize_incident(raw)
        if record is None:
            issues.append(
                IncidentIssue(rule_set=rule_set, violation_id=violation_id, index=index, reason=reason or "invalid")
            )
            continue
        incidents.append(Incident.model_validate(record))
    return incidents, issues


def _check_rule_set_shape(index: int, raw: Any) -> list[str]:
    """RuleSetの基本的な形を検証し、問題点のリストを返す。"""
    if not isinstance(raw, dict) or not raw:
        return [f"[{index}] rule set must be a non-empty mapping"]

    problems: list[str] = []
    for key, value in raw.items():
        expected = _RULE_SET_KEYS.get(key)
        if expected is None:
            problems.append(f"[{index}] unknown key: {key}")
        elif value is not None and not isinstance(value, expected):
            problems.append(f"[{index}] {key} has unexpected type {type(value).__name__}")

    for key in ("violations", "insights"):
        entries = raw.get(key)
        if not isinstance(entries, dict):
            continue
        for vid, violation in entries.items():
            if not isinstance(violation, dict):
                problems.append(f"[{index}] {key}.{vid} must be a mapping")
            elif not isinstance(violation.get("incidents", []), list):
                problems.append(f"[{index}] {key}.{vid}.incidents must be a list")
    return problems


def _normalize_violation(raw: dict[str, Any], incidents: list[Incident]) -> dict[str, Any]:
    violation = {k: v for k, v in raw.items() if k != "incidents"}
    if violation.get("category") not in _CATEGORIES:
        violation.pop("category", None)
    violation["incidents"] = incidents
    return violation


def normalize_rule_sets(payload: Any) -> NormalizedResults:
    """アナライザー出力（RuleSetの配列）を検証・正規化する。

    Args:
        payload: YAML/JSONから読み込んだ生データ。

    Returns:
        正規化済みのRuleSetと除外されたIncidentの一覧。

    Raises:
        IngestionError: 配列でない場合、または要素の形が不正な場合（バッチ全体を拒否）。
    """
    if not isinstance(payload, list):
        raise IngestionError("Analysis results must be an array of rule sets")

    problems = [p for index, raw in enumerate(payload) for p in _check_rule_set_shape(index, raw)]
    if problems:
        raise IngestionError("Analysis results are not well formed", details=problems)

    rule_sets: list[RuleSet] = []
    issues: list[IncidentIssue] = []
    for raw in payload:
        name = raw.get("name")
        data = dict(raw)
        for key in ("violations", "insights"):
            entries = raw.get(key) or {}
            normalized: dict[str, Any] = {}
            for vid, violation in entries.items():
                incidents, dropped = normalize_incidents(
                    violation.get("incidents") or [], rule_set=name, violation_id=vid
                )
                issues.extend(dropped)
                normalized[vid] = _normalize_violation(violation, incidents)
            data[key] = normalized
        try:
            rule_sets.append(RuleSet.model_validate({k: v for k, v in data.items() if v is not None}))
        except ValidationError as e:
            raise IngestionError(f"Rule set {name!r} failed validation", details=[str(e)]) from None

    if issues:
        LOG.info("Dropped %d malformed incident(s) while normalizing analysis results", len(issues))
    return NormalizedResults(rule_sets=rule_sets, issues=issues)


def is_rule_set_payload(payload: Any) -> bool:
    """RuleSetの配列らしい形をしているかを判定する（ファイル種別の判別用）。"""
    return (
        isinstance(payload, list)
        and bool(payload)
        and all(not _check_rule_set_shape(i, raw) for i, raw in enumerate(payload))
    )


def check_workspace_scope(rule_sets: list[RuleSet], workspace_root: Path) -> None:
    """全Incidentがワークスペース内のファイルを指しているかを検証する。

    Raises:
        PathScopeError: ワークスペース外を指すIncidentがある場合。
    """
    outside: list[str] = []
    seen: set[str] = set()
    for rule_set in rule_sets:
        for incident in rule_set.all_incidents():
            if incident.uri in seen:
                continue
            seen.add(incident.uri)
            if relative_to_workspace(incident.uri, workspace_root) is None:
                outside.append(incident.uri)
    if outside:
        raise PathScopeError(outside)
