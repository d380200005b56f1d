"""解析結果からエディタ向けの診断マーカーを生成する。"""

from collections.abc import Sequence

from mender.models.analysis import Category, RuleSet
from mender.models.diagnostics import Diagnostic, DiagnosticSeverity

_SEVERITY_BY_CATEGORY: dict[Category, DiagnosticSeverity] = {
    "mandatory": "Error",
    "optional": "Warning",
    "potential": "Hint",
}


def severity_from_category(category: Category | None) -> DiagnosticSeverity:
    if category is None:
        return "Information"
    return _SEVERITY_BY_CATEGORY.get(category, "Information")


def build_diagnostics(rule_sets: Sequence[RuleSet], source: str = "mender") -> dict[str, list[Diagnostic]]:
    """Incidentごとに1つの診断マーカーを生成し、ファイルURIごとにまとめる。"""
    diagnostics: dict[str, list[Diagnostic]] = {}
    for rule_set in rule_sets:
        for violation in rule_set.violations.values():
            severity = severity_from_category(violation.category)
            for incident in violation.incidents:
                if not incident.uri:
                    continue
                diagnostics.setdefault(incident.uri, []).append(
                    Diagnostic(
                        uri=incident.uri,
                        line=max(incident.line_number - 1, 0),
                        severity=severity,
                        message=incident.message or "No message provided",
                        source=source,
                        code=incident.code_snip,
                    )
                )
    return diagnostics
