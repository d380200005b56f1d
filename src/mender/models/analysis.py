"""解析結果（RuleSet / Violation / Incident）のデータモデル。

アナライザーの出力はcamelCaseのキー（lineNumber, codeSnip）を使うため、
エイリアス経由でそのままバリデーションできるようにしている。
"""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, model_validator
from pydantic.alias_generators import to_camel

Category = Literal["mandatory", "optional", "potential"]
Severity = Literal["High", "Medium", "Low"]

FILE_URI_PREFIX = "file://"

_MODEL_CONFIG = ConfigDict(
    alias_generator=to_camel,
    populate_by_name=True,
    frozen=True,
    extra="ignore",
)


class Incident(BaseModel):
    """違反の具体的な発生箇所（ファイル・行）。"""

    model_config = _MODEL_CONFIG

    uri: str
    message: str
    line_number: int = Field(default=1, ge=1)
    severity: Severity | None = None
    code_snip: str | None = None
    variables: dict[str, Any] = Field(default_factory=dict)


class Violation(BaseModel):
    """1つのルールによる検出結果と、その全Incident。"""

    model_config = _MODEL_CONFIG

    id: str = ""
    description: str = ""
    category: Category | None = None
    labels: tuple[str, ...] = ()
    incidents: tuple[Incident, ...] = ()
    effort: int | float | None = None


class RuleSet(BaseModel):
    """1回の解析またはルールソースに対応する違反の集合。"""

    model_config = _MODEL_CONFIG

    name: str | None = None
    description: str | None = None
    tags: tuple[str, ...] = ()
    violations: dict[str, Violation] = Field(default_factory=dict)
    insights: dict[str, Violation] = Field(default_factory=dict)
    errors: dict[str, str] = Field(default_factory=dict)
    unmatched: tuple[str, ...] = ()
    skipped: tuple[str, ...] = ()

    @model_validator(mode="before")
    @classmethod
    def _fill_violation_ids(cls, data: Any) -> Any:
        # マッピングのキーをViolation.idに反映する
        if not isinstance(data, dict):
            return data
        filled = dict(data)
        for key in ("violations", "insights"):
            entries = filled.get(key)
            if not isinstance(entries, dict):
                continue
            filled[key] = {
                vid: ({**v, "id": v.get("id") or vid} if isinstance(v, dict) else v) for vid, v in entries.items()
            }
        return filled

    def all_incidents(self) -> list[Incident]:
        return [incident for violation in self.violations.values() for incident in violation.incidents]


def all_incidents(rule_sets: list[RuleSet] | tuple[RuleSet, ...]) -> list[Incident]:
    """全RuleSetの違反に含まれるIncidentを出現順に返す。"""
    return [incident for rule_set in rule_sets for incident in rule_set.all_incidents()]


def dump_rule_sets(rule_sets: list[RuleSet] | tuple[RuleSet, ...]) -> list[dict[str, Any]]:
    """アナライザー出力と同じ形式（camelCase）のdictに変換する。"""
    return [r.model_dump(mode="json", by_alias=True, exclude_none=True) for r in rule_sets]
