"""エディタ向け診断マーカーのデータモデル。"""

from typing import Literal

from pydantic import BaseModel, ConfigDict

DiagnosticSeverity = Literal["Error", "Warning", "Hint", "Information"]


class Diagnostic(BaseModel):
    """1つのIncidentに対応する診断マーカー（行は0始まり）。"""

    model_config = ConfigDict(frozen=True)

    uri: str
    line: int
    severity: DiagnosticSeverity
    message: str
    source: str = "mender"
    code: str | None = None
