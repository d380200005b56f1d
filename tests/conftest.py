"""テスト共通フィクスチャ。"""

from collections.abc import Callable
from pathlib import Path
from typing import Any

import pytest

from mender.config import ServerConfig
from mender.services.analysis import AnalysisService
from mender.services.loader import ResultsLoader
from mender.services.solution import SolutionService
from mender.services.store import StateStore
from mender.storage.overlay import OverlayFileSystem
from mender.storage.service import SnapshotStorage
from mender.storage.workspace import WorkspaceFileSystem
from mender.uris import file_uri_from_path

FOO_SOURCE = "package demo;\n\nimport javax.ejb.Stateless;\n\n@Stateless\npublic class Foo {\n}\n"
BAR_SOURCE = "package demo;\n\nimport javax.ejb.Singleton;\n\npublic class Bar {\n}\n"


@pytest.fixture
def workspace(tmp_path: Path) -> Path:
    """Javaソースを2つ含むテスト用ワークスペース。"""
    root = tmp_path / "workspace"
    (root / "src").mkdir(parents=True)
    (root / "src" / "Foo.java").write_text(FOO_SOURCE, encoding="utf-8")
    (root / "src" / "Bar.java").write_text(BAR_SOURCE, encoding="utf-8")
    return root


@pytest.fixture
def uri_of(workspace: Path) -> Callable[[str], str]:
    """ワークスペース相対パスをfile URIに変換する関数。"""

    def _uri_of(relative_path: str) -> str:
        return file_uri_from_path(workspace / relative_path)

    return _uri_of


@pytest.fixture
def foo_uri(uri_of: Callable[[str], str]) -> str:
    return uri_of("src/Foo.java")


@pytest.fixture
def bar_uri(uri_of: Callable[[str], str]) -> str:
    return uri_of("src/Bar.java")


@pytest.fixture
def analysis_payload(foo_uri: str, bar_uri: str) -> list[dict[str, Any]]:
    """アナライザー出力形式（camelCase）の解析結果。"""
    return [
        {
            "name": "eap8/eap7",
            "description": "JBoss EAP 8 migration rules",
            "violations": {
                "javax-to-jakarta-import-00001": {
                    "description": "Replace javax imports with jakarta",
                    "category": "mandatory",
                    "labels": ["konveyor.io/target=eap8"],
                    "effort": 1,
                    "incidents": [
                        {"uri": foo_uri, "message": "Replace `javax.ejb` with `jakarta.ejb`", "lineNumber": 3},
                        {"uri": bar_uri, "message": "Replace `javax.ejb` with `jakarta.ejb`", "lineNumber": 3},
                    ],
                },
                "ejb-stateless-00002": {
                    "description": "Stateless EJB",
                    "category": "optional",
                    "incidents": [
                        {"uri": foo_uri, "message": "Consider a CDI bean", "lineNumber": 5, "codeSnip": "@Stateless"},
                    ],
                },
            },
        }
    ]


@pytest.fixture
def change_set_solution() -> dict[str, Any]:
    """Foo.javaのimportを書き換えるソリューション。"""
    return {
        "encountered_errors": [],
        "changes": [
            {
                "original": "src/Foo.java",
                "modified": "src/Foo.java",
                "diff": (
                    "--- a/src/Foo.java\n"
                    "+++ b/src/Foo.java\n"
                    "@@ -1,5 +1,5 @@\n"
                    " package demo;\n"
                    " \n"
                    "-import javax.ejb.Stateless;\n"
                    "+import jakarta.ejb.Stateless;\n"
                    " \n"
                    " @Stateless\n"
                ),
            },
            {
                "original": "src/Bar.java",
                "modified": "src/Bar.java",
                "diff": (
                    "--- a/src/Bar.java\n"
                    "+++ b/src/Bar.java\n"
                    "@@ -2,3 +2,3 @@\n"
                    " \n"
                    "-import javax.ejb.Singleton;\n"
                    "+import jakarta.ejb.Singleton;\n"
                    " \n"
                ),
            },
        ],
    }


@pytest.fixture
def store() -> StateStore:
    return StateStore()


@pytest.fixture
def storage(workspace: Path) -> SnapshotStorage:
    """テスト用SnapshotStorage。"""
    return SnapshotStorage(data_dir=workspace / ".mender", max_snapshots=5)


@pytest.fixture
def overlay() -> OverlayFileSystem:
    return OverlayFileSystem(scheme="mender")


@pytest.fixture
def workspace_fs(workspace: Path) -> WorkspaceFileSystem:
    return WorkspaceFileSystem(root=workspace, read_only_scheme="mender-original")


@pytest.fixture
def analysis_service(
    store: StateStore, storage: SnapshotStorage, overlay: OverlayFileSystem, workspace: Path
) -> AnalysisService:
    """テスト用AnalysisService。"""
    return AnalysisService(store=store, storage=storage, overlay=overlay, workspace_root=workspace)


@pytest.fixture
def solution_service(
    store: StateStore, storage: SnapshotStorage, overlay: OverlayFileSystem, workspace_fs: WorkspaceFileSystem
) -> SolutionService:
    """テスト用SolutionService。"""
    return SolutionService(store=store, storage=storage, overlay=overlay, workspace=workspace_fs)


@pytest.fixture
def loader(
    analysis_service: AnalysisService, solution_service: SolutionService, storage: SnapshotStorage
) -> ResultsLoader:
    return ResultsLoader(analysis_service, solution_service, storage)


@pytest.fixture
def server_config(workspace: Path) -> ServerConfig:
    """テスト用ServerConfig。"""
    return ServerConfig(workspace_root=workspace)
