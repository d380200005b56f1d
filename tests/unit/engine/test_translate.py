"""ソリューション変換のユニットテスト。"""

import logging
from pathlib import Path

import pytest

from mender.engine.translate import parse_solution, translate_solution
from mender.models.errors import IngestionError
from mender.models.solution import ChangeSetSolution, DiffSolution
from mender.uris import file_uri_from_path

DIFF = "--- a/src/Foo.java\n+++ b/src/Foo.java\n@@ -1 +1 @@\n-old\n+new\n"


class TestParseSolution:
    def test_change_set_form(self) -> None:
        solution = parse_solution(
            {"encountered_errors": ["timeout"], "changes": [{"original": "a", "modified": "a", "diff": DIFF}]}
        )
        assert isinstance(solution, ChangeSetSolution)
        assert solution.errors == ["timeout"]

    def test_change_set_form_with_errors_key(self) -> None:
        solution = parse_solution({"errors": ["boom"], "changes": []})
        assert solution.errors == ["boom"]

    def test_diff_form(self) -> None:
        solution = parse_solution({"diff": DIFF, "modified_files": ["src/Foo.java"]})
        assert isinstance(solution, DiffSolution)
        assert solution.modified_files == ["src/Foo.java"]

    @pytest.mark.parametrize("raw", [[], "diff", {"something": "else"}, {"changes": [{"original": "a"}]}])
    def test_rejects_unknown_shapes(self, raw: object) -> None:
        with pytest.raises(IngestionError):
            parse_solution(raw)


class TestTranslateSolution:
    def test_change_set_keeps_in_place_modifications_only(self, workspace: Path) -> None:
        solution = parse_solution(
            {
                "changes": [
                    {"original": "src/Foo.java", "modified": "src/Foo.java", "diff": DIFF},
                    {"original": "", "modified": "src/New.java", "diff": "+x"},
                    {"original": "src/Old.java", "modified": "", "diff": "-x"},
                    {"original": "src/Bar.java", "modified": "src/Baz.java", "diff": "..."},
                ]
            }
        )
        changes = translate_solution(solution, workspace, "mender")
        assert len(changes) == 1
        change = changes[0]
        assert change.original_uri == file_uri_from_path(workspace / "src" / "Foo.java")
        assert change.modified_uri == "mender:/src/Foo.java"
        assert change.diff == DIFF
        assert change.state == "pending"

    def test_diff_blob_keeps_in_place_patches(self, workspace: Path) -> None:
        blob = (
            "diff --git a/src/Foo.java b/src/Foo.java\n"
            "--- a/src/Foo.java\n+++ b/src/Foo.java\n@@ -1 +1 @@\n-old\n+new\n"
            "diff --git a/src/Old.java b/src/New.java\n"
            "--- a/src/Old.java\n+++ b/src/New.java\n@@ -1 +1 @@\n-a\n+b\n"
            "diff --git a/src/Added.java b/src/Added.java\n"
            "--- /dev/null\n+++ b/src/Added.java\n@@ -0,0 +1 @@\n+x\n"
        )
        changes = translate_solution(parse_solution({"diff": blob}), workspace, "mender")
        assert [c.modified_uri for c in changes] == ["mender:/src/Foo.java"]
        assert changes[0].diff.startswith("diff --git a/src/Foo.java b/src/Foo.java\n")
        assert "+new" in changes[0].diff
        assert "src/New.java" not in changes[0].diff

    def test_first_change_per_file_wins(self, workspace: Path, caplog: pytest.LogCaptureFixture) -> None:
        solution = parse_solution(
            {
                "changes": [
                    {"original": "src/Foo.java", "modified": "src/Foo.java", "diff": "first"},
                    {"original": "src/Foo.java", "modified": "src/Foo.java", "diff": "second"},
                ]
            }
        )
        with caplog.at_level(logging.WARNING, logger="mender.engine.translate"):
            changes = translate_solution(solution, workspace, "mender")
        assert [c.diff for c in changes] == ["first"]
        assert "duplicate" in caplog.text

    def test_unparseable_diff_blob(self, workspace: Path) -> None:
        with pytest.raises(IngestionError):
            translate_solution(parse_solution({"diff": "--- a/x\n+++ b/x\n@@ broken\n"}), workspace, "mender")
