"""URI変換のユニットテスト。"""

from pathlib import Path

import pytest

from mender.uris import (
    file_uri_from_path,
    from_read_only_uri,
    is_file_uri,
    overlay_path,
    path_from_file_uri,
    relative_to_workspace,
    to_overlay_uri,
    to_read_only_uri,
)


class TestFileUris:
    def test_round_trip_with_spaces(self, tmp_path: Path) -> None:
        path = tmp_path / "my project" / "Foo.java"
        uri = file_uri_from_path(path)
        assert uri.startswith("file:///")
        assert "%20" in uri
        assert path_from_file_uri(uri) == path.resolve()

    def test_is_file_uri(self) -> None:
        assert is_file_uri("file:///a")
        assert not is_file_uri("https://a")
        assert not is_file_uri(None)

    def test_relative_to_workspace(self, tmp_path: Path) -> None:
        assert relative_to_workspace(file_uri_from_path(tmp_path / "src" / "A.java"), tmp_path) == "src/A.java"
        assert relative_to_workspace("file:///elsewhere/A.java", tmp_path) is None
        assert relative_to_workspace("mender:/src/A.java", tmp_path) is None


class TestOverlayUris:
    def test_to_overlay_uri(self) -> None:
        assert to_overlay_uri("src/Foo.java", "mender") == "mender:/src/Foo.java"
        assert to_overlay_uri("/src/Foo.java", "mender") == "mender:/src/Foo.java"

    def test_overlay_path(self) -> None:
        assert overlay_path("mender:/src/My%20Foo.java", "mender") == "src/My Foo.java"
        with pytest.raises(ValueError):
            overlay_path("other:/src/Foo.java", "mender")

    def test_read_only_uri(self) -> None:
        read_only = to_read_only_uri("file:///w/src/Foo.java", "mender-original")
        assert read_only == "mender-original:///w/src/Foo.java"
        assert from_read_only_uri(read_only, "mender-original") == "file:///w/src/Foo.java"
        with pytest.raises(ValueError):
            from_read_only_uri("file:///w/src/Foo.java", "mender-original")
