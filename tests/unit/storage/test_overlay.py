"""仮想オーバーレイのユニットテスト。"""

import pytest

from mender.models.errors import OverlayFileNotFoundError
from mender.storage.overlay import OverlayFileSystem


class TestOverlayFileSystem:
    async def test_write_and_read(self, overlay: OverlayFileSystem) -> None:
        uri = overlay.uri_for("src/Foo.java")
        await overlay.write_file(uri, b"content")
        assert await overlay.read_text(uri) == "content"
        assert overlay.exists(uri)

    async def test_read_missing_file(self, overlay: OverlayFileSystem) -> None:
        with pytest.raises(OverlayFileNotFoundError):
            await overlay.read_file("mender:/missing.txt")

    async def test_create_false_requires_existing_file(self, overlay: OverlayFileSystem) -> None:
        with pytest.raises(OverlayFileNotFoundError):
            await overlay.write_file("mender:/a.txt", b"x", create=False)

    async def test_overwrite_false_rejects_existing_file(self, overlay: OverlayFileSystem) -> None:
        await overlay.write_file("mender:/a.txt", b"x")
        with pytest.raises(FileExistsError):
            await overlay.write_file("mender:/a.txt", b"y", overwrite=False)

    async def test_other_scheme_is_rejected(self, overlay: OverlayFileSystem) -> None:
        with pytest.raises(ValueError):
            await overlay.write_file("file:///w/a.txt", b"x")

    async def test_list_delete_and_remove_all(self, overlay: OverlayFileSystem) -> None:
        await overlay.write_file("mender:/src/B.java", b"b")
        await overlay.write_file("mender:/src/A.java", b"a")
        assert overlay.list_files() == ["mender:/src/A.java", "mender:/src/B.java"]

        await overlay.delete("mender:/src/A.java")
        assert overlay.list_files() == ["mender:/src/B.java"]

        overlay.remove_all()
        assert overlay.list_files() == []
