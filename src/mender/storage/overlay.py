"""提案内容を保持するインメモリの仮想オーバーレイファイルシステム。

実ファイルには一切触れず、専用スキームのURI（例: mender:/src/Foo.java）で
提案内容を参照・編集できるようにする。
"""

from mender.models.errors import OverlayFileNotFoundError
from mender.uris import overlay_path, to_overlay_uri


class OverlayFileSystem:
    """スキームごとに分離されたインメモリファイルシステム。"""

    def __init__(self, scheme: str) -> None:
        self.scheme = scheme
        self._files: dict[str, bytes] = {}
        self._directories: set[str] = {""}

    def _key(self, uri: str) -> str:
        return overlay_path(uri, self.scheme)

    def uri_for(self, relative_path: str) -> str:
        return to_overlay_uri(relative_path, self.scheme)

    def create_directories_if_needed(self, uri: str) -> None:
        """ファイルの親ディレクトリを作成する。"""
        parts = self._key(uri).split("/")[:-1]
        for i in range(1, len(parts) + 1):
            self._directories.add("/".join(parts[:i]))

    async def write_file(self, uri: str, content: bytes, *, create: bool = True, overwrite: bool = True) -> None:
        """ファイルを書き込む。

        Raises:
            OverlayFileNotFoundError: create=Falseで存在しないファイルに書き込もうとした場合。
            FileExistsError: overwrite=Falseで既存ファイルに書き込もうとした場合。
        """
        key = self._key(uri)
        exists = key in self._files
        if not exists and not create:
            raise OverlayFileNotFoundError(uri)
        if exists and not overwrite:
            raise FileExistsError(uri)
        self.create_directories_if_needed(uri)
        self._files[key] = content

    async def read_file(self, uri: str) -> bytes:
        """ファイルを読み込む。

        Raises:
            OverlayFileNotFoundError: ファイルが存在しない場合。
        """
        key = self._key(uri)
        if key not in self._files:
            raise OverlayFileNotFoundError(uri)
        return self._files[key]

    async def read_text(self, uri: str) -> str:
        return (await self.read_file(uri)).decode("utf-8")

    async def delete(self, uri: str) -> None:
        self._files.pop(self._key(uri), None)

    def exists(self, uri: str) -> bool:
        return self._key(uri) in self._files

    def list_files(self) -> list[str]:
        """保持しているファイルのURIを辞書順で返す。"""
        return [self.uri_for(key) for key in sorted(self._files)]

    def remove_all(self) -> None:
        self._files.clear()
        self._directories = {""}
