"""ワークスペース上の実ファイルへのアクセス。"""

import asyncio
from pathlib import Path

from mender.models.errors import FileOperationError
from mender.uris import from_read_only_uri, path_from_file_uri, relative_to_workspace


class WorkspaceFileSystem:
    """実ファイルの読み書きを行う。ブロッキングI/Oはスレッドで実行する。"""

    def __init__(self, root: Path, read_only_scheme: str) -> None:
        self.root = root
        self.read_only_scheme = read_only_scheme

    def _path(self, uri: str) -> Path:
        try:
            path = path_from_file_uri(uri)
        except ValueError as e:
            raise FileOperationError(uri, str(e)) from None
        self.relative_path(uri)
        return path

    def relative_path(self, uri: str) -> str:
        """ワークスペース相対パスを返す。

        Raises:
            FileOperationError: ワークスペース外の場合。
        """
        relative = relative_to_workspace(uri, self.root)
        if relative is None:
            raise FileOperationError(uri, "file is outside of the workspace")
        return relative

    async def read_text(self, uri: str) -> str:
        """ファイルを読み込む。

        Raises:
            FileOperationError: 読み込みに失敗した場合。
        """
        path = self._path(uri)
        try:
            return await asyncio.to_thread(path.read_text, encoding="utf-8")
        except (OSError, UnicodeDecodeError) as e:
            raise FileOperationError(uri, str(e)) from None

    async def write_text(self, uri: str, content: str) -> None:
        """ファイルに書き込む。

        Raises:
            FileOperationError: 書き込みに失敗した場合。
        """
        path = self._path(uri)
        try:
            await asyncio.to_thread(path.write_text, content, encoding="utf-8")
        except OSError as e:
            raise FileOperationError(uri, str(e)) from None

    async def read_original(self, read_only_uri: str) -> str:
        """読み取り専用スキームのURIから元のファイル内容を返す。"""
        try:
            file_uri = from_read_only_uri(read_only_uri, self.read_only_scheme)
        except ValueError as e:
            raise FileOperationError(read_only_uri, str(e)) from None
        return await self.read_text(file_uri)
