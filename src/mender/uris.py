"""file URI・オーバーレイURIとワークスペース相対パスの相互変換。"""

from pathlib import Path, PurePosixPath
from urllib.parse import quote, unquote, urlsplit

from mender.models.analysis import FILE_URI_PREFIX


def is_file_uri(value: object) -> bool:
    return isinstance(value, str) and value.startswith(FILE_URI_PREFIX)


def path_from_file_uri(uri: str) -> Path:
    """file URIをローカルパスに変換する。

    Raises:
        ValueError: file URIでない場合。
    """
    parts = urlsplit(uri)
    if parts.scheme != "file":
        raise ValueError(f"Not a file URI: {uri}")
    return Path(unquote(parts.path))


def file_uri_from_path(path: Path) -> str:
    """ローカルパスをfile URIに変換する（file:///some/path/File.java 形式）。"""
    return FILE_URI_PREFIX + quote(path.resolve().as_posix())


def relative_to_workspace(uri: str, workspace_root: Path) -> str | None:
    """file URIをワークスペース相対のPOSIXパスに変換する。ワークスペース外ならNone。"""
    try:
        path = path_from_file_uri(uri).resolve()
        relative = path.relative_to(workspace_root.resolve())
    except ValueError:
        return None
    return relative.as_posix()


def workspace_file_uri(relative_path: str, workspace_root: Path) -> str:
    return file_uri_from_path(workspace_root / relative_path)


def to_overlay_uri(relative_path: str, scheme: str) -> str:
    """ワークスペース相対パスを仮想オーバーレイのURIに付け替える（例: mender:/src/Foo.java）。"""
    posix = PurePosixPath("/") / PurePosixPath(relative_path.lstrip("/"))
    return f"{scheme}:{quote(str(posix))}"


def overlay_path(uri: str, scheme: str) -> str:
    """オーバーレイURIからスキーム以降のパスを取り出す。

    Raises:
        ValueError: スキームが一致しない場合。
    """
    prefix = f"{scheme}:"
    if not uri.startswith(prefix):
        raise ValueError(f"URI does not use the {scheme} scheme: {uri}")
    return unquote(uri[len(prefix) :]).lstrip("/")


def to_read_only_uri(file_uri: str, scheme: str) -> str:
    """実ファイルのURIを、元の内容を読み取り専用で参照するURIに変換する。"""
    return scheme + file_uri[len("file") :]


def from_read_only_uri(uri: str, scheme: str) -> str:
    prefix = f"{scheme}:"
    if not uri.startswith(prefix):
        raise ValueError(f"URI does not use the {scheme} scheme: {uri}")
    return "file:" + uri[len(prefix) :]
