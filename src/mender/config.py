"""Menderサーバーの設定管理。"""

from pathlib import Path

from pydantic_settings import BaseSettings


class ServerConfig(BaseSettings):
    """サーバー設定。環境変数（MENDER_*）から読み込み可能。"""

    model_config = {"env_prefix": "MENDER_"}

    workspace_root: Path = Path.cwd()
    data_dir_name: str = ".mender"
    max_snapshots: int = 5
    overlay_scheme: str = "mender"
    read_only_scheme: str = "mender-original"
    host: str = "0.0.0.0"
    port: int = 8000
    url_token: str = ""
    mcp_path: str = "/mcp"
    log_level: str = "INFO"

    @property
    def data_dir(self) -> Path:
        """スナップショットを保存するワークスペース内のドットフォルダ。"""
        return self.workspace_root / self.data_dir_name
