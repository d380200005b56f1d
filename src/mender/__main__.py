"""Mender MCPサーバーのコマンドラインエントリポイント。"""

import uvicorn

from mender.config import ServerConfig
from mender.logging_utils import configure_logging
from mender.server import create_app


def main() -> None:
    """環境変数の設定でHTTPサーバーを起動する。"""
    config = ServerConfig()
    configure_logging(config.log_level)
    uvicorn.run(create_app(config), host=config.host, port=config.port)


if __name__ == "__main__":
    main()
