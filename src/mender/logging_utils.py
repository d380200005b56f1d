"""ログ出力の設定。"""

import logging

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def configure_logging(level: str | int = logging.INFO) -> None:
    """ルートロガーを設定する。

    Args:
        level: ログレベル（"DEBUG" などの名前、または数値）。
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            level = logging.INFO
    logging.basicConfig(level=level, format=LOG_FORMAT)
    logging.getLogger("mender").setLevel(level)
