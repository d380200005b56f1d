"""MCPエンドポイントのトークン認証ミドルウェア。"""

import logging
import secrets

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import JSONResponse, Response
from starlette.types import ASGIApp

LOG = logging.getLogger(__name__)


class TokenAuthMiddleware(BaseHTTPMiddleware):
    """MCPエンドポイント配下へのリクエストにトークンを要求するミドルウェア。

    トークンは ``Authorization: Bearer <token>`` ヘッダー、または ``token``
    クエリパラメータで渡す。保護対象のパス外（/health など）はそのまま通す。
    url_token が空の場合は何も検証しない。
    """

    def __init__(self, app: ASGIApp, url_token: str = "", protected_prefix: str = "/mcp") -> None:
        super().__init__(app)
        self.url_token = url_token
        self.protected_prefix = protected_prefix.rstrip("/")

    def is_protected(self, path: str) -> bool:
        if not self.protected_prefix:
            return True
        return path == self.protected_prefix or path.startswith(self.protected_prefix + "/")

    @staticmethod
    def presented_token(request: Request) -> str:
        scheme, _, credentials = request.headers.get("authorization", "").partition(" ")
        if scheme.lower() == "bearer" and credentials.strip():
            return credentials.strip()
        return request.query_params.get("token", "")

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not self.url_token or not self.is_protected(request.url.path):
            return await call_next(request)

        token = self.presented_token(request)
        if not secrets.compare_digest(token.encode("utf-8"), self.url_token.encode("utf-8")):
            LOG.warning("Rejected request to %s without a valid token", request.url.path)
            return JSONResponse(
                {"error": "Unauthorized", "message": "Missing or invalid token"},
                status_code=401,
                headers={"WWW-Authenticate": "Bearer"},
            )
        return await call_next(request)
