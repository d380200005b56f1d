"""FastMCPベースのMCPサーバーエントリポイント。"""

from fastmcp import FastMCP
from starlette.applications import Starlette
from starlette.middleware import Middleware
from starlette.requests import Request
from starlette.responses import JSONResponse

from mender.config import ServerConfig
from mender.middleware import TokenAuthMiddleware
from mender.prompts.workflow import register_workflow_prompts
from mender.services.analysis import AnalysisService
from mender.services.loader import ResultsLoader
from mender.services.solution import SolutionService
from mender.services.store import StateStore
from mender.storage.overlay import OverlayFileSystem
from mender.storage.service import SnapshotStorage
from mender.storage.workspace import WorkspaceFileSystem
from mender.tools.analysis import register_analysis_tools
from mender.tools.solution import register_solution_tools


def create_server(config: ServerConfig | None = None) -> FastMCP:
    """Mender MCPサーバーを作成し、ツール・プロンプトを登録する。

    Args:
        config: サーバー設定。Noneの場合はデフォルト設定を使用。

    Returns:
        設定済みのFastMCPインスタンス。
    """
    if config is None:
        config = ServerConfig()

    mcp = FastMCP("mender")

    # データアクセス層
    storage = SnapshotStorage(data_dir=config.data_dir, max_snapshots=config.max_snapshots)
    overlay = OverlayFileSystem(scheme=config.overlay_scheme)
    workspace = WorkspaceFileSystem(root=config.workspace_root, read_only_scheme=config.read_only_scheme)

    # 状態・サービス層
    store = StateStore()
    analysis_service = AnalysisService(
        store=store, storage=storage, overlay=overlay, workspace_root=config.workspace_root
    )
    solution_service = SolutionService(store=store, storage=storage, overlay=overlay, workspace=workspace)
    loader = ResultsLoader(analysis_service, solution_service, storage)

    # MCPインターフェース登録
    register_analysis_tools(mcp, analysis_service, loader)
    register_solution_tools(mcp, solution_service, read_only_scheme=config.read_only_scheme)
    register_workflow_prompts(mcp)

    # ヘルスチェックエンドポイント
    @mcp.custom_route("/health", methods=["GET"])
    async def health_check(request: Request) -> JSONResponse:
        state = store.state
        return JSONResponse(
            {
                "status": "ok",
                "version": state.version,
                "pending_changes": len(state.pending_changes()),
            }
        )

    return mcp


def create_app(config: ServerConfig | None = None) -> Starlette:
    """HTTPで公開するASGIアプリケーションを作成する。

    MCPエンドポイント（config.mcp_path）のみトークン認証の対象とし、
    /health は認証なしで応答する。
    """
    if config is None:
        config = ServerConfig()

    mcp = create_server(config)
    return mcp.http_app(
        path=config.mcp_path,
        transport="streamable-http",
        middleware=[
            Middleware(TokenAuthMiddleware, url_token=config.url_token, protected_prefix=config.mcp_path),
        ],
    )
