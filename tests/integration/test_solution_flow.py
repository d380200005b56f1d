"""修正提案の確認・適用フローのMCPプロトコル経由統合テスト。"""

import json
from pathlib import Path

import pytest
from fastmcp import Client
from starlette.testclient import TestClient

from mender.config import ServerConfig
from mender.server import create_app, create_server


@pytest.fixture
def mcp_server(server_config: ServerConfig) -> object:
    """テスト用MCPサーバー。"""
    return create_server(server_config)


def parse_tool_result(result: object) -> dict:
    """CallToolResultからJSONデータを抽出する。"""
    content = result.content  # type: ignore[union-attr]
    assert len(content) > 0
    return json.loads(content[0].text)  # type: ignore[union-attr]


class TestSolutionFlowViaMCP:
    async def test_review_apply_and_discard(
        self, mcp_server: object, change_set_solution: dict, workspace: Path, foo_uri: str, bar_uri: str
    ) -> None:
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            # 1. ソリューション読み込み
            result = await client.call_tool("load_solution", {"solution": change_set_solution})
            data = parse_tool_result(result)
            assert [c["state"] for c in data["changes"]] == ["pending", "pending"]
            assert data["failures"] == []

            # 2. 変更前後の確認
            result = await client.call_tool("get_change_diff", {"original_uri": foo_uri})
            data = parse_tool_result(result)
            assert "javax.ejb.Stateless" in data["original"]
            assert "jakarta.ejb.Stateless" in data["proposed"]
            assert data["modified_uri"] == "mender:/src/Foo.java"

            # 3. Fooを適用、Barを破棄
            result = await client.call_tool("apply_change", {"original_uri": foo_uri})
            assert parse_tool_result(result)["state"] == "applied"
            result = await client.call_tool("discard_change", {"original_uri": bar_uri})
            assert parse_tool_result(result)["state"] == "discarded"

            assert "jakarta.ejb.Stateless" in (workspace / "src" / "Foo.java").read_text(encoding="utf-8")
            assert "javax.ejb.Singleton" in (workspace / "src" / "Bar.java").read_text(encoding="utf-8")

            # 4. 処理済みの変更候補は再処理できない
            result = await client.call_tool("apply_change", {"original_uri": bar_uri}, raise_on_error=False)
            assert parse_tool_result(result)["error"] == "InvalidTransitionError"

            result = await client.call_tool("list_changes", {"pending_only": True})
            assert parse_tool_result(result)["changes"] == []

    async def test_apply_all_changes(
        self, mcp_server: object, change_set_solution: dict, foo_uri: str, bar_uri: str
    ) -> None:
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            await client.call_tool("load_solution", {"solution": change_set_solution})
            result = await client.call_tool("apply_all_changes", {})
            data = parse_tool_result(result)
            assert data["action"] == "apply"
            assert sorted(data["succeeded"]) == sorted([foo_uri, bar_uri])
            assert data["failed"] == []

    async def test_unapplicable_diff_is_reported(
        self, mcp_server: object, change_set_solution: dict, workspace: Path, foo_uri: str
    ) -> None:
        (workspace / "src" / "Foo.java").write_text("class Foo {}\n", encoding="utf-8")
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            result = await client.call_tool("load_solution", {"solution": change_set_solution})
            data = parse_tool_result(result)
            assert [f["uri"] for f in data["failures"]] == [foo_uri]
            assert [c["fallback"] for c in data["changes"]] == [True, False]

            result = await client.call_tool("get_change_diff", {"original_uri": foo_uri})
            data = parse_tool_result(result)
            assert data["proposed"] == data["diff"]

            result = await client.call_tool("apply_change", {"original_uri": foo_uri}, raise_on_error=False)
            assert parse_tool_result(result)["error"] == "PatchApplyError"
            assert (workspace / "src" / "Foo.java").read_text(encoding="utf-8") == "class Foo {}\n"

    async def test_invalid_solution(self, mcp_server: object) -> None:
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            result = await client.call_tool("load_solution", {"solution": {"bogus": 1}}, raise_on_error=False)
            assert parse_tool_result(result)["error"] == "IngestionError"

    async def test_workflow_prompt(self, mcp_server: object) -> None:
        async with Client(mcp_server) as client:  # type: ignore[arg-type]
            prompts = await client.list_prompts()
            assert "review_and_fix" in [p.name for p in prompts]

    def test_health_route(self, server_config: ServerConfig) -> None:
        app = create_server(server_config).http_app(transport="streamable-http")
        with TestClient(app) as client:
            response = client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "ok"

    def test_app_guards_only_mcp_endpoint(self, server_config: ServerConfig) -> None:
        config = server_config.model_copy(update={"url_token": "secret"})
        with TestClient(create_app(config)) as client:
            assert client.get("/health").status_code == 200
            response = client.post("/mcp", json={})
        assert response.status_code == 401
        assert response.json()["error"] == "Unauthorized"
