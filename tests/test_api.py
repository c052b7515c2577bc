"""ClickUpAPI: success paths, sentinels on failure, missing configuration."""

import httpx
import pytest

from snapshotter.api import ClickUpAPI, FetchResult, fetch
from snapshotter.config import ClickUpConfig

from conftest import API_BASE

LISTS_PATH = "/api/v2/space/S1/list"


class TestFetch:
    async def test_success(self, server):
        server.routes["/x"] = {"ok": 1}
        result = await fetch(server.client(), "https://h.test/x")
        assert result == FetchResult.success({"ok": 1})

    async def test_not_found_is_tagged(self, server):
        result = await fetch(server.client(), "https://h.test/missing")
        assert not result.ok
        assert result.not_found

    async def test_timeout(self, server):
        server.routes["/x"] = httpx.ReadTimeout("timed out")
        result = await fetch(server.client(), "https://h.test/x")
        assert not result.ok
        assert result.status_code is None
        assert "ReadTimeout" in result.reason

    async def test_malformed_json(self, server):
        server.routes["/x"] = httpx.Response(200, content=b"<html>oops")
        result = await fetch(server.client(), "https://h.test/x")
        assert not result.ok
        assert result.status_code == 200


class TestClickUpAPI:
    async def test_fetch_lists(self, server, api):
        server.routes[LISTS_PATH] = {"lists": [{"id": "L1", "name": "Sprint"}]}
        assert await api.fetch_lists() == [{"id": "L1", "name": "Sprint"}]
        assert server.requests[0].headers["Authorization"] == "pk_test"

    async def test_fetch_list_details(self, server, api):
        server.routes["/api/v2/list/L1"] = {"id": "L1", "statuses": [{"status": "to do"}]}
        assert (await api.fetch_list_details("L1"))["statuses"] == [{"status": "to do"}]

    async def test_fetch_tasks_requests_closed_tasks(self, server, api):
        server.routes["/api/v2/list/L1/task"] = {"tasks": [{"id": "t1"}]}
        assert await api.fetch_tasks_for_list_raw("L1") == [{"id": "t1"}]
        params = server.requests[0].url.params
        assert params["include_closed"] == "true"
        assert params["include"] == "date_status_changed"

    async def test_fetch_task_details_includes_attachments(self, server, api):
        server.routes["/api/v2/task/t1"] = {"id": "t1", "attachments": []}
        assert await api.fetch_task_details("t1") == {"id": "t1", "attachments": []}
        assert server.requests[0].url.params["include"] == "attachments"

    @pytest.mark.parametrize(
        "route",
        [
            httpx.ConnectError("connection refused"),
            httpx.ReadTimeout("timed out"),
            httpx.Response(500),
            httpx.Response(401, json={"err": "Token invalid"}),
            httpx.Response(200, content=b"not json"),
        ],
    )
    async def test_failures_become_sentinels(self, server, api, route):
        for path in (LISTS_PATH, "/api/v2/list/L1", "/api/v2/list/L1/task", "/api/v2/task/t1"):
            server.routes[path] = route
        assert await api.fetch_lists() == []
        assert await api.fetch_list_details("L1") is None
        assert await api.fetch_tasks_for_list_raw("L1") == []
        assert await api.fetch_task_details("t1") is None

    async def test_single_attempt(self, server, api):
        server.routes[LISTS_PATH] = httpx.Response(503)
        await api.fetch_lists()
        assert server.paths() == [LISTS_PATH]

    @pytest.mark.parametrize("token,space_id", [("", "S1"), ("pk_test", ""), ("", "")])
    async def test_missing_config_returns_empty_without_requests(self, server, token, space_id):
        api = ClickUpAPI(ClickUpConfig(api_base=API_BASE, token=token, space_id=space_id), client=server.client())
        assert await api.fetch_lists() == []
        assert await api.fetch_list_details("L1") is None
        assert await api.fetch_tasks_for_list_raw("L1") == []
        assert await api.fetch_task_details("t1") is None
        assert server.requests == []

    async def test_download_attachment(self, server, api):
        server.routes["/att/a.png"] = httpx.Response(200, content=b"\x89PNG")
        assert await api.download_attachment("https://files.test/att/a.png") == b"\x89PNG"
        assert await api.download_attachment("https://files.test/att/missing.png") is None

    async def test_invalid_url_is_a_failure(self, server, api):
        assert await api.download_attachment("http://a\x00b/x.png") is None
        result = await fetch(server.client(), "http://a\x00b/x.png")
        assert not result.ok
        assert "InvalidURL" in result.reason
        assert server.requests == []

    async def test_non_object_entries_are_dropped(self, server, api):
        server.routes[LISTS_PATH] = {"lists": ["oops", None, {"id": "L1", "name": "Sprint"}]}
        server.routes["/api/v2/list/L1/task"] = {"tasks": [{"id": "t1"}, "t2", 3]}
        assert await api.fetch_lists() == [{"id": "L1", "name": "Sprint"}]
        assert await api.fetch_tasks_for_list_raw("L1") == [{"id": "t1"}]
