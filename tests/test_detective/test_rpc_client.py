"""RpcClient 테스트

mock aiohttp 세션으로 request/reply 동작을 검증합니다.
"""

import asyncio

import aiohttp
import pytest
from unittest.mock import AsyncMock, MagicMock

from detective.rpc import (
    GET_LATEST_JOB_LOG,
    MalformedResponseError,
    RpcClient,
    RpcError,
    TransportError,
)


# === 헬퍼 ===

class MockAsyncContextManager:
    """aiohttp의 async with session.post() 패턴을 mock하기 위한 컨텍스트 매니저"""
    def __init__(self, response):
        self.response = response

    async def __aenter__(self):
        return self.response

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        return False


def _mock_session(response):
    session = MagicMock()
    session.closed = False
    session.post.return_value = MockAsyncContextManager(response)
    return session


def _response(status=200, json_data=None, json_error=None):
    response = MagicMock()
    response.status = status
    if json_error is not None:
        response.json = AsyncMock(side_effect=json_error)
    else:
        response.json = AsyncMock(return_value=json_data)
    return response


@pytest.fixture
def client():
    return RpcClient(base_url="http://localhost:8080/eventbus/", token="t0k")


class TestRpcClient:
    def test_strips_trailing_slash(self, client):
        assert client.base_url == "http://localhost:8080/eventbus"

    def test_headers_with_token(self, client):
        headers = client._build_headers()
        assert headers["Authorization"] == "Bearer t0k"
        assert headers["Content-Type"] == "application/json"

    def test_headers_without_token(self):
        headers = RpcClient(base_url="http://x")._build_headers()
        assert "Authorization" not in headers

    def test_errors_are_rpc_errors(self):
        assert issubclass(TransportError, RpcError)
        assert issubclass(MalformedResponseError, RpcError)


class TestSend:
    @pytest.mark.asyncio
    async def test_returns_body(self, client):
        client._session = _mock_session(
            _response(json_data={"body": {"job_id": "j1", "logs": []}})
        )

        result = await client.send(GET_LATEST_JOB_LOG, {"github_repository": "acme/w"})

        assert result == {"job_id": "j1", "logs": []}
        url = client._session.post.call_args[0][0]
        assert url == "http://localhost:8080/eventbus/GetLatestJobLog"
        assert client._session.post.call_args[1]["json"] == {"github_repository": "acme/w"}

    @pytest.mark.asyncio
    async def test_bare_json_is_result(self, client):
        client._session = _mock_session(_response(json_data=[{"a": 1}]))
        assert await client.send("GetFunctionExternalReferences", {}) == [{"a": 1}]

    @pytest.mark.asyncio
    async def test_error_message_surfaced(self, client):
        client._session = _mock_session(
            _response(status=500, json_data={"message": "Repository not found"})
        )

        with pytest.raises(TransportError) as exc_info:
            await client.send("CreateJob", {})

        assert str(exc_info.value) == "Repository not found"
        assert exc_info.value.status == 500
        assert exc_info.value.method == "CreateJob"

    @pytest.mark.asyncio
    async def test_nested_error_message(self, client):
        client._session = _mock_session(
            _response(status=400, json_data={"error": {"message": "bad"}})
        )
        with pytest.raises(TransportError, match="bad"):
            await client.send("CreateJob", {})

    @pytest.mark.asyncio
    async def test_unparseable_error_falls_back_to_status(self, client):
        client._session = _mock_session(
            _response(status=502, json_error=ValueError("not json"))
        )
        with pytest.raises(TransportError, match="HTTP 502"):
            await client.send("CreateJob", {})

    @pytest.mark.asyncio
    async def test_non_json_success_is_malformed(self, client):
        client._session = _mock_session(
            _response(status=200, json_error=ValueError("not json"))
        )
        with pytest.raises(MalformedResponseError):
            await client.send("CreateJob", {})

    @pytest.mark.asyncio
    async def test_connection_error(self, client):
        session = MagicMock()
        session.closed = False
        session.post.side_effect = aiohttp.ClientConnectionError("refused")
        client._session = session

        with pytest.raises(TransportError, match="연결 오류"):
            await client.send(GET_LATEST_JOB_LOG, {})

    @pytest.mark.asyncio
    async def test_timeout(self, client):
        session = MagicMock()
        session.closed = False
        session.post.side_effect = asyncio.TimeoutError()
        client._session = session

        with pytest.raises(TransportError, match="시간 초과"):
            await client.send(GET_LATEST_JOB_LOG, {})


class TestClose:
    @pytest.mark.asyncio
    async def test_close_session(self, client):
        session = MagicMock()
        session.closed = False
        session.close = AsyncMock()
        client._session = session

        await client.close()

        session.close.assert_awaited_once()
        assert client._session is None

    @pytest.mark.asyncio
    async def test_context_manager_closes(self):
        session = MagicMock()
        session.closed = False
        session.close = AsyncMock()

        async with RpcClient(base_url="http://x") as rpc:
            rpc._session = session

        session.close.assert_awaited_once()
