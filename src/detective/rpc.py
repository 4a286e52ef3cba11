"""이벤트 버스 RPC 클라이언트

논리 메서드 이름(GetLatestJobLog 등)으로 요청을 보내고 결과 하나 또는
오류 하나를 받는 request/reply 채널. HTTP 브리지 위에서 동작한다.

    POST {base_url}/{method}  (JSON 바디)
    200 → {"body": <결과>}
    그 외 → {"message": "..."}

호출마다 정확히 한 번 결과를 돌려주거나 예외를 던진다. 동시에 진행 중인
호출들 사이의 응답 순서는 보장하지 않는다.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Any, Optional

import aiohttp

logger = logging.getLogger(__name__)

# HTTP 타임아웃 (초)
HTTP_CONNECT_TIMEOUT = 10
HTTP_TOTAL_TIMEOUT = 30

# 메서드 이름
GET_TRIGGER_INFORMATION = "GetTriggerInformation"
CREATE_JOB = "CreateJob"
GET_LATEST_JOB_LOG = "GetLatestJobLog"
GET_FUNCTION_EXTERNAL_REFERENCES = "GetFunctionExternalReferences"


# === 예외 ===

class RpcError(Exception):
    """RPC 호출 오류. str(e)가 사용자에게 그대로 표시된다."""

    def __init__(self, message: str, method: str | None = None):
        self.message = message
        self.method = method
        super().__init__(message)


class TransportError(RpcError):
    """전송 실패 (연결 오류, 타임아웃, 서버 오류 응답)"""

    def __init__(self, message: str, method: str | None = None, status: int | None = None):
        self.status = status
        super().__init__(message, method)


class MalformedResponseError(RpcError):
    """응답 바디가 기대한 형태가 아님"""
    pass


# === 클라이언트 ===

class RpcClient:
    """이벤트 버스 request/reply 클라이언트

    사용 예:
        async with RpcClient("http://localhost:8080/eventbus") as rpc:
            body = await rpc.send("GetLatestJobLog", {"github_repository": "acme/widgets"})
    """

    def __init__(
        self,
        base_url: str,
        token: str = "",
        total_timeout: float = HTTP_TOTAL_TIMEOUT,
    ):
        self.base_url = base_url.rstrip("/")
        self.token = token
        self.total_timeout = total_timeout
        self._session: Optional[aiohttp.ClientSession] = None

    @property
    def is_configured(self) -> bool:
        return bool(self.base_url)

    async def _get_session(self) -> aiohttp.ClientSession:
        if self._session is None or self._session.closed:
            timeout = aiohttp.ClientTimeout(
                connect=HTTP_CONNECT_TIMEOUT,
                total=self.total_timeout,
            )
            self._session = aiohttp.ClientSession(
                timeout=timeout,
                headers=self._build_headers(),
            )
        return self._session

    def _build_headers(self) -> dict:
        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return headers

    async def close(self) -> None:
        if self._session and not self._session.closed:
            await self._session.close()
            self._session = None

    async def __aenter__(self) -> "RpcClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()

    async def send(self, method: str, payload: dict) -> Any:
        """메서드 호출. 성공 시 응답 body, 실패 시 RpcError."""
        session = await self._get_session()
        url = f"{self.base_url}/{method}"
        logger.debug("RPC 요청: %s %s", method, payload)

        try:
            async with session.post(url, json=payload) as response:
                if response.status != 200:
                    message = await self._parse_error(response)
                    raise TransportError(message, method=method, status=response.status)
                try:
                    data = await response.json()
                except (aiohttp.ContentTypeError, ValueError):
                    raise MalformedResponseError(
                        f"{method}: JSON이 아닌 응답", method=method
                    )
        except asyncio.TimeoutError:
            raise TransportError(f"{method}: 응답 시간 초과", method=method)
        except aiohttp.ClientError as e:
            raise TransportError(f"{method}: 연결 오류 ({e})", method=method)

        if isinstance(data, dict) and "body" in data:
            return data["body"]
        return data

    async def _parse_error(self, response: aiohttp.ClientResponse) -> str:
        """에러 응답 파싱"""
        try:
            data = await response.json()
        except Exception:
            return f"HTTP {response.status}"
        if isinstance(data, dict):
            if "message" in data:
                return str(data["message"])
            if isinstance(data.get("error"), dict):
                return data["error"].get("message", str(data["error"]))
            if "detail" in data:
                return str(data["detail"])
        return str(data)
