"""ProjectSession - 저장소 하나의 대시보드 화면을 구성하는 컴포넌트 묶음"""

from __future__ import annotations

import asyncio
import logging

from .config import ClientConfig
from .log_tail import LogTailSync
from .references import ReferenceBrowser
from .rpc import RpcClient
from .trigger_gate import BuildTriggerGate
from .views import LogView

logger = logging.getLogger(__name__)


class ProjectSession:
    """RPC 클라이언트 하나를 공유하는 LogTailSync, BuildTriggerGate, ReferenceBrowser.

    connect()가 원래 이벤트 버스 onopen 처리에 해당한다: 잡 로그 폴링을
    시작하고 트리거 권한을 조회한다.
    """

    def __init__(self, config: ClientConfig, rpc: RpcClient | None = None) -> None:
        self.config = config
        self.rpc = rpc or RpcClient(config.rpc_url, token=config.rpc_token)
        self.log_view = LogView()
        self.log_tail = LogTailSync(
            self.rpc,
            config.repository,
            self.log_view,
            interval=config.poll_interval,
        )
        self.gate = BuildTriggerGate(
            self.rpc,
            config.repository,
            self.log_view,
            self.log_tail,
        )
        self.references = ReferenceBrowser(
            self.rpc,
            self.log_view,
            dashboard_url=config.dashboard_url,
            code_host_url=config.code_host_url,
        )
        self._permission_task: asyncio.Task | None = None

    @property
    def repository(self) -> str:
        return self.config.repository

    async def connect(self) -> None:
        """폴링 시작 + 권한 조회 (응답을 기다리지 않음)."""
        logger.info("세션 연결: %s", self.repository)
        self.log_tail.start()
        self._permission_task = asyncio.get_running_loop().create_task(
            self.gate.refresh_permission()
        )

    async def close(self) -> None:
        self.log_tail.stop()
        if self._permission_task is not None and not self._permission_task.done():
            self._permission_task.cancel()
        await self.rpc.close()
        logger.info("세션 종료: %s", self.repository)

    def status(self) -> dict:
        cursor = self.log_tail.cursor
        return {
            "repository": self.repository,
            "can_trigger": self.gate.can_trigger,
            "polling": self.log_tail.is_running,
            "log": {
                "job_id": cursor.job_id,
                "last_rendered_index": cursor.last_rendered_index,
            },
        }
