"""BuildTriggerGate - 빌드 트리거 중복 제출 방지"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .models import TriggerInformation
from .rpc import CREATE_JOB, GET_TRIGGER_INFORMATION, RpcError

if TYPE_CHECKING:
    from .log_tail import LogTailSync
    from .rpc import RpcClient
    from .views import LogView

logger = logging.getLogger(__name__)


class BuildTriggerGate:
    """서버가 알려준 빌드 가능 여부를 미러링하는 플래그.

    트리거 요청을 보내는 순간 닫히고, 다시 열리는 경로는 새 권한 조회
    (refresh_permission) 하나뿐이다. 잡이 끝나거나 CreateJob이 실패해도
    자동으로 열리지 않는다.
    """

    def __init__(
        self,
        rpc: RpcClient,
        repository: str,
        view: LogView,
        log_tail: LogTailSync,
    ) -> None:
        self.rpc = rpc
        self.repository = repository
        self.view = view
        self.log_tail = log_tail
        self.can_trigger = False
        # 트리거마다 증가. 트리거 이전에 보낸 권한 조회 응답은 버린다.
        self._epoch = 0

    @property
    def affordance_enabled(self) -> bool:
        return self.can_trigger

    async def refresh_permission(self) -> bool:
        """GetTriggerInformation 조회. 반영된 can_trigger를 반환."""
        epoch = self._epoch
        try:
            body = await self.rpc.send(
                GET_TRIGGER_INFORMATION, {"github_repository": self.repository}
            )
            info = TriggerInformation.from_payload(body)
        except RpcError as e:
            self.view.append_error(str(e))
            return self.can_trigger

        if epoch != self._epoch:
            logger.debug("트리거 이전에 보낸 권한 조회 응답 무시")
            return self.can_trigger

        self.can_trigger = info.can_build
        if info.can_build:
            logger.info("빌드 트리거 가능: %s", self.repository)
        else:
            logger.info("빌드 트리거 불가 (서버 판단): %s", self.repository)
        return self.can_trigger

    async def trigger(self) -> bool:
        """사용자 트리거. CreateJob을 보냈으면 True.

        첫 await 전에 플래그를 닫으므로 연달아 호출해도 요청은 한 번만 나간다.
        """
        if not self.can_trigger:
            logger.debug("트리거 무시: 게이트가 닫혀 있음")
            return False
        self.can_trigger = False
        self._epoch += 1
        logger.info("빌드 트리거 요청: %s", self.repository)

        try:
            await self.rpc.send(CREATE_JOB, {"github_repository": self.repository})
        except RpcError as e:
            # 게이트는 닫힌 채로 둔다. 새 권한 조회로만 다시 열린다.
            self.view.append_error(str(e))
            return True

        logger.info("빌드 트리거 수락됨, 잡 로그 초기화")
        self.log_tail.reset()
        return True
