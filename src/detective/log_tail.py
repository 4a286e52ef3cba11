"""LogTailSync - 원격 잡 로그를 주기적으로 조회하여 덧붙이기 렌더링"""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from .models import JobLogSnapshot, LogCursor
from .rpc import GET_LATEST_JOB_LOG, RpcError

if TYPE_CHECKING:
    from .rpc import RpcClient
    from .views import LogView

logger = logging.getLogger(__name__)

POLL_INTERVAL_SECONDS = 7.5


@dataclass(frozen=True)
class RenderDelta:
    """render() 결과: 새 커서, 덧붙일 줄, 화면을 비워야 하는지"""
    cursor: LogCursor
    lines: tuple[str, ...] = ()
    cleared: bool = False


def render(snapshot: JobLogSnapshot, cursor: LogCursor) -> RenderDelta:
    """스냅샷과 커서로부터 렌더링 변화분을 계산한다 (순수 함수).

    job_id가 바뀌면 커서를 -1로 되돌리고 화면 전체를 비운다.
    같은 잡이면 last_rendered_index 이후의 줄만 덧붙인다. 이미 렌더링한
    줄보다 짧은 스냅샷은 아무 변화도 만들지 않는다.
    """
    cleared = False
    if snapshot.job_id != cursor.job_id:
        cursor = LogCursor(job_id=snapshot.job_id)
        cleared = True

    new_lines = snapshot.logs[cursor.last_rendered_index + 1:]
    last_index = cursor.last_rendered_index + len(new_lines)
    return RenderDelta(
        cursor=LogCursor(job_id=cursor.job_id, last_rendered_index=last_index),
        lines=tuple(new_lines),
        cleared=cleared,
    )


class LogTailSync:
    """저장소 하나의 최신 잡 로그를 LogView에 동기화.

    start()는 즉시 한 번 조회하고, 이후 interval초마다 조회를 예약한다.
    각 조회는 별도 태스크로 실행되므로 느린 응답이 주기를 밀어내지 않는다.
    응답 순서가 뒤섞여도 커서는 뒤로 가지 않는다.
    """

    def __init__(
        self,
        rpc: RpcClient,
        repository: str,
        view: LogView,
        interval: float = POLL_INTERVAL_SECONDS,
    ) -> None:
        self.rpc = rpc
        self.repository = repository
        self.view = view
        self.interval = interval
        self._cursor = LogCursor()
        self._timer: asyncio.Task | None = None
        self._inflight: set[asyncio.Task] = set()
        # start/reset/stop 때마다 증가. 이전 세대의 응답은 버린다.
        self._generation = 0

    @property
    def cursor(self) -> LogCursor:
        return self._cursor

    @property
    def is_running(self) -> bool:
        return self._timer is not None and not self._timer.done()

    def start(self) -> None:
        """폴링 루프 시작. 이미 돌고 있으면 기존 타이머를 취소하고 다시 예약."""
        self._cancel_timer()
        self._generation += 1
        self._timer = asyncio.get_running_loop().create_task(
            self._run(self._generation)
        )
        logger.info("잡 로그 폴링 시작: %s (%.1f초 간격)", self.repository, self.interval)

    def stop(self) -> None:
        """뷰 해제: 타이머와 진행 중인 조회를 모두 취소."""
        self._cancel_timer()
        self._generation += 1
        for task in list(self._inflight):
            task.cancel()
        self._inflight.clear()
        logger.info("잡 로그 폴링 중지: %s", self.repository)

    def reset(self) -> None:
        """새 잡이 시작됨: 화면과 커서를 비우고 폴링을 다시 시작."""
        self.view.clear()
        self._cursor = LogCursor()
        self.start()

    async def fetch(self) -> JobLogSnapshot:
        """GetLatestJobLog 호출 한 번."""
        body = await self.rpc.send(
            GET_LATEST_JOB_LOG, {"github_repository": self.repository}
        )
        return JobLogSnapshot.from_payload(body)

    async def poll_once(self, generation: int | None = None) -> bool:
        """조회 후 렌더링. 반영했으면 True.

        실패하면 오류를 로그 영역에 남기고 커서는 그대로 둔다.
        재시도는 다음 주기에 맡긴다.
        """
        if generation is None:
            generation = self._generation
        try:
            snapshot = await self.fetch()
        except RpcError as e:
            if generation != self._generation:
                logger.debug("이전 세대의 잡 로그 조회 실패 무시: %s", e)
                return False
            self.view.append_error(str(e))
            return False

        if generation != self._generation:
            logger.debug("이전 세대의 잡 로그 응답 무시 (job_id=%s)", snapshot.job_id)
            return False

        self.apply(snapshot)
        return True

    def apply(self, snapshot: JobLogSnapshot) -> RenderDelta:
        """스냅샷을 화면에 반영하고 커서를 갱신."""
        delta = render(snapshot, self._cursor)
        if delta.cleared:
            logger.info("잡 변경 감지: %s → %s", self._cursor.job_id, snapshot.job_id)
            self.view.clear()
        self.view.extend(delta.lines)
        self._cursor = delta.cursor
        if delta.lines:
            logger.debug(
                "잡 로그 %d줄 추가 (last_rendered_index=%d)",
                len(delta.lines),
                delta.cursor.last_rendered_index,
            )
        return delta

    async def _run(self, generation: int) -> None:
        while True:
            self._dispatch(generation)
            await asyncio.sleep(self.interval)

    def _dispatch(self, generation: int) -> None:
        task = asyncio.get_running_loop().create_task(self.poll_once(generation))
        self._inflight.add(task)
        task.add_done_callback(self._inflight.discard)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None
