"""ReferenceBrowser - 집계 보기 ↔ 함수 참조 상세 보기 네비게이션"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from .models import (
    REFERENCE_PAGE_SIZE,
    Breadcrumb,
    FunctionEntry,
    FunctionReference,
    ReferenceEntry,
    ReferenceRow,
    escape_text,
    parse_reference_page,
)
from .rpc import GET_FUNCTION_EXTERNAL_REFERENCES, RpcError
from .views import ReferenceView

if TYPE_CHECKING:
    from .rpc import RpcClient
    from .views import LogView

logger = logging.getLogger(__name__)

ROOT_LABEL = "Most referenced functions"
DEFAULT_CODE_HOST_URL = "https://github.com/"


def function_label(function_reference: FunctionReference) -> str:
    return f"Function [id: {function_reference.id}]"


def display_amount_text(total: int, page_size: int = REFERENCE_PAGE_SIZE) -> str:
    """Displaying N of M 문구. 서버 페이지는 page_size개로 잘린다."""
    return f"Displaying {min(total, page_size)} of {total}"


def detail_title(function_reference: FunctionReference) -> str:
    return (
        f"Referenced function: {function_reference.class_name}."
        f"{escape_text(function_reference.function_signature)}"
    )


def build_row(
    entry: ReferenceEntry,
    dashboard_url: str,
    code_host_url: str = DEFAULT_CODE_HOST_URL,
) -> ReferenceRow:
    """참조 엔트리 하나를 표시용 행으로 변환."""
    owner = entry.owner_project
    if isinstance(entry, FunctionEntry):
        detail = escape_text(entry.short_function_signature)
    else:
        detail = entry.file_location
    return ReferenceRow(
        class_name=entry.short_class_name,
        detail=detail,
        owner_project=owner,
        dashboard_url=f"{dashboard_url}{owner}",
        code_url=entry.code_location(code_host_url),
        is_function=isinstance(entry, FunctionEntry),
    )


class NavigationStack:
    """브레드크럼 스택. 맨 아래는 항상 루트, 맨 위 항목이 활성."""

    def __init__(self, root_label: str = ROOT_LABEL) -> None:
        self._entries: list[Breadcrumb] = [Breadcrumb(root_label)]

    @property
    def entries(self) -> list[Breadcrumb]:
        return list(self._entries)

    @property
    def active(self) -> Breadcrumb:
        return self._entries[-1]

    @property
    def depth(self) -> int:
        """루트 위에 쌓인 항목 수"""
        return len(self._entries) - 1

    @property
    def is_root_active(self) -> bool:
        return self.depth == 0

    def push(self, label: str, scope: FunctionReference) -> Breadcrumb:
        crumb = Breadcrumb(label=label, scope=scope)
        self._entries.append(crumb)
        return crumb

    def pop(self) -> Breadcrumb | None:
        """맨 위 항목 제거. 루트는 제거하지 않는다."""
        if self.is_root_active:
            return None
        return self._entries.pop()

    def pop_to_root(self) -> None:
        del self._entries[1:]

    def to_list(self) -> list[dict]:
        last = len(self._entries) - 1
        return [
            {"label": crumb.label, "active": i == last}
            for i, crumb in enumerate(self._entries)
        ]


class ReferenceBrowser:
    """가장 많이 참조된 함수 목록에서 함수 하나의 참조 목록으로 드릴다운.

    상태 전이는 첫 await 전에 끝나므로 사용자 이벤트 사이에서 원자적이다.
    참조 조회는 발행 시점의 네비게이션 토큰을 기억하고, 응답이 왔을 때
    토큰이 바뀌었으면(뒤로 가기 등) 결과를 버린다.
    """

    def __init__(
        self,
        rpc: RpcClient,
        log_view: LogView,
        dashboard_url: str,
        code_host_url: str = DEFAULT_CODE_HOST_URL,
    ) -> None:
        self.rpc = rpc
        self.log_view = log_view
        self.dashboard_url = dashboard_url
        self.code_host_url = code_host_url
        self.view = ReferenceView()
        self.stack = NavigationStack()
        self._token = 0

    @property
    def current(self) -> FunctionReference | None:
        """상세 보기 중인 함수 (집계 보기면 None)"""
        return self.stack.active.scope

    @property
    def token(self) -> int:
        return self._token

    async def open_function(self, function_reference: FunctionReference) -> bool:
        """함수 선택: 브레드크럼을 쌓고 상세 보기로 전환한 뒤 참조를 조회."""
        self.stack.push(function_label(function_reference), function_reference)
        logger.info("참조 상세 보기: %s", function_reference.id)
        return await self._enter_detail(function_reference)

    async def back(self) -> bool:
        """한 단계 뒤로. 루트에 도달하면 집계 보기로 복귀.

        루트 위에 아직 상세 항목이 남아 있으면 그 함수를 다시 표시한다.
        """
        if self.stack.pop() is None:
            return False
        scope = self.current
        if scope is None:
            self._restore_aggregate()
            return True
        await self._enter_detail(scope)
        return True

    def show_aggregate(self) -> None:
        """루트 브레드크럼 활성화: 어느 깊이에서든 집계 보기로 복귀."""
        self.stack.pop_to_root()
        self._restore_aggregate()

    async def fetch_references(self, function_id: str, offset: int = 0) -> list[ReferenceEntry]:
        body = await self.rpc.send(
            GET_FUNCTION_EXTERNAL_REFERENCES,
            {"function_id": function_id, "offset": offset},
        )
        return parse_reference_page(body)

    async def _enter_detail(self, function_reference: FunctionReference) -> bool:
        self._token += 1
        token = self._token
        self.view.show_detail(
            title=detail_title(function_reference),
            amount_text=display_amount_text(function_reference.external_reference_count),
        )

        try:
            entries = await self.fetch_references(function_reference.id, offset=0)
        except RpcError as e:
            # 기존 행은 건드리지 않는다
            self.log_view.append_error(str(e))
            return False

        if token != self._token:
            logger.debug("지난 네비게이션 상태의 참조 응답 무시: %s", function_reference.id)
            return False

        self.view.replace_rows(
            [build_row(entry, self.dashboard_url, self.code_host_url) for entry in entries]
        )
        return True

    def _restore_aggregate(self) -> None:
        self._token += 1
        self.view.show_aggregate()
        logger.info("집계 보기로 복귀")

    def to_dict(self) -> dict:
        data = self.view.to_dict()
        data["breadcrumbs"] = self.stack.to_list()
        return data
