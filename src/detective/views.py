"""뷰 상태 - 로그 영역과 참조 테이블

마크업 없이 화면에 보일 내용만 보관한다. 대시보드 API가 이 상태를
그대로 직렬화해서 내보낸다.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Callable, Optional

from .models import ReferenceRow

logger = logging.getLogger(__name__)


class LogView:
    """잡 로그와 오류 메시지가 함께 쌓이는 공유 영역.

    줄 단위로 지우거나 순서를 바꾸지 않는다. clear()만 전체를 비운다.
    """

    def __init__(self, on_append: Optional[Callable[[str], None]] = None) -> None:
        self._lines: list[str] = []
        self._on_append = on_append

    @property
    def lines(self) -> list[str]:
        return list(self._lines)

    def __len__(self) -> int:
        return len(self._lines)

    def append(self, line: str) -> None:
        self._lines.append(line)
        if self._on_append is not None:
            self._on_append(line)

    def extend(self, lines) -> None:
        for line in lines:
            self.append(line)

    def append_error(self, message: str) -> None:
        """오류 메시지를 로그 영역에 그대로 덧붙인다."""
        logger.warning("%s", message)
        self.append(message)

    def clear(self) -> None:
        self._lines.clear()


@dataclass
class ReferenceView:
    """참조 브라우저 화면 상태"""
    aggregate_visible: bool = True
    detail_visible: bool = False
    title: str = ""
    amount_text: str = ""
    amount_visible: bool = False
    rows: list[ReferenceRow] = field(default_factory=list)

    def show_aggregate(self) -> None:
        self.aggregate_visible = True
        self.detail_visible = False
        self.title = ""
        self.amount_visible = False

    def show_detail(self, title: str, amount_text: str) -> None:
        self.aggregate_visible = False
        self.detail_visible = True
        self.title = title
        self.amount_text = amount_text
        self.amount_visible = False

    def replace_rows(self, rows: list[ReferenceRow]) -> None:
        self.rows = list(rows)
        self.amount_visible = True

    def to_dict(self) -> dict:
        return {
            "aggregate_visible": self.aggregate_visible,
            "detail_visible": self.detail_visible,
            "title": self.title,
            "amount_text": self.amount_text,
            "amount_visible": self.amount_visible,
            "rows": [row.to_dict() for row in self.rows],
        }
