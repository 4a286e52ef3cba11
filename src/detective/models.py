"""데이터 모델: JobLogSnapshot, LogCursor, FunctionReference, ReferenceEntry"""

from __future__ import annotations

import html
from dataclasses import dataclass
from typing import Any, Union

from .rpc import MalformedResponseError

# 서버가 한 번에 돌려주는 참조 엔트리 최대 개수
REFERENCE_PAGE_SIZE = 10


def owner_project(project_name: str) -> str:
    """네임스페이스 접두사(첫 ':'까지)를 제거한 프로젝트 이름.

    "github:acme/widgets" → "acme/widgets". ':'가 없으면 그대로 반환.
    """
    return project_name[project_name.find(":") + 1:]


def _require(payload: Any, key: str, kind: str) -> Any:
    if not isinstance(payload, dict):
        raise MalformedResponseError(f"{kind}: 객체가 아닌 응답 ({type(payload).__name__})")
    if key not in payload:
        raise MalformedResponseError(f"{kind}: '{key}' 필드 누락")
    return payload[key]


def _require_str(payload: Any, key: str, kind: str) -> str:
    value = _require(payload, key, kind)
    if not isinstance(value, str):
        raise MalformedResponseError(f"{kind}: '{key}'가 문자열이 아님 ({value!r})")
    return value


@dataclass(frozen=True)
class JobLogSnapshot:
    """원격 잡의 로그 스냅샷 (GetLatestJobLog 응답)"""
    job_id: Any
    logs: tuple[str, ...] = ()

    @classmethod
    def from_payload(cls, payload: Any) -> JobLogSnapshot:
        job_id = _require(payload, "job_id", "JobLogSnapshot")
        logs = _require(payload, "logs", "JobLogSnapshot")
        if logs is None:
            logs = []
        if not isinstance(logs, list):
            raise MalformedResponseError("JobLogSnapshot: 'logs'가 리스트가 아님")
        return cls(job_id=job_id, logs=tuple(str(line) for line in logs))


@dataclass(frozen=True)
class LogCursor:
    """렌더링 위치. job_id가 None이면 아직 잡을 모르는 상태."""
    job_id: Any = None
    last_rendered_index: int = -1


@dataclass(frozen=True)
class FunctionReference:
    """상세 보기 대상 함수"""
    id: str
    class_name: str
    function_signature: str
    external_reference_count: int = 0

    def __post_init__(self) -> None:
        if self.external_reference_count < 0:
            raise ValueError(
                f"external_reference_count는 음수일 수 없습니다: {self.external_reference_count}"
            )


@dataclass(frozen=True)
class FunctionEntry:
    """함수 단위 참조 (호출 위치)"""
    short_class_name: str
    short_function_signature: str
    project_name: str
    commit_sha1: str
    file_location: str
    line_number: int

    @property
    def owner_project(self) -> str:
        return owner_project(self.project_name)

    def code_location(self, code_host_url: str) -> str:
        return (
            f"{code_host_url}{self.owner_project}/blob/"
            f"{self.commit_sha1}/{self.file_location}#L{self.line_number}"
        )


@dataclass(frozen=True)
class FileEntry:
    """파일 단위 참조 (라인 정보 없음)"""
    short_class_name: str
    project_name: str
    file_location: str
    commit_sha1: str | None = None

    @property
    def owner_project(self) -> str:
        return owner_project(self.project_name)

    def code_location(self, code_host_url: str) -> str:
        # 커밋을 모르면 프로젝트 페이지로 연결
        if not self.commit_sha1:
            return f"{code_host_url}{self.owner_project}"
        return f"{code_host_url}{self.owner_project}/blob/{self.commit_sha1}/{self.file_location}"


ReferenceEntry = Union[FunctionEntry, FileEntry]


def parse_reference_entry(payload: Any) -> ReferenceEntry:
    """GetFunctionExternalReferences 응답의 엔트리 하나를 변환한다.

    isFunction이 참이면 FunctionEntry, 아니면 FileEntry.
    """
    if not isinstance(payload, dict):
        raise MalformedResponseError(f"ReferenceEntry: 객체가 아닌 엔트리 ({type(payload).__name__})")
    if payload.get("isFunction"):
        line = _require(payload, "lineNumber", "FunctionEntry")
        try:
            line_number = int(line)
        except (TypeError, ValueError):
            raise MalformedResponseError(f"FunctionEntry: 잘못된 lineNumber {line!r}")
        return FunctionEntry(
            short_class_name=_require_str(payload, "shortClassName", "FunctionEntry"),
            short_function_signature=_require_str(payload, "shortFunctionSignature", "FunctionEntry"),
            project_name=_require_str(payload, "projectName", "FunctionEntry"),
            commit_sha1=_require_str(payload, "commitSha1", "FunctionEntry"),
            file_location=_require_str(payload, "fileLocation", "FunctionEntry"),
            line_number=line_number,
        )
    commit_sha1 = payload.get("commitSha1")
    if commit_sha1 is not None and not isinstance(commit_sha1, str):
        raise MalformedResponseError(f"FileEntry: 'commitSha1'가 문자열이 아님 ({commit_sha1!r})")
    return FileEntry(
        short_class_name=_require_str(payload, "shortClassName", "FileEntry"),
        project_name=_require_str(payload, "projectName", "FileEntry"),
        file_location=_require_str(payload, "fileLocation", "FileEntry"),
        commit_sha1=commit_sha1,
    )


def parse_reference_page(payload: Any) -> list[ReferenceEntry]:
    if not isinstance(payload, list):
        raise MalformedResponseError("참조 목록 응답이 리스트가 아님")
    return [parse_reference_entry(item) for item in payload]


@dataclass(frozen=True)
class Breadcrumb:
    """네비게이션 스택 항목. scope가 None이면 루트(집계 보기)."""
    label: str
    scope: FunctionReference | None = None

    @property
    def is_root(self) -> bool:
        return self.scope is None


@dataclass(frozen=True)
class ReferenceRow:
    """참조 테이블의 한 행 (표시용으로 이스케이프 완료)"""
    class_name: str
    detail: str
    owner_project: str
    dashboard_url: str
    code_url: str
    is_function: bool = True

    def to_dict(self) -> dict:
        return {
            "class_name": self.class_name,
            "detail": self.detail,
            "owner_project": self.owner_project,
            "dashboard_url": self.dashboard_url,
            "code_url": self.code_url,
            "is_function": self.is_function,
        }


def escape_text(text: str) -> str:
    """마크업 문자를 텍스트로 표시되도록 이스케이프"""
    return html.escape(text, quote=True)


@dataclass(frozen=True)
class TriggerInformation:
    """GetTriggerInformation 응답"""
    can_build: bool = False

    @classmethod
    def from_payload(cls, payload: Any) -> TriggerInformation:
        can_build = _require(payload, "can_build", "TriggerInformation")
        if not isinstance(can_build, bool):
            raise MalformedResponseError(f"TriggerInformation: 'can_build'가 bool이 아님 ({can_build!r})")
        return cls(can_build=can_build)
