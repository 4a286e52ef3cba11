"""대시보드 - FastAPI 기반 뷰 상태 API

로그 영역, 트리거 게이트, 참조 브라우저 상태를 JSON으로 내보내고
사용자 액션(빌드 트리거, 드릴다운, 뒤로 가기)을 받는다.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from fastapi import FastAPI
from pydantic import BaseModel, Field

from .models import FunctionReference

if TYPE_CHECKING:
    from .session import ProjectSession


class FunctionReferenceRequest(BaseModel):
    """POST /api/references/open 요청 바디."""
    id: str
    class_name: str
    function_signature: str
    external_reference_count: int = Field(default=0, ge=0)

    def to_model(self) -> FunctionReference:
        return FunctionReference(
            id=self.id,
            class_name=self.class_name,
            function_signature=self.function_signature,
            external_reference_count=self.external_reference_count,
        )


def create_app(session: ProjectSession, *, manage_session: bool = True) -> FastAPI:
    """FastAPI 앱을 생성하고 라우트를 등록한다.

    manage_session이 참이면 앱 수명주기에 맞춰 세션을 연결/종료한다.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if manage_session:
            await session.connect()
        try:
            yield
        finally:
            if manage_session:
                await session.close()

    app = FastAPI(
        title="detective dashboard",
        docs_url=None,
        redoc_url=None,
        lifespan=lifespan,
    )

    # --- 잡 로그 / 빌드 ---

    @app.get("/api/status")
    async def get_status():
        return session.status()

    @app.get("/api/log")
    async def get_log():
        return {"lines": session.log_view.lines}

    @app.post("/api/build")
    async def trigger_build():
        issued = await session.gate.trigger()
        return {"ok": issued, "can_trigger": session.gate.can_trigger}

    @app.post("/api/permission")
    async def refresh_permission():
        can_trigger = await session.gate.refresh_permission()
        return {"can_trigger": can_trigger}

    # --- 참조 브라우저 ---

    @app.get("/api/references")
    async def get_references():
        return session.references.to_dict()

    @app.post("/api/references/open")
    async def open_references(body: FunctionReferenceRequest):
        await session.references.open_function(body.to_model())
        return session.references.to_dict()

    @app.post("/api/references/back")
    async def references_back():
        await session.references.back()
        return session.references.to_dict()

    @app.post("/api/references/root")
    async def references_root():
        session.references.show_aggregate()
        return session.references.to_dict()

    return app
