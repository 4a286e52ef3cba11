"""클라이언트 설정 - 환경변수 + .env"""

from __future__ import annotations

import os
from dataclasses import dataclass

from .log_tail import POLL_INTERVAL_SECONDS
from .references import DEFAULT_CODE_HOST_URL

DEFAULT_RPC_URL = "http://localhost:8080/eventbus"
DEFAULT_DASHBOARD_URL = "http://localhost:8080/project/"
DEFAULT_DASHBOARD_HOST = "127.0.0.1"
DEFAULT_DASHBOARD_PORT = 8043


class ConfigurationError(Exception):
    """설정 오류 예외

    필수 환경변수 누락이나 잘못된 값일 때 발생합니다.
    """

    def __init__(self, missing_vars: list[str], invalid: list[str] | None = None):
        self.missing_vars = missing_vars
        self.invalid = invalid or []
        parts = []
        if missing_vars:
            parts.append(f"필수 환경변수가 설정되지 않았습니다: {', '.join(missing_vars)}")
        if self.invalid:
            parts.append(f"잘못된 값: {', '.join(self.invalid)}")
        super().__init__("; ".join(parts))


def _parse_bool(value: str | None, default: bool = False) -> bool:
    """문자열을 bool로 변환"""
    if value is None:
        return default
    return value.lower() == "true"


def _with_trailing_slash(url: str) -> str:
    return url if url.endswith("/") else url + "/"


@dataclass(frozen=True)
class ClientConfig:
    """대시보드 클라이언트 설정"""

    repository: str
    rpc_url: str = DEFAULT_RPC_URL
    rpc_token: str = ""
    dashboard_url: str = DEFAULT_DASHBOARD_URL
    code_host_url: str = DEFAULT_CODE_HOST_URL
    poll_interval: float = POLL_INTERVAL_SECONDS
    dashboard_host: str = DEFAULT_DASHBOARD_HOST
    dashboard_port: int = DEFAULT_DASHBOARD_PORT
    debug: bool = False


def load_config(environ: dict[str, str] | None = None) -> ClientConfig:
    """환경변수에서 설정을 읽는다.

    Raises:
        ConfigurationError: 필수 환경변수 누락 또는 숫자 값 오류
    """
    env = os.environ if environ is None else environ

    missing = []
    invalid = []

    repository = env.get("DETECTIVE_REPOSITORY", "").strip()
    if not repository:
        missing.append("DETECTIVE_REPOSITORY")

    raw_interval = env.get("DETECTIVE_LOG_POLL_INTERVAL")
    poll_interval = POLL_INTERVAL_SECONDS
    if raw_interval:
        try:
            poll_interval = float(raw_interval)
            if poll_interval <= 0:
                invalid.append(f"DETECTIVE_LOG_POLL_INTERVAL={raw_interval}")
        except ValueError:
            invalid.append(f"DETECTIVE_LOG_POLL_INTERVAL={raw_interval}")

    raw_port = env.get("DETECTIVE_DASHBOARD_PORT")
    dashboard_port = DEFAULT_DASHBOARD_PORT
    if raw_port:
        try:
            dashboard_port = int(raw_port)
        except ValueError:
            invalid.append(f"DETECTIVE_DASHBOARD_PORT={raw_port}")

    if missing or invalid:
        raise ConfigurationError(missing, invalid)

    return ClientConfig(
        repository=repository,
        rpc_url=env.get("DETECTIVE_RPC_URL", DEFAULT_RPC_URL),
        rpc_token=env.get("DETECTIVE_RPC_TOKEN", ""),
        dashboard_url=_with_trailing_slash(env.get("DETECTIVE_DASHBOARD_URL", DEFAULT_DASHBOARD_URL)),
        code_host_url=_with_trailing_slash(env.get("DETECTIVE_CODE_HOST_URL", DEFAULT_CODE_HOST_URL)),
        poll_interval=poll_interval,
        dashboard_host=env.get("DETECTIVE_DASHBOARD_HOST", DEFAULT_DASHBOARD_HOST),
        dashboard_port=dashboard_port,
        debug=_parse_bool(env.get("DEBUG"), False),
    )
