"""detective 진입점 - 설정 로드 후 대시보드 서버 실행"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import uvicorn
from dotenv import load_dotenv

from .config import ConfigurationError, load_config
from .dashboard import create_app
from .session import ProjectSession

logger = logging.getLogger("detective")


def _setup_logging(debug: bool = False) -> None:
    """로깅 설정"""
    logging.basicConfig(
        level=logging.DEBUG if debug else logging.INFO,
        format="[%(asctime)s] detective: [%(levelname)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )


def _load_env() -> None:
    """현재 경로의 .env 파일을 로드하여 환경변수에 반영."""
    env_file = Path.cwd() / ".env"
    if env_file.exists():
        load_dotenv(env_file, override=False)


def main() -> None:
    _load_env()
    try:
        config = load_config()
    except ConfigurationError as e:
        _setup_logging()
        logger.error("설정 오류: %s", e)
        sys.exit(2)

    _setup_logging(config.debug)
    logger.info("대시보드 시작: http://%s:%d (%s)",
                config.dashboard_host, config.dashboard_port, config.repository)

    session = ProjectSession(config)
    app = create_app(session)
    uvicorn.run(
        app,
        host=config.dashboard_host,
        port=config.dashboard_port,
        log_level="warning",
    )


if __name__ == "__main__":
    main()
