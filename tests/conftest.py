"""Pytest 설정"""

import sys
from pathlib import Path

from dotenv import load_dotenv

# .env 로드 (DETECTIVE_* 등)
load_dotenv()

# src 경로 추가
sys.path.insert(0, str(Path(__file__).parent.parent / "src"))
