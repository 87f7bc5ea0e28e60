"""LLM 설정 관리.

설정 우선순위: 환경변수 → 작업 디렉토리 .env → 프로젝트 루트 .env → 기본값.
"""

import os
from pathlib import Path
from typing import Optional


class LlmConfig:
    """LLM 설정 관리.

    사용법:
        config = LlmConfig(work_dir=Path("./logs"))
        model = config.get("kanjify_model")
        batch_size = config.get_int("kanjify_batch_size")
    """

    DEFAULTS = {
        "ollama_url": "http://localhost:11434",
        "kanjify_model": "qwen2.5:7b-instruct-q4_K_M",
        "gemini_model": "gemini-2.5-flash",
        "kanjify_batch_size": 100,
        "kanjify_max_retries": 2,
        "kanjify_temperature": 0.1,
        "monthly_budget_usd": 10.0,
    }

    # 환경변수명 매핑
    API_KEY_ENV = {
        "gemini": "GOOGLE_API_KEY",
    }

    def __init__(self, work_dir: Optional[Path] = None):
        self._work_dir = Path(work_dir) if work_dir else None
        self._env_cache: dict = {}

        # 작업 디렉토리 .env가 프로젝트 루트 .env의 값을 덮어쓴다.
        # → API 키는 프로젝트 루트에, 실행별 설정은 작업 디렉토리 .env에.
        project_root = Path(__file__).resolve().parent.parent.parent  # src/llm/config.py → 프로젝트 루트
        project_env = project_root / ".env"
        if project_env.exists():
            self._env_cache = self._load_dotenv(project_env)

        if self._work_dir:
            work_env = self._work_dir / ".env"
            if work_env.exists():
                self._env_cache.update(self._load_dotenv(work_env))

    @property
    def work_dir(self) -> Path:
        """사용량 로그 등을 남길 디렉토리. 지정하지 않으면 현재 디렉토리."""
        return self._work_dir or Path.cwd()

    def _load_dotenv(self, path: Path) -> dict:
        """간단한 .env 파서. python-dotenv 없이 동작."""
        result = {}
        for line in path.read_text(encoding="utf-8").splitlines():
            line = line.strip()
            if not line or line.startswith("#"):
                continue
            if "=" not in line:
                continue
            key, _, value = line.partition("=")
            key = key.strip()
            value = value.strip().strip("'\"")
            result[key] = value
        return result

    def get_api_key(self, provider: str) -> Optional[str]:
        """API 키 조회. 환경변수 → .env → None."""
        env_name = self.API_KEY_ENV.get(provider)
        if not env_name:
            return None
        return os.environ.get(env_name) or self._env_cache.get(env_name)

    def get(self, key: str, default=None):
        """설정값 조회. 환경변수(대문자) → .env → DEFAULTS → default."""
        env_key = key.upper()
        val = os.environ.get(env_key) or self._env_cache.get(env_key)
        if val is not None:
            return val
        return self.DEFAULTS.get(key, default)

    def get_int(self, key: str, default: int = 0) -> int:
        """정수 설정값. 환경변수·.env 값은 문자열이므로 변환한다."""
        return int(self.get(key, default))

    def get_float(self, key: str, default: float = 0.0) -> float:
        return float(self.get(key, default))
