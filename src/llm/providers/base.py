"""LLM provider 추상 클래스 + 통합 응답 모델.

한자화 배치는 provider 종류와 상관없이 같은 LlmResponse를 받는다.
router.py가 우선순위에 따라 provider를 골라 부른다.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional


@dataclass
class LlmResponse:
    """provider 공통 응답.

    text에는 모델이 돌려준 <string line="N">...</string> 줄들이 그대로 담긴다.
    """

    text: str
    provider: str                            # "ollama", "gemini"
    model: str                               # 실제 사용된 모델명
    tokens_in: Optional[int] = None
    tokens_out: Optional[int] = None
    cost_usd: Optional[float] = None         # 로컬 모델이면 0.0
    elapsed_sec: Optional[float] = None
    raw: Optional[dict] = None               # provider 원본 응답 (디버깅)
    timestamp: str = field(
        default_factory=lambda: datetime.now().isoformat()
    )

    def to_usage_entry(self, purpose: str = "") -> dict:
        """사용량 로그(JSONL) 한 줄."""
        return {
            "ts": datetime.now(timezone.utc).isoformat(),
            "type": "call",
            "provider": self.provider,
            "model": self.model,
            "tokens_in": self.tokens_in,
            "tokens_out": self.tokens_out,
            "cost_usd": self.cost_usd or 0.0,
            "elapsed_sec": self.elapsed_sec,
            "purpose": purpose,
        }


class LlmProviderError(Exception):
    """provider 하나의 호출 실패. router는 다음 provider로 넘어간다."""


class LlmUnavailableError(Exception):
    """쓸 수 있는 provider가 하나도 없음."""


class BaseLlmProvider(ABC):
    """LLM provider 추상 클래스.

    is_paid=True인 provider는 월 예산을 넘기면 자동 폴백에서 빠진다.
    """

    provider_id: str = ""
    display_name: str = ""
    is_paid: bool = False

    def __init__(self, config):
        self.config = config

    @abstractmethod
    async def is_available(self) -> bool:
        ...

    @abstractmethod
    async def call(
        self,
        prompt: str,
        *,
        system: Optional[str] = None,
        model: Optional[str] = None,
        max_tokens: int = 8192,
        temperature: Optional[float] = None,
        purpose: str = "kanjify",
        **kwargs,
    ) -> LlmResponse:
        """프롬프트 한 번 호출. temperature가 None이면 설정값을 쓴다."""
        ...
