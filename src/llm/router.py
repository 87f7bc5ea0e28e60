"""LLM Router: 폴백 + 모델 선택.

모든 LLM 호출의 단일 진입점.
provider를 직접 호출하지 말고, 항상 이 Router를 통해 호출한다.

사용법:
    from llm.config import LlmConfig
    from llm.router import LlmRouter

    config = LlmConfig(work_dir=Path("./logs"))
    router = LlmRouter(config)

    # 자동 폴백 (Ollama → Gemini)
    response = await router.call(prompt)

    # 특정 모델 지정
    response = await router.call(
        prompt,
        force_provider="ollama",
        force_model="qwen2.5:14b-instruct"
    )
"""

import asyncio
import logging
import time
from typing import Optional

from .config import LlmConfig
from .providers.base import (
    BaseLlmProvider,
    LlmProviderError,
    LlmResponse,
    LlmUnavailableError,
)
from .providers.gemini_provider import GeminiProvider
from .providers.ollama import OllamaProvider
from .usage_tracker import UsageTracker

_logger = logging.getLogger(__name__)


class LlmRouter:
    """LLM 호출 단일 진입점."""

    # is_available() 캐시 TTL (초).
    # Ollama(HTTP 3s) 체크를 배치마다 반복하지 않기 위해 캐시한다.
    _AVAIL_TTL_OK = 120    # 사용 가능 → 2분간 재확인 안 함
    _AVAIL_TTL_FAIL = 30   # 사용 불가 → 30초간 재확인 안 함

    def __init__(
        self,
        config: Optional[LlmConfig] = None,
        providers: Optional[list[BaseLlmProvider]] = None,
    ):
        self.config = config or LlmConfig()
        self.usage_tracker = UsageTracker(self.config)

        # 우선순위 순서 (로컬 무료 → 클라우드)
        self.providers: list[BaseLlmProvider] = providers or [
            OllamaProvider(self.config),          # 1순위: 무료 (로컬)
            GeminiProvider(self.config),          # 2순위: 저렴
        ]

        # is_available() 캐시: {provider_id: (결과, 타임스탬프)}
        self._avail_cache: dict[str, tuple[bool, float]] = {}

    async def is_available_cached(self, provider: BaseLlmProvider) -> bool:
        """is_available() 결과를 캐싱하여 반환."""
        pid = provider.provider_id
        cached = self._avail_cache.get(pid)
        if cached:
            ok, ts = cached
            ttl = self._AVAIL_TTL_OK if ok else self._AVAIL_TTL_FAIL
            if time.monotonic() - ts < ttl:
                return ok

        try:
            ok = await provider.is_available()
        except Exception as e:
            _logger.warning("%s 가용성 확인 실패: %s", pid, e)
            ok = False
        self._avail_cache[pid] = (ok, time.monotonic())
        return ok

    def invalidate_cache(self, provider_id: Optional[str] = None):
        """가용성 캐시를 무효화한다. 설정 변경 시 호출."""
        if provider_id:
            self._avail_cache.pop(provider_id, None)
        else:
            self._avail_cache.clear()

    def _get_provider(self, provider_id: str) -> Optional[BaseLlmProvider]:
        """provider_id로 provider 객체를 찾는다."""
        for p in self.providers:
            if p.provider_id == provider_id:
                return p
        return None

    async def call(
        self,
        prompt: str,
        *,
        system: Optional[str] = None,
        force_provider: Optional[str] = None,
        force_model: Optional[str] = None,
        purpose: str = "kanjify",
        max_tokens: int = 8192,
        **kwargs,
    ) -> LlmResponse:
        """LLM 호출. 자동 폴백 또는 명시적 모델 선택.

        기본 동작: 우선순위에 따라 provider를 순서대로 시도.
        monthly_budget_usd를 넘긴 달에는 유료 provider(is_paid)를 건너뛴다.

        모델 선택 옵션:
            force_provider: 특정 provider만 사용
            force_model: 특정 모델 지정 (force_provider와 함께 사용)
        """
        # ── 명시적 선택 모드 ──
        if force_provider:
            provider = self._get_provider(force_provider)
            if not provider:
                available = [p.provider_id for p in self.providers]
                raise LlmProviderError(
                    f"provider '{force_provider}'을(를) 찾을 수 없습니다. "
                    f"사용 가능: {available}"
                )
            if not await self.is_available_cached(provider):
                raise LlmUnavailableError(
                    f"provider '{force_provider}'이(가) 현재 사용할 수 없습니다."
                )

            response = await provider.call(
                prompt, system=system, model=force_model,
                max_tokens=max_tokens, purpose=purpose, **kwargs,
            )
            self.usage_tracker.log(response, purpose=purpose)
            return response

        # ── 자동 폴백 모드 ──
        # 1단계: 모든 프로바이더의 가용성을 병렬로 사전 체크 (캐시 활용).
        avail_results = await asyncio.gather(
            *[self.is_available_cached(p) for p in self.providers],
            return_exceptions=True,
        )

        # 월 예산을 넘겼으면 유료 provider는 건너뛴다
        over_budget = self.usage_tracker.over_budget()

        # 2단계: 사용 가능한 프로바이더만 우선순위대로 호출
        errors = []
        for provider, ok in zip(self.providers, avail_results):
            if ok is not True:
                errors.append(f"{provider.provider_id}: 사용 불가")
                continue
            if provider.is_paid and over_budget:
                _logger.warning("월 예산 초과, 유료 provider 건너뜀: %s", provider.provider_id)
                errors.append(f"{provider.provider_id}: 월 예산 초과")
                continue
            try:
                response = await provider.call(
                    prompt, system=system, max_tokens=max_tokens,
                    purpose=purpose, **kwargs,
                )
                self.usage_tracker.log(response, purpose=purpose)
                return response

            except LlmProviderError as e:
                # 호출 실패 시 캐시 무효화 (다음에 재체크)
                self._avail_cache.pop(provider.provider_id, None)
                _logger.warning("%s 호출 실패, 다음 provider 시도: %s",
                                provider.provider_id, e)
                errors.append(f"{provider.provider_id}: {e}")
                continue

        raise LlmUnavailableError(
            "사용 가능한 LLM provider가 없습니다.\n"
            "확인 사항:\n"
            "  1. Ollama: ollama serve\n"
            "  2. API 키: .env에 GOOGLE_API_KEY\n\n"
            "시도 결과:\n" + "\n".join(f"  - {e}" for e in errors)
        )

    async def get_status(self) -> dict:
        """각 provider의 가용 상태. CLI 시작 시 출력한다."""
        status = {}
        for provider in self.providers:
            avail = await self.is_available_cached(provider)
            info = {
                "available": avail,
                "display_name": provider.display_name,
            }
            if isinstance(provider, OllamaProvider) and avail:
                try:
                    info["models"] = await provider.list_models()
                except LlmProviderError as e:
                    info["error"] = str(e)
            status[provider.provider_id] = info
        return status
