"""Gemini Provider (2순위).

Google Gemini API 호출 (google-genai SDK).
로컬 Ollama가 꺼져 있을 때의 대체 경로.

환경변수: GOOGLE_API_KEY
"""

import time
from typing import Optional

from .base import BaseLlmProvider, LlmProviderError, LlmResponse


class GeminiProvider(BaseLlmProvider):
    """Google Gemini API 호출."""

    provider_id = "gemini"
    display_name = "Google Gemini"
    is_paid = True

    # 1K 토큰당 USD
    PRICING = {
        "gemini-2.5-flash": {"input": 0.00015, "output": 0.0006},
        "gemini-2.5-pro": {"input": 0.00125, "output": 0.01},
    }

    @property
    def default_model(self) -> str:
        return self.config.get("gemini_model", "gemini-2.5-flash")

    async def is_available(self) -> bool:
        """GOOGLE_API_KEY가 설정되어 있는지 확인."""
        return bool(self.config.get_api_key("gemini"))

    def _estimate_cost(self, model: str,
                       tokens_in: Optional[int],
                       tokens_out: Optional[int]) -> float:
        """토큰 수로 비용 추정."""
        pricing = self.PRICING.get(
            model, {"input": 0.00015, "output": 0.0006}
        )
        cost = (
            (tokens_in or 0) / 1000 * pricing["input"]
            + (tokens_out or 0) / 1000 * pricing["output"]
        )
        return round(cost, 6)

    async def call(self, prompt, *, system=None, model=None, max_tokens=8192,
                   temperature=None, purpose="kanjify", **kwargs) -> LlmResponse:
        """Gemini API로 텍스트 생성.

        google-genai SDK의 비동기 인터페이스 사용:
          client.aio.models.generate_content()
        """
        from google import genai
        from google.genai import types

        api_key = self.config.get_api_key("gemini")
        if not api_key:
            raise LlmProviderError("GOOGLE_API_KEY가 설정되지 않았습니다.")

        client = genai.Client(api_key=api_key)
        selected_model = model or self.default_model
        if temperature is None:
            temperature = self.config.get_float("kanjify_temperature", 0.1)

        # Gemini는 system_instruction을 별도 파라미터로 받음
        config = types.GenerateContentConfig(
            max_output_tokens=max_tokens,
            temperature=temperature,
        )
        if system:
            config.system_instruction = system

        t0 = time.monotonic()
        try:
            response = await client.aio.models.generate_content(
                model=selected_model,
                contents=prompt,
                config=config,
            )
        except Exception as e:
            # SDK 예외는 모두 provider 오류로 감싼다
            raise LlmProviderError(f"Gemini 호출 실패: {e}") from e
        elapsed = time.monotonic() - t0

        text = response.text or ""
        tokens_in = getattr(response.usage_metadata, "prompt_token_count", None)
        tokens_out = getattr(response.usage_metadata, "candidates_token_count", None)

        return LlmResponse(
            text=text,
            provider=self.provider_id,
            model=selected_model,
            tokens_in=tokens_in,
            tokens_out=tokens_out,
            cost_usd=self._estimate_cost(selected_model, tokens_in, tokens_out),
            elapsed_sec=round(elapsed, 2),
            raw={"model": selected_model},
        )
