"""Ollama Provider (1순위).

Ollama 로컬 서버(localhost:11434)를 통한 LLM 호출.
한자화 기본 모델은 qwen2.5:7b-instruct-q4_K_M (일본어 표기 변환에 충분하고 로컬에서 돈다).

호출 흐름:
    Python → HTTP POST localhost:11434/api/generate
          → Ollama → 로컬 모델
          → 결과 반환
"""

import time

import httpx

from .base import BaseLlmProvider, LlmProviderError, LlmResponse


class OllamaProvider(BaseLlmProvider):
    """Ollama 로컬 서버를 통한 LLM 호출."""

    provider_id = "ollama"
    display_name = "Ollama"

    @property
    def _url(self) -> str:
        return self.config.get("ollama_url", "http://localhost:11434")

    @property
    def default_model(self) -> str:
        return self.config.get("kanjify_model")

    async def is_available(self) -> bool:
        """Ollama 서버가 실행 중인지 확인."""
        try:
            async with httpx.AsyncClient(timeout=3.0) as client:
                resp = await client.get(f"{self._url}/api/tags")
                return resp.status_code == 200
        except (httpx.ConnectError, httpx.TimeoutException, OSError):
            return False

    async def list_models(self) -> list[str]:
        """설치된 모델 이름 목록. CLI 상태 출력에서 사용."""
        try:
            async with httpx.AsyncClient(timeout=5.0) as client:
                resp = await client.get(f"{self._url}/api/tags")
        except httpx.HTTPError as e:
            raise LlmProviderError(f"Ollama 연결 실패: {e}") from e
        data = self._parse_json(resp)
        return [m.get("name", "") for m in data.get("models", [])]

    @staticmethod
    def _parse_json(resp: httpx.Response) -> dict:
        """응답 본문을 JSON으로 읽는다. 프록시 오류 페이지 등은 LlmProviderError."""
        try:
            data = resp.json()
        except ValueError as e:
            raise LlmProviderError(
                f"Ollama 응답 해석 실패: {resp.text[:200]}"
            ) from e
        if not isinstance(data, dict):
            raise LlmProviderError(f"Ollama 응답 형식 오류: {type(data).__name__}")
        return data

    async def call(self, prompt, *, system=None, model=None, max_tokens=8192,
                   temperature=None, purpose="kanjify", **kwargs) -> LlmResponse:
        """Ollama API로 텍스트 생성.

        temperature를 주지 않으면 설정의 kanjify_temperature(기본 0.1)를 쓴다.
        표기 변환은 창의성이 필요 없으므로 낮게 둔다.
        """
        selected_model = model or self.default_model
        if temperature is None:
            temperature = self.config.get_float("kanjify_temperature", 0.1)

        payload = {
            "model": selected_model,
            "prompt": prompt,
            "stream": False,
            # num_predict: Ollama의 최대 출력 토큰 설정.
            # 이 값이 없으면 모델 기본값(128~256)이 적용되어
            # 100줄 배치 응답이 중간에 잘린다.
            "options": {
                "num_predict": max_tokens,
                "temperature": temperature,
            },
        }
        if system:
            payload["system"] = system

        t0 = time.monotonic()
        try:
            async with httpx.AsyncClient(timeout=300.0) as client:
                resp = await client.post(
                    f"{self._url}/api/generate", json=payload
                )
        except httpx.HTTPError as e:
            raise LlmProviderError(f"Ollama 연결 실패: {e}") from e
        if resp.status_code != 200:
            raise LlmProviderError(
                f"Ollama 응답 {resp.status_code}: {resp.text[:200]}"
            )
        data = self._parse_json(resp)
        elapsed = time.monotonic() - t0

        if data.get("error"):
            raise LlmProviderError(f"Ollama 에러: {data['error']}")

        return LlmResponse(
            text=data.get("response", ""),
            provider=self.provider_id,
            model=selected_model,
            tokens_in=data.get("prompt_eval_count"),
            tokens_out=data.get("eval_count"),
            cost_usd=0.0,
            elapsed_sec=round(elapsed, 2),
            raw=data,
        )
