"""LLM 기반 한자화: 말뭉치에서 찾지 못한 줄의 마지막 단계.

LlmRouter를 통해 가나 줄을 배치로 보내고,
응답의 <string line="N">...</string>을 다시 읽어 들인다.

모델 출력은 믿지 않는다. 변수·줄바꿈·제어 표지 순서열이 원문과 다르면 버린다.
배치 하나가 실패해도 전체 작업은 계속되며, 그 배치의 줄은 failed_lines에 남는다.

사용법:
    from conversion.kanjify_llm import kanjify_entries
    from llm.router import LlmRouter

    result = await kanjify_entries(entries, LlmRouter(config), batch_size=100)
    print(result.conversion_rate)
"""

from __future__ import annotations

import asyncio
import logging
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, Optional, Sequence

import yaml

from llm.providers.base import LlmProviderError, LlmUnavailableError
from llm.router import LlmRouter

from .tokenizer import structural_signature, tokenize

logger = logging.getLogger(__name__)

RESPONSE_LINE_RE = re.compile(r'<string line="(\d+)">(.*?)</string>')

DEFAULT_BATCH_SIZE = 100
DEFAULT_MAX_RETRIES = 2
DEFAULT_RETRY_DELAY = 2.0


def _load_prompt() -> dict:
    """한자화 프롬프트를 로드한다."""
    prompt_path = (
        Path(__file__).parent.parent / "llm" / "prompts" / "kanjify.yaml"
    )
    with open(prompt_path, encoding="utf-8") as f:
        return yaml.safe_load(f)


@dataclass
class KanjifyResult:
    """배치 한자화 결과.

    converted: 검증을 통과하고 실제로 바뀐 줄 {줄 번호: 새 문자열}.
    rejected: 구조가 깨져 버린 모델 출력 {줄 번호: 모델 출력}.
    unchanged_lines: 모델이 그대로 돌려준 줄.
    failed_lines: 호출 실패 또는 응답에 빠진 줄.
    """

    total: int = 0
    converted: dict[int, str] = field(default_factory=dict)
    rejected: dict[int, str] = field(default_factory=dict)
    unchanged_lines: list[int] = field(default_factory=list)
    failed_lines: list[int] = field(default_factory=list)
    batches: int = 0

    @property
    def conversion_rate(self) -> float:
        if self.total == 0:
            return 0.0
        return len(self.converted) / self.total

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "converted": len(self.converted),
            "rejected": len(self.rejected),
            "unchanged": len(self.unchanged_lines),
            "failed": len(self.failed_lines),
            "batches": self.batches,
            "conversion_rate": round(self.conversion_rate, 4),
        }


def build_batch_prompt(entries: Sequence[tuple[int, str]], template: str) -> str:
    """배치 입력을 프롬프트 템플릿에 채운다."""
    lines = "\n".join(
        f'<string line="{line_no}">{text}</string>' for line_no, text in entries
    )
    return template.format(entries=lines, count=len(entries))


def parse_batch_response(text: str) -> dict[int, str]:
    """모델 응답에서 {줄 번호: 변환 문자열}을 뽑는다.

    같은 번호가 여러 번 나오면 처음 것을 쓴다. 형식이 다른 줄은 무시.
    """
    results: dict[int, str] = {}
    for m in RESPONSE_LINE_RE.finditer(text):
        results.setdefault(int(m.group(1)), m.group(2))
    return results


def validate_conversion(original: str, converted: str) -> bool:
    """모델 출력이 원문 구조를 지켰는지 확인한다.

    빈 출력, 또는 {XX} 변수·\\\\n 줄바꿈·\\\\c·\\\\r 제어 표지의 순서열이 원문과 다른 출력은 거부.
    """
    if not converted.strip():
        return False
    return structural_signature(tokenize(original)) == structural_signature(tokenize(converted))


async def _call_with_retry(
    router: LlmRouter,
    prompt: str,
    system: str,
    *,
    max_retries: int,
    retry_delay: float,
    force_provider: Optional[str],
    force_model: Optional[str],
) -> Optional[str]:
    """한 배치를 호출한다. 실패하면 retry_delay × 시도 횟수만큼 쉬고 다시 시도.

    출력: 응답 텍스트. 모든 시도가 실패하면 None.
    """
    for attempt in range(max_retries + 1):
        try:
            response = await router.call(
                prompt,
                system=system,
                force_provider=force_provider,
                force_model=force_model,
                purpose="kanjify",
            )
            return response.text
        except (LlmProviderError, LlmUnavailableError) as e:
            if attempt >= max_retries:
                logger.warning("배치 호출 포기 (%d회 시도): %s", attempt + 1, e)
                return None
            delay = retry_delay * (attempt + 1)
            logger.warning("배치 호출 실패, %.1f초 후 재시도 (%d/%d): %s",
                           delay, attempt + 1, max_retries, e)
            await asyncio.sleep(delay)
    return None


async def kanjify_entries(
    entries: Sequence[tuple[int, str]],
    router: LlmRouter,
    *,
    batch_size: int = DEFAULT_BATCH_SIZE,
    max_retries: int = DEFAULT_MAX_RETRIES,
    retry_delay: float = DEFAULT_RETRY_DELAY,
    force_provider: Optional[str] = None,
    force_model: Optional[str] = None,
    progress_callback: Optional[Callable[[dict], None]] = None,
) -> KanjifyResult:
    """찾지 못한 줄들을 LLM으로 한자화한다.

    입력:
        entries: (줄 번호, 원문) 목록. 줄 번호는 문서 안에서 유일해야 한다.
        router: LlmRouter 인스턴스.
        batch_size: 한 번에 보낼 줄 수.
        max_retries: 배치당 재시도 횟수.
        progress_callback: 배치가 끝날 때마다
            {"batch", "total_batches", "converted", "total"} dict를 받는다.
    출력: KanjifyResult. LLM 오류로 예외를 던지지 않는다.
    """
    if batch_size < 1:
        raise ValueError(f"batch_size는 1 이상이어야 합니다: {batch_size}")

    prompt_config = _load_prompt()
    result = KanjifyResult(total=len(entries))
    total_batches = (len(entries) + batch_size - 1) // batch_size

    for start in range(0, len(entries), batch_size):
        batch = list(entries[start:start + batch_size])
        result.batches += 1

        prompt = build_batch_prompt(batch, prompt_config["prompt_template"])
        text = await _call_with_retry(
            router,
            prompt,
            prompt_config["system"],
            max_retries=max_retries,
            retry_delay=retry_delay,
            force_provider=force_provider,
            force_model=force_model,
        )

        if text is None:
            result.failed_lines.extend(line_no for line_no, _ in batch)
        else:
            parsed = parse_batch_response(text)
            logger.info("배치 %d/%d: %d줄 중 %d줄 응답",
                        result.batches, total_batches, len(batch), len(parsed))
            for line_no, original in batch:
                converted = parsed.get(line_no)
                if converted is None:
                    result.failed_lines.append(line_no)
                elif not validate_conversion(original, converted):
                    result.rejected[line_no] = converted
                elif converted == original:
                    result.unchanged_lines.append(line_no)
                else:
                    result.converted[line_no] = converted

        if progress_callback:
            progress_callback({
                "batch": result.batches,
                "total_batches": total_batches,
                "converted": len(result.converted),
                "total": result.total,
            })

    return result
