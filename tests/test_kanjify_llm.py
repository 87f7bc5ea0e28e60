"""kanjify_llm 테스트: 배치 프롬프트, 응답 검증, 재시도.

실제 모델 대신 입력 프롬프트를 보고 응답을 만드는 mock provider를 쓴다.
"""

import re
from typing import Callable, Optional

import pytest

from conversion.kanjify_llm import (
    KanjifyResult,
    _load_prompt,
    build_batch_prompt,
    kanjify_entries,
    parse_batch_response,
    validate_conversion,
)
from llm.config import LlmConfig
from llm.providers.base import BaseLlmProvider, LlmProviderError, LlmResponse
from llm.router import LlmRouter

# 모의 "모델"이 아는 표기
DICTIONARY = {
    "まだ　ここに　いるの？": "まだ　此処に　居るの？",
    "{00}は\\nげんき？": "{00}は\\n元気？",
    "ありがとう": "ありがとう",
    "こわれる{00}": "壊れる",
}

_INPUT_RE = re.compile(r'<string line="(\d+)">(.*?)</string>')


def dictionary_responder(prompt: str) -> str:
    out = []
    for line_no, text in _INPUT_RE.findall(prompt):
        if text in DICTIONARY:
            out.append(f'<string line="{line_no}">{DICTIONARY[text]}</string>')
    return "\n".join(out)


class ScriptedProvider(BaseLlmProvider):
    """responder(prompt)로 응답을 만든다. fail_times만큼은 먼저 실패한다."""

    provider_id = "scripted"
    display_name = "Scripted"

    def __init__(self, config, responder: Callable[[str], str], fail_times: int = 0):
        super().__init__(config)
        self._responder = responder
        self._fail_times = fail_times
        self.call_count = 0
        self.prompts: list[str] = []

    async def is_available(self) -> bool:
        return True

    async def call(self, prompt, *, system: Optional[str] = None, model=None,
                   max_tokens=8192, temperature=None, purpose="kanjify", **kwargs):
        self.call_count += 1
        self.prompts.append(prompt)
        if self.call_count <= self._fail_times:
            raise LlmProviderError("일시적 오류")
        return LlmResponse(text=self._responder(prompt), provider=self.provider_id,
                           model=model or "scripted-model")


def _router(tmp_path, provider):
    return LlmRouter(LlmConfig(work_dir=tmp_path), providers=[provider])


class TestPromptHelpers:

    def test_prompt_yaml_keys(self):
        prompt = _load_prompt()
        assert "system" in prompt
        assert "{entries}" in prompt["prompt_template"]

    def test_build_batch_prompt(self):
        prompt = build_batch_prompt(
            [(3, "げんき？"), (7, "{00}は\\nどこ？")],
            "N={count}\n{entries}",
        )
        assert prompt == 'N=2\n<string line="3">げんき？</string>\n<string line="7">{00}は\\nどこ？</string>'

    def test_parse_response_first_wins(self):
        text = (
            "Here you go:\n"
            '<string line="3">元気？</string>\n'
            '<string line="3">重複</string>\n'
            "<string>번호 없음</string>\n"
        )
        assert parse_batch_response(text) == {3: "元気？"}


class TestValidateConversion:

    @pytest.mark.parametrize("original,converted,ok", [
        ("{00}は\\nげんき？", "{00}は\\n元気？", True),
        ("{00}は\\nげんき？", "は\\n元気？", False),
        ("{00}は\\nげんき？", "{00}は元気？", False),
        ("{00}{01}あ", "{01}{00}亜", False),
        ("げんき", "   ", False),
        ("げんき", "元気", True),
    ])
    def test_structure_must_match(self, original, converted, ok):
        assert validate_conversion(original, converted) is ok


class TestKanjifyEntries:

    ENTRIES = [
        (4, "まだ　ここに　いるの？"),
        (9, "{00}は\\nげんき？"),
        (12, "ありがとう"),
        (15, "こわれる{00}"),
        (20, "しらない"),
    ]

    @pytest.mark.asyncio
    async def test_sorts_lines_by_outcome(self, tmp_path):
        provider = ScriptedProvider(LlmConfig(), dictionary_responder)
        result = await kanjify_entries(self.ENTRIES, _router(tmp_path, provider), retry_delay=0)

        assert result.converted == {
            4: "まだ　此処に　居るの？",
            9: "{00}は\\n元気？",
        }
        assert result.unchanged_lines == [12]
        assert result.rejected == {15: "壊れる"}
        assert result.failed_lines == [20]
        assert result.total == 5
        assert result.batches == 1
        assert result.conversion_rate == pytest.approx(0.4)

    @pytest.mark.asyncio
    async def test_batches(self, tmp_path):
        provider = ScriptedProvider(LlmConfig(), dictionary_responder)
        result = await kanjify_entries(
            self.ENTRIES, _router(tmp_path, provider), batch_size=2, retry_delay=0,
        )
        assert provider.call_count == 3
        assert result.batches == 3
        assert '<string line="20">' in provider.prompts[-1]
        assert '<string line="4">' not in provider.prompts[-1]

    @pytest.mark.asyncio
    async def test_retry_then_success(self, tmp_path):
        provider = ScriptedProvider(LlmConfig(), dictionary_responder, fail_times=2)
        result = await kanjify_entries(
            self.ENTRIES[:1], _router(tmp_path, provider), max_retries=2, retry_delay=0,
        )
        assert provider.call_count == 3
        assert 4 in result.converted

    @pytest.mark.asyncio
    async def test_failed_batch_does_not_raise(self, tmp_path):
        provider = ScriptedProvider(LlmConfig(), dictionary_responder, fail_times=100)
        result = await kanjify_entries(
            self.ENTRIES, _router(tmp_path, provider),
            batch_size=3, max_retries=1, retry_delay=0,
        )
        assert result.failed_lines == [4, 9, 12, 15, 20]
        assert result.converted == {}
        assert provider.call_count == 4

    @pytest.mark.asyncio
    async def test_progress_callback(self, tmp_path):
        seen = []
        provider = ScriptedProvider(LlmConfig(), dictionary_responder)
        await kanjify_entries(
            self.ENTRIES, _router(tmp_path, provider),
            batch_size=2, retry_delay=0, progress_callback=seen.append,
        )
        assert [p["batch"] for p in seen] == [1, 2, 3]
        assert all(p["total_batches"] == 3 for p in seen)
        assert seen[-1]["converted"] == 2
        assert seen[-1]["total"] == 5

    @pytest.mark.asyncio
    async def test_empty_entries(self, tmp_path):
        provider = ScriptedProvider(LlmConfig(), dictionary_responder)
        result = await kanjify_entries([], _router(tmp_path, provider))
        assert result == KanjifyResult()
        assert provider.call_count == 0

    @pytest.mark.asyncio
    async def test_invalid_batch_size(self, tmp_path):
        provider = ScriptedProvider(LlmConfig(), dictionary_responder)
        with pytest.raises(ValueError):
            await kanjify_entries(self.ENTRIES, _router(tmp_path, provider), batch_size=0)
