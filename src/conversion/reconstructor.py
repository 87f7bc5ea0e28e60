"""재구성기: 찾은 한자 문자열을 원문 구조에 다시 끼워 넣는다.

원문 줄의 화자 접두어, {XX} 변수, \\\\n 줄바꿈, \\\\c·\\\\r 제어 표지는 원래 자리에 그대로 두고,
내용 토큰만 새 문자열로 채운다. 변수·줄바꿈·제어 표지의 순서열은 절대 바뀌지 않는다.

두 가지 방식:
  | 방식 | replacement | 동작 |
  |------|-------------|------|
  | 전체 교체 | str | 내용형을 내용 토큰 길이 비율대로 잘라 배분 |
  | 조각 매핑 | DiffSegment 목록 | apply_mappings()로 바뀐 부분만 교체 |

전체 교체 예:
    원문:  "{00}の\\\\nすなあらし！"   내용 토큰 "の"(1) "すなあらし！"(6)
    교체:  "の砂嵐！" (4자)
    경계:  round(1/7 × 4) = 1  → "の" | "砂嵐！"
    결과:  "{00}の\\\\n砂嵐！"
"""

from __future__ import annotations

import math
from typing import Sequence, Union

from .lcs_diff import Mapping, apply_mappings
from .matcher import MatchKind, MatchResult
from .normalizer import content_form
from .tokenizer import Token, render_tokens, tokenize

Replacement = Union[str, Sequence[Mapping]]


def _round_half_up(value: float) -> int:
    # round()는 은행가 반올림이라 0.5에서 경계가 흔들린다
    return int(math.floor(value + 0.5))


def _distribute(tokens: list[Token], replacement: str) -> str:
    """전체 교체 방식. 내용 토큰에 replacement 내용형을 비례 배분한다."""
    new_content = content_form(replacement)
    weights = [
        len(content_form(t.value)) if t.is_content else 0
        for t in tokens
    ]
    total = sum(weights)

    # 채울 자리가 없으면 뒤에 붙인다
    if total == 0:
        return render_tokens(tokens) + new_content

    last_filled = max(i for i, w in enumerate(weights) if w > 0)
    rep_len = len(new_content)

    parts: list[str] = []
    cumulative = 0
    start = 0
    for i, token in enumerate(tokens):
        weight = weights[i]
        if weight == 0:
            # 구조 토큰, 또는 공백뿐인 내용 토큰
            parts.append(token.value)
            continue
        cumulative += weight
        if i == last_filled:
            end = rep_len
        else:
            end = min(rep_len, _round_half_up(cumulative / total * rep_len))
        parts.append(new_content[start:end])
        start = end

    return "".join(parts)


def reconstruct(tokens: list[Token], replacement: Replacement) -> str:
    """토큰 목록과 교체값으로 새 줄을 만든다.

    입력:
        tokens: tokenize(raw)의 결과.
        replacement: 한자 원문(str) 또는 매핑 목록.
    출력: 재구성된 줄. structural_signature는 입력과 같다.
    """
    if isinstance(replacement, str):
        return _distribute(tokens, replacement)
    return apply_mappings(render_tokens(tokens), replacement)


def reconstruct_match(raw_line: str, result: MatchResult) -> str:
    """MatchResult를 원문 줄에 적용한다. 찾지 못한 결과면 원문 그대로."""
    if result.kind == MatchKind.EXACT:
        return reconstruct(tokenize(raw_line), result.replacement)

    if result.kind == MatchKind.SEGMENTED:
        raw_segments = raw_line.split(result.delimiter)
        rebuilt: list[str] = []
        for raw_segment, replacement in zip(raw_segments, result.segments):
            if replacement == raw_segment:
                rebuilt.append(raw_segment)
            else:
                rebuilt.append(reconstruct(tokenize(raw_segment), replacement))
        return result.delimiter.join(rebuilt)

    return raw_line
