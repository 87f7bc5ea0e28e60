"""LLM 한자화 대상 판별.

말뭉치에서 찾지 못한 줄 중 모델에 넘길 가치가 있는 줄만 고른다.
가타카나 고유명사, 영숫자 코드, 이미 한자가 섞인 줄은 제외한다.
"""

from __future__ import annotations

import re

from .normalizer import canonicalize

_HIRAGANA_RE = re.compile(r"[ぁ-ん]")
_KATAKANA_RE = re.compile(r"[ァ-ヶ]")
_KANJI_RE = re.compile(r"[一-龯々]")
_ROMAN_RE = re.compile(r"[a-zA-Z0-9]")

MIN_LENGTH = 3
MIN_HIRAGANA = 3
MAX_KATAKANA_RATIO = 0.8
MAX_ROMAN_RATIO = 0.5


def needs_kanjification(text: str) -> bool:
    """정규형 기준으로 한자화가 필요한 줄인지 판별한다.

    False인 경우:
      - 정규형이 3자 미만
      - 한자가 한 글자라도 있음
      - 가타카나 비율 > 0.8 (포켓몬 이름, 기술명)
      - 영숫자 비율 > 0.5
      - 히라가나 3자 미만
    """
    canonical = canonicalize(text)
    total = len(canonical)
    if total < MIN_LENGTH:
        return False

    if _KANJI_RE.search(canonical):
        return False
    if len(_KATAKANA_RE.findall(canonical)) / total > MAX_KATAKANA_RATIO:
        return False
    if len(_ROMAN_RE.findall(canonical)) / total > MAX_ROMAN_RATIO:
        return False
    return len(_HIRAGANA_RE.findall(canonical)) >= MIN_HIRAGANA
