"""매칭 엔진: 원문 한 줄을 말뭉치 색인에서 찾는다.

전략을 우선순위대로 시도하고, 처음 성공한 결과를 반환한다.

  | 순서 | 전략 | 조건 |
  |------|------|------|
  | 1 | exact | 줄 전체 정규형이 색인에 있음 |
  | 2 | multi_segment | \\\\n\\\\n 으로 나눈 모든 조각이 색인에 있음 |
  | 3 | line_segment | \\\\n 으로 나눈 모든 조각(최대 10개)이 색인에 있음 |
  | 4 | short_prefix | 두 조각 중 앞이 20자 미만이고 뒤 조각이 색인에 있음 |
  | 5 | fuzzy | 긴 줄에서 긴 색인 키들이 정규형의 60% 이상을 덮음 |

찾지 못하는 것은 오류가 아니라 흔한 결과다. match()는 예외를 던지지 않는다.

사용법:
    from conversion.matcher import match

    result = match("{00}の\\\\nすなあらし！", index)
    if result.found:
        print(result.strategy, result.text)
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import Optional

from .corpus_index import CorpusIndex
from .normalizer import DOUBLE_BREAK, LINE_BREAK, canonicalize

logger = logging.getLogger(__name__)

MAX_LINE_SEGMENTS = 10
SHORT_PREFIX_MAX_LEN = 20
FUZZY_MIN_LINE_LEN = 50
FUZZY_MIN_KEY_LEN = 20
FUZZY_MIN_COVERAGE = 0.6


class MatchKind(str, Enum):
    """결과 형태. exact는 줄 전체 교체, segmented는 조각별 교체."""

    EXACT = "exact"
    SEGMENTED = "segmented"
    NO_MATCH = "no_match"


class MatchStrategy(str, Enum):
    """어느 전략이 성공했는지. 호출자가 통계를 낼 때 쓴다."""

    EXACT = "exact"
    MULTI_SEGMENT = "multi_segment"
    LINE_SEGMENT = "line_segment"
    SHORT_PREFIX = "short_prefix"
    FUZZY = "fuzzy"
    NONE = "none"


@dataclass(frozen=True)
class MatchResult:
    """매칭 결과.

    kind=EXACT: replacement에 한자 원문 하나.
    kind=SEGMENTED: segments[i]가 원문을 delimiter로 나눈 i번째 조각의 교체값.
                    교체하지 않은 조각(빈 조각, short_prefix의 앞 조각)은 원문 그대로.
    kind=NO_MATCH: 나머지 필드는 비어 있다.
    """

    kind: MatchKind
    strategy: MatchStrategy = MatchStrategy.NONE
    replacement: Optional[str] = None
    segments: tuple[str, ...] = field(default_factory=tuple)
    delimiter: Optional[str] = None
    key: Optional[str] = None   # exact 전략일 때 색인 키 (정규형)

    @property
    def found(self) -> bool:
        return self.kind != MatchKind.NO_MATCH

    @property
    def text(self) -> Optional[str]:
        """교체 문자열 전체. 조각 결과는 delimiter로 다시 잇는다."""
        if self.kind == MatchKind.EXACT:
            return self.replacement
        if self.kind == MatchKind.SEGMENTED:
            return self.delimiter.join(self.segments)
        return None

    @classmethod
    def no_match(cls) -> MatchResult:
        return cls(kind=MatchKind.NO_MATCH)

    def to_dict(self) -> dict:
        return {
            "kind": self.kind.value,
            "strategy": self.strategy.value,
            "text": self.text,
        }


# ─── 전략별 구현 ─────────────────────────────────────

def _lookup_segments(
    raw_line: str, delimiter: str, index: CorpusIndex
) -> Optional[list[str]]:
    """delimiter로 나눈 모든 조각을 색인에서 찾는다.

    빈 조각(공백뿐인 조각 포함)은 그대로 둔다.
    하나라도 못 찾거나 찾은 조각이 없으면 None.
    """
    resolved: list[str] = []
    found_any = False
    for segment in raw_line.split(delimiter):
        if not segment.strip():
            resolved.append(segment)
            continue
        replacement = index.get(canonicalize(segment))
        if replacement is None:
            return None
        resolved.append(replacement)
        found_any = True
    return resolved if found_any else None


def _match_short_prefix(raw_line: str, index: CorpusIndex) -> Optional[list[str]]:
    """"{00}の\\\\n<기술명>！" 같은 템플릿 메시지용.

    두 조각이고 앞 조각이 짧으면 뒤 조각만 색인에서 찾는다.
    """
    segments = raw_line.split(LINE_BREAK)
    if len(segments) != 2 or len(segments[0]) >= SHORT_PREFIX_MAX_LEN:
        return None
    replacement = index.get(canonicalize(segments[1]))
    if replacement is None:
        return None
    return [segments[0], replacement]


def _match_fuzzy(canonical: str, index: CorpusIndex) -> Optional[str]:
    """긴 색인 키가 줄 정규형 안에 부분 문자열로 들어 있는지 본다.

    찾은 키 길이 합이 정규형 길이의 60% 이상이면 받아들이고,
    색인 순서상 처음 찾은 항목의 값을 대표로 반환한다.
    여러 조각을 다시 조립하지는 않는다.
    """
    found: list[str] = []
    covered = 0
    for key, value in index.items():
        if len(key) <= FUZZY_MIN_KEY_LEN:
            continue
        if key in canonical:
            found.append(value)
            covered += len(key)

    if found and covered >= len(canonical) * FUZZY_MIN_COVERAGE:
        return found[0]
    return None


# ─── 진입점 ──────────────────────────────────────────

def match(raw_line: str, index: CorpusIndex) -> MatchResult:
    """원문 한 줄을 색인에서 찾는다.

    입력:
        raw_line: 마커 사이의 원문 문자열.
        index: build_index()로 만든 색인.
    출력: MatchResult. 찾지 못하면 kind=NO_MATCH.
    """
    canonical = canonicalize(raw_line)
    if not canonical:
        return MatchResult.no_match()

    # 1. 줄 전체
    replacement = index.get(canonical)
    if replacement is not None:
        return MatchResult(
            kind=MatchKind.EXACT,
            strategy=MatchStrategy.EXACT,
            replacement=replacement,
            key=canonical,
        )

    # 2. 문단 구분(\n\n)으로 합쳐진 줄
    if DOUBLE_BREAK in raw_line:
        segments = _lookup_segments(raw_line, DOUBLE_BREAK, index)
        if segments is not None:
            return MatchResult(
                kind=MatchKind.SEGMENTED,
                strategy=MatchStrategy.MULTI_SEGMENT,
                segments=tuple(segments),
                delimiter=DOUBLE_BREAK,
            )

    if LINE_BREAK in raw_line:
        # 3. 줄바꿈 단위 (조각이 너무 많으면 말뭉치 경계가 아닐 가능성이 높다)
        pieces = raw_line.count(LINE_BREAK) + 1
        if 1 < pieces <= MAX_LINE_SEGMENTS:
            segments = _lookup_segments(raw_line, LINE_BREAK, index)
            if segments is not None:
                return MatchResult(
                    kind=MatchKind.SEGMENTED,
                    strategy=MatchStrategy.LINE_SEGMENT,
                    segments=tuple(segments),
                    delimiter=LINE_BREAK,
                )

        # 4. 짧은 머리말 + 본문
        segments = _match_short_prefix(raw_line, index)
        if segments is not None:
            return MatchResult(
                kind=MatchKind.SEGMENTED,
                strategy=MatchStrategy.SHORT_PREFIX,
                segments=tuple(segments),
                delimiter=LINE_BREAK,
            )

    # 5. 아주 긴 합성 줄
    if len(canonical) > FUZZY_MIN_LINE_LEN and DOUBLE_BREAK in raw_line:
        replacement = _match_fuzzy(canonical, index)
        if replacement is not None:
            return MatchResult(
                kind=MatchKind.EXACT,
                strategy=MatchStrategy.FUZZY,
                replacement=replacement,
            )

    return MatchResult.no_match()
