"""줄 단위 변환 파이프라인.

원문 한 줄 → 가나 확인 → 매칭 → 재구성 → LineOutcome.
각 줄은 서로 독립이고 색인은 읽기 전용이므로 스레드로 나눠 처리해도 된다.

전역 카운터 대신 줄마다 결과값을 돌려주고,
통계는 ConversionStats.from_outcomes()로 나중에 모은다.

사용법:
    from conversion.corpus_index import build_index
    from conversion.pipeline import convert_lines, ConversionStats

    index = build_index(kana_lines, kanji_lines)
    outcomes = convert_lines(raw_lines, index, workers=4)
    stats = ConversionStats.from_outcomes(outcomes)
"""

from __future__ import annotations

import logging
from collections import Counter
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable, Union

from .corpus_index import CorpusIndex
from .lcs_diff import DiffSegment, apply_mappings, find_mappings
from .matcher import MatchStrategy, match
from .normalizer import contains_kana
from .reconstructor import reconstruct_match
from .tokenizer import structural_signature, tokenize

logger = logging.getLogger(__name__)


class LineStatus(str, Enum):
    CONVERTED = "converted"
    UNCHANGED = "unchanged"     # 찾았지만 결과가 원문과 같음
    NO_MATCH = "no_match"       # LLM 단계로 넘길 후보
    SKIPPED = "skipped"         # 가나 없음


class ConversionMode(str, Enum):
    """REPLACE: 찾은 한자 줄로 내용을 통째로 교체.
    DIFF: LCS로 바뀐 부분만 골라 원문에 적용 (exact 전략일 때만)."""

    REPLACE = "replace"
    DIFF = "diff"


@dataclass
class LineOutcome:
    """한 줄의 변환 결과."""

    original: str
    text: str
    status: LineStatus
    strategy: MatchStrategy = MatchStrategy.NONE
    mappings: list[DiffSegment] = field(default_factory=list)

    @property
    def changed(self) -> bool:
        return self.text != self.original

    def to_dict(self) -> dict:
        return {
            "original": self.original,
            "text": self.text,
            "status": self.status.value,
            "strategy": self.strategy.value,
            "mappings": [m.to_dict() for m in self.mappings],
        }


def convert_line(
    raw_line: str,
    index: CorpusIndex,
    mode: Union[ConversionMode, str] = ConversionMode.REPLACE,
) -> LineOutcome:
    """원문 한 줄을 변환한다.

    입력:
        raw_line: 마커 사이의 원문 문자열.
        index: 말뭉치 색인.
        mode: "replace" 또는 "diff". 그 밖의 값은 ValueError.
    출력: LineOutcome. 찾지 못하면 status=NO_MATCH, text는 원문 그대로.
    """
    mode = ConversionMode(mode)

    if not contains_kana(raw_line):
        return LineOutcome(raw_line, raw_line, LineStatus.SKIPPED)

    result = match(raw_line, index)
    if not result.found:
        return LineOutcome(raw_line, raw_line, LineStatus.NO_MATCH)

    mappings: list[DiffSegment] = []
    text = None
    if mode == ConversionMode.DIFF and result.strategy == MatchStrategy.EXACT:
        mappings = find_mappings(result.key, result.replacement)
        text = apply_mappings(raw_line, mappings)
        # 매핑이 구조 토큰에 걸치면 전체 교체로 되돌린다
        if structural_signature(tokenize(text)) != structural_signature(tokenize(raw_line)):
            logger.debug("매핑 적용이 구조를 바꿈, 전체 교체로 전환: %r", raw_line)
            mappings = []
            text = None
    if text is None:
        text = reconstruct_match(raw_line, result)

    logger.debug("매칭 전략 %s: %r → %r", result.strategy.value, raw_line, text)
    status = LineStatus.UNCHANGED if text == raw_line else LineStatus.CONVERTED
    return LineOutcome(raw_line, text, status, result.strategy, mappings)


def convert_lines(
    raw_lines: Iterable[str],
    index: CorpusIndex,
    mode: Union[ConversionMode, str] = ConversionMode.REPLACE,
    workers: int = 1,
) -> list[LineOutcome]:
    """여러 줄을 변환한다. 결과 순서는 입력 순서와 같다.

    workers > 1이면 ThreadPoolExecutor로 나눠 처리한다.
    """
    mode = ConversionMode(mode)
    lines = list(raw_lines)
    if workers <= 1 or len(lines) < 2:
        return [convert_line(line, index, mode) for line in lines]

    with ThreadPoolExecutor(max_workers=workers) as pool:
        return list(pool.map(lambda line: convert_line(line, index, mode), lines))


@dataclass
class ConversionStats:
    """여러 줄 변환 결과의 집계."""

    total: int = 0
    with_kana: int = 0
    converted: int = 0
    unchanged: int = 0
    no_match: int = 0
    skipped: int = 0
    strategies: dict[str, int] = field(default_factory=dict)

    @property
    def matched(self) -> int:
        return self.converted + self.unchanged

    @property
    def match_rate(self) -> float:
        """가나가 있는 줄 중 찾은 줄의 비율 (0.0 ~ 1.0)."""
        if self.with_kana == 0:
            return 0.0
        return self.matched / self.with_kana

    @classmethod
    def from_outcomes(cls, outcomes: Iterable[LineOutcome]) -> ConversionStats:
        statuses: Counter = Counter()
        strategies: Counter = Counter()
        for outcome in outcomes:
            statuses[outcome.status] += 1
            if outcome.strategy != MatchStrategy.NONE:
                strategies[outcome.strategy.value] += 1

        total = sum(statuses.values())
        skipped = statuses[LineStatus.SKIPPED]
        return cls(
            total=total,
            with_kana=total - skipped,
            converted=statuses[LineStatus.CONVERTED],
            unchanged=statuses[LineStatus.UNCHANGED],
            no_match=statuses[LineStatus.NO_MATCH],
            skipped=skipped,
            strategies=dict(strategies),
        )

    def to_dict(self) -> dict:
        return {
            "total": self.total,
            "with_kana": self.with_kana,
            "converted": self.converted,
            "unchanged": self.unchanged,
            "no_match": self.no_match,
            "skipped": self.skipped,
            "strategies": dict(self.strategies),
            "match_rate": round(self.match_rate, 4),
        }
