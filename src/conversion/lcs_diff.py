"""LCS 정렬: 가나 정규형과 한자 정규형의 최소 글자 단위 차이.

말뭉치에서 줄 전체가 일치했을 때, 줄을 통째로 바꾸지 않고
실제로 다른 부분(가나 → 한자)만 골라 원문에 적용하는 데 쓴다.

알고리즘:
  1단계: (m+1) x (n+1) LCS 표를 채운다. O(m·n) 시간·공간.
  2단계: (m, n)에서 역추적한다.
         같은 글자 → 불변 조각, 다르면 LCS 값이 큰 쪽으로 이동.
         동점이면 한자 쪽을 먼저 소비한다 (삽입으로 취급).
  3단계: 이웃한 변경 조각끼리, 불변 조각끼리 합친다.

  예: diff("げんきだ", "元気だ")
      → [DiffSegment("げんき", "元気"), DiffSegment("だ", "だ")]

줄 길이가 보통 수백 자 이하라 선형 공간 변형은 쓰지 않는다.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Union

from .normalizer import canonicalize


@dataclass
class DiffSegment:
    """정렬 조각 하나. phonetic == logographic이면 불변 조각."""

    phonetic: str
    logographic: str

    @property
    def changed(self) -> bool:
        return self.phonetic != self.logographic

    def to_dict(self) -> dict:
        return {
            "phonetic": self.phonetic,
            "logographic": self.logographic,
            "changed": self.changed,
        }


# 매핑 입력: DiffSegment 또는 (가나, 한자) 튜플
Mapping = Union[DiffSegment, tuple[str, str]]


def _lcs_table(a: str, b: str) -> list[list[int]]:
    m, n = len(a), len(b)
    table = [[0] * (n + 1) for _ in range(m + 1)]
    for i in range(1, m + 1):
        row, prev = table[i], table[i - 1]
        ai = a[i - 1]
        for j in range(1, n + 1):
            if ai == b[j - 1]:
                row[j] = prev[j - 1] + 1
            else:
                row[j] = max(prev[j], row[j - 1])
    return table


def diff(phonetic: str, logographic: str) -> list[DiffSegment]:
    """두 정규형 문자열의 글자 단위 차이를 구한다.

    입력: phonetic, logographic: 이미 정규화된 문자열.
    출력: DiffSegment 리스트. 가나 쪽을 순서대로 이으면 phonetic,
          한자 쪽을 이으면 logographic이 된다.
    """
    table = _lcs_table(phonetic, logographic)

    # 역추적은 뒤에서 앞으로 진행하므로 조각을 뒤집힌 순서로 모은다
    reversed_segments: list[DiffSegment] = []
    pending_ph: list[str] = []
    pending_lg: list[str] = []

    def close_pending():
        if pending_ph or pending_lg:
            reversed_segments.append(DiffSegment(
                "".join(reversed(pending_ph)),
                "".join(reversed(pending_lg)),
            ))
            pending_ph.clear()
            pending_lg.clear()

    i, j = len(phonetic), len(logographic)
    while i > 0 or j > 0:
        if i > 0 and j > 0 and phonetic[i - 1] == logographic[j - 1]:
            close_pending()
            reversed_segments.append(DiffSegment(phonetic[i - 1], logographic[j - 1]))
            i -= 1
            j -= 1
        elif j > 0 and (i == 0 or table[i][j - 1] >= table[i - 1][j]):
            pending_lg.append(logographic[j - 1])
            j -= 1
        else:
            pending_ph.append(phonetic[i - 1])
            i -= 1
    close_pending()

    return _merge(reversed(reversed_segments))


def _merge(segments: Iterable[DiffSegment]) -> list[DiffSegment]:
    """같은 종류(변경/불변)의 이웃 조각을 하나로 합친다."""
    merged: list[DiffSegment] = []
    for seg in segments:
        if merged and merged[-1].changed == seg.changed:
            merged[-1] = DiffSegment(
                merged[-1].phonetic + seg.phonetic,
                merged[-1].logographic + seg.logographic,
            )
        else:
            merged.append(seg)
    return merged


def find_mappings(phonetic_raw: str, logographic_raw: str) -> list[DiffSegment]:
    """말뭉치 한 쌍에서 적용 가능한 가나 → 한자 매핑을 뽑는다.

    양쪽을 정규화한 뒤 diff()를 돌리고, 바뀐 조각 중 가나 쪽이 비어 있지 않은
    것만 남긴다. 순수 삽입(가나 쪽이 빈 조각)은 원문에 붙일 자리가 없어 버린다.
    """
    segments = diff(canonicalize(phonetic_raw), canonicalize(logographic_raw))
    return [seg for seg in segments if seg.changed and seg.phonetic]


def _as_pair(mapping: Mapping) -> tuple[str, str]:
    if isinstance(mapping, DiffSegment):
        return mapping.phonetic, mapping.logographic
    phonetic, logographic = mapping
    return phonetic, logographic


def apply_mappings(line: str, mappings: Iterable[Mapping]) -> str:
    """매핑을 순서대로 한 번씩 적용한다.

    각 매핑은 남아 있는 첫 번째 출현만 바꾼다.
    찾지 못한 매핑(앞 매핑이 이미 소비했거나 구조 토큰이 끼어 있는 경우)은 건너뛴다.
    """
    result = line
    for mapping in mappings:
        phonetic, logographic = _as_pair(mapping)
        if phonetic and phonetic in result:
            result = result.replace(phonetic, logographic, 1)
    return result
